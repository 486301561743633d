from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

from code_prompt.config import DEFAULT_OUTPUT_FILE, RenderOptions
from code_prompt.exceptions import ConfigFileError


class Settings(BaseModel):
    """Configuration settings for one code_prompt run."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True, extra="forbid")

    root_dir: Path = Field(default=Path(), description="Directory to search for files.")
    output: Path = Field(default=Path(DEFAULT_OUTPUT_FILE), description="Output file name.")
    include: str | None = Field(default=None, description="Glob patterns to include (comma separated).")
    exclude: str | None = Field(default=None, description="Glob patterns to exclude (comma separated).")
    standard_filter: bool = Field(
        default=True,
        description="Respect standard filters like .gitignore and hidden files.",
    )

    line_number: bool = Field(default=False, description="Enable line numbers in output.")
    ignore_empty_lines: bool = Field(default=False, description="Ignore empty lines.")
    ignore_comments: bool = Field(default=False, description="Ignore whole-line comments.")
    skip_empty_files: bool = Field(default=False, description="Leave zero-byte files out of the output.")

    show_matched: bool = Field(default=False, description="Show matched files.")
    skip_confirm: bool = Field(default=False, description="Skip confirmation for overwriting output file.")
    jobs: int = Field(default=1, ge=1, description="Worker threads reading and rendering files.")
    log_file: str = Field(default="", description="Log file path.")
    verbose: bool = Field(default=False, description="Log debug events.")

    def render_options(self) -> RenderOptions:
        """Build the line-level formatting options for the renderer."""
        return RenderOptions(
            line_number=self.line_number,
            ignore_empty_lines=self.ignore_empty_lines,
            ignore_comments=self.ignore_comments,
        )


def load_config_file(path: Path) -> dict[str, Any]:
    """Load settings values from a YAML mapping.

    Keys are `Settings` field names; the values are validated when the
    `Settings` object is built.

    Args:
        path (Path): the YAML file to read

    Raises:
        ConfigFileError: if the file cannot be read or is not a YAML mapping

    Returns:
        dict[str, Any]: the raw settings values
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigFileError(path=path, reason=str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigFileError(path=path, reason="expected a mapping of setting names to values")
    return data
