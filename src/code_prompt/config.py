from __future__ import annotations

from pathlib import Path, PurePath

from pydantic import BaseModel, ConfigDict, Field, computed_field

DEFAULT_OUTPUT_FILE = "code_prompt.md"

REGEX_PREFIX = "regex:"

# Ignore files honoured in every directory, lowest precedence first.
IGNORE_FILE_NAMES = (".gitignore", ".ignore")
GIT_EXCLUDE_FILE = ".git/info/exclude"

EXT2LANG: dict[str, str] = {
    "bash": "bash",
    "bat": "batch",
    "c": "c",
    "cc": "cpp",
    "cfg": "ini",
    "cmd": "batch",
    "cpp": "cpp",
    "cs": "csharp",
    "css": "css",
    "csv": "csv",
    "cxx": "cpp",
    "dart": "dart",
    "erl": "erlang",
    "ex": "elixir",
    "exs": "elixir",
    "fs": "fsharp",
    "fsx": "fsharp",
    "go": "go",
    "h": "c",
    "hpp": "cpp",
    "hs": "haskell",
    "htm": "html",
    "html": "html",
    "ini": "ini",
    "java": "java",
    "js": "javascript",
    "json": "json",
    "kt": "kotlin",
    "kts": "kotlin",
    "lua": "lua",
    "markdown": "markdown",
    "md": "markdown",
    "mjs": "javascript",
    "php": "php",
    "pl": "perl",
    "ps1": "powershell",
    "ps1xml": "powershell",
    "psd1": "powershell",
    "psm1": "powershell",
    "py": "python",
    "r": "r",
    "rb": "ruby",
    "rs": "rust",
    "scss": "scss",
    "sh": "bash",
    "sql": "sql",
    "swift": "swift",
    "tex": "latex",
    "toml": "toml",
    "ts": "typescript",
    "tsx": "typescript",
    "vbs": "vbscript",
    "xml": "xml",
    "yaml": "yaml",
    "yml": "yaml",
    "zsh": "bash",
}

COMMENT_PREFIXES: dict[str, str] = {
    "bash": "#",
    "c": "//",
    "cc": "//",
    "cfg": "#",
    "cpp": "//",
    "cs": "//",
    "cxx": "//",
    "dart": "//",
    "erl": "%",
    "ex": "#",
    "exs": "#",
    "fs": "//",
    "fsx": "//",
    "go": "//",
    "h": "//",
    "hpp": "//",
    "hs": "--",
    "ini": ";",
    "java": "//",
    "js": "//",
    "kt": "//",
    "kts": "//",
    "lua": "--",
    "mjs": "//",
    "php": "//",
    "pl": "#",
    "ps1": "#",
    "psd1": "#",
    "psm1": "#",
    "py": "#",
    "r": "#",
    "rb": "#",
    "rs": "//",
    "scss": "//",
    "sh": "#",
    "sql": "--",
    "swift": "//",
    "tex": "%",
    "toml": "#",
    "ts": "//",
    "tsx": "//",
    "vbs": "'",
    "yaml": "#",
    "yml": "#",
    "zsh": "#",
}


def file_extension(path: str | PurePath) -> str:
    """Return the lowercased extension of *path* without its leading dot.

    Dot files such as `.bashrc` and names ending with a dot have no extension.
    """
    name = PurePath(path).name
    stem, dot, ext = name.rpartition(".")
    if not dot or not stem:
        return ""
    return ext.lower()


def guess_language(path: str | PurePath) -> str | None:
    """Get the code fence language for a file, based on its extension only.

    Args:
        path (str | PurePath): the file path to look up.

    Returns:
        str | None: the language tag (e.g. "rust"), or None when unknown.
    """
    return EXT2LANG.get(file_extension(path))


def comment_prefix(path: str | PurePath) -> str | None:
    """Get the line-comment token for a file, based on its extension only.

    Args:
        path (str | PurePath): the file path to look up.

    Returns:
        str | None: the comment prefix (e.g. "#" or "//"), or None when the
            file type has no known line comment.
    """
    return COMMENT_PREFIXES.get(file_extension(path))


class RenderOptions(BaseModel):
    """Line-level formatting options applied to every rendered file."""

    model_config = ConfigDict(frozen=True)

    line_number: bool = Field(default=False, description="Prefix kept lines with their line number.")
    ignore_empty_lines: bool = Field(default=False, description="Drop zero-length lines.")
    ignore_comments: bool = Field(default=False, description="Drop whole-line comments.")


class SelectedFile(BaseModel):
    """A file chosen by the walker for inclusion in the output.

    Attributes:
        path: Path to the file on disk.
        rel: Path relative to the walk root, with POSIX separators.
        size: File size in bytes at selection time.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    path: Path = Field(..., description="File path on disk")
    rel: str = Field(..., description="File path relative to the walk root")
    size: int = Field(..., ge=0, description="File size in bytes")

    @computed_field
    @property
    def language(self) -> str | None:
        """Get the suggested code fence language based on the extension."""
        return guess_language(self.rel)

    @computed_field
    @property
    def comment_prefix(self) -> str | None:
        """Get the line-comment token based on the extension."""
        return comment_prefix(self.rel)
