"""code_prompt: concatenate a source tree into one Markdown document for an LLM.

Overview
--------
Files under a directory are selected with include/exclude globs (comma
separated, brace aware, e.g. `*.png,lib/{generated,l10n}*`) on top of the
standard ignore rules (hidden files, `.gitignore`, `.ignore`), then written as
one `## <path>` section with a fenced, language-tagged code block per file.

Usage
-----
Run `code-prompt --help` (or `python -m code_prompt.cli --help`). Examples:
    - Rust sources with line numbers:
        code-prompt -d . -i "*.rs" -l -o prompt.md

    - Everything but images, without comments or blank lines:
        code-prompt -e "*.png,*.ico" --ignore-comments --ignore-empty-lines

    - Defaults from a YAML file, logs to a file:
        code-prompt --config code_prompt.yaml --log-file run.log
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from code_prompt import __version__
from code_prompt.config import DEFAULT_OUTPUT_FILE, SelectedFile
from code_prompt.exceptions import (
    ConfigFileError,
    InvalidRootError,
    OutputWriteError,
    PatternCompileError,
)
from code_prompt.file_manipulation import LOCAL_FS, walk_files
from code_prompt.logging import logger, setup_logging
from code_prompt.output_construction import RunSummary, format_file_size, write_prompt
from code_prompt.patterns import PatternSet
from code_prompt.settings import Settings, load_config_file

if TYPE_CHECKING:
    from collections.abc import Sequence


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse command line arguments into an immutable `Settings`.

    Values from `--config` are applied first; flags given on the command line
    override them.

    Args:
        argv (Sequence[str] | None): the arguments, `sys.argv[1:]` when None

    Returns:
        Settings: the validated settings
    """
    p = argparse.ArgumentParser(
        prog="code-prompt",
        description="Concatenate source files into a single Markdown prompt.",
        argument_default=argparse.SUPPRESS,
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument(
        "-o",
        "--output",
        type=Path,
        help=f"Output file name (default: {DEFAULT_OUTPUT_FILE}).",
    )
    p.add_argument(
        "-d",
        "--dir",
        dest="root_dir",
        type=Path,
        help="Directory to search for files (default: .).",
    )
    p.add_argument("-e", "--exclude", type=str, help="Glob patterns to exclude files (comma separated).")
    p.add_argument("-i", "--include", type=str, help="Glob patterns to include files (comma separated).")
    p.add_argument("-l", "--line-number", action="store_true", help="Enable line numbers in output.")
    p.add_argument(
        "-f",
        "--standard-filter",
        action=argparse.BooleanOptionalAction,
        help="Respect standard filters like .gitignore (default: on).",
    )
    p.add_argument("--show-matched", action="store_true", help="Show matched files.")
    p.add_argument("--ignore-empty-lines", action="store_true", help="Ignore empty lines.")
    p.add_argument("--ignore-comments", action="store_true", help="Ignore whole-line comments.")
    p.add_argument("--skip-empty-files", action="store_true", help="Leave zero-byte files out.")
    p.add_argument(
        "--skip-confirm",
        action="store_true",
        help="Skip confirmation for overwriting output file.",
    )
    p.add_argument("-j", "--jobs", type=int, help="Worker threads reading files (default: 1).")
    p.add_argument("--config", type=Path, help="YAML file with default settings.")
    p.add_argument("--log-file", type=str, help="Log file path.")
    p.add_argument("-v", "--verbose", action="store_true", help="Log debug events.")

    args = vars(p.parse_args(argv))
    config_path = args.pop("config", None)

    values: dict[str, object] = {}
    if config_path is not None:
        try:
            values.update(load_config_file(config_path))
        except ConfigFileError as e:
            p.error(f"cannot load config file {e.path}: {e.reason}")
    values.update(args)
    try:
        return Settings(**values)
    except ValidationError as e:
        p.error(str(e))


def ask_continue(message: str, *, default: bool) -> bool:
    """Ask the user a yes/no question on stdin.

    Args:
        message (str): the question
        default (bool): the answer for an empty reply

    Returns:
        bool: True for "y"/"yes" (any case), the default for an empty reply
            or a closed stdin
    """
    prompt = f"{message} [Y/n]: " if default else f"{message} [y/N]: "
    try:
        answer = input(prompt).strip()
    except EOFError:
        print()
        return default
    if not answer:
        return default
    return answer.lower() in {"y", "yes"}


def select_files(root: Path, pattern_set: PatternSet, settings: Settings) -> list[SelectedFile]:
    """Walk `root` and return the selected files, never the output file itself."""
    output = settings.output.resolve()
    return [
        rec
        for rec in walk_files(root, pattern_set, respect_standard_ignore_rules=settings.standard_filter)
        if rec.path.resolve() != output
    ]


def export(files: Sequence[SelectedFile], settings: Settings) -> RunSummary:
    """Write the rendered files to the output file.

    Raises:
        OutputWriteError: if the output file cannot be opened or written

    Returns:
        RunSummary: what was written
    """
    output = settings.output
    try:
        with output.open("wb") as sink:
            return write_prompt(
                files,
                sink,
                options=settings.render_options(),
                skip_empty_files=settings.skip_empty_files,
                jobs=settings.jobs,
                output_path=output,
            )
    except OSError as e:
        raise OutputWriteError(path=output, reason=str(e)) from e


def print_summary(summary: RunSummary, settings: Settings) -> None:
    """Print the matched files, the skipped files and the output size."""
    if settings.show_matched:
        print("\nMatched files:")
        for rec in summary.rendered:
            print(f"{rec.rel}: {format_file_size(rec.size)}")

    if summary.empty:
        print(f"\nSkipped {len(summary.empty)} empty files.")
    if summary.unreadable:
        print(f"\nSkipped {len(summary.unreadable)} unreadable files:", file=sys.stderr)
        for skipped in summary.unreadable:
            print(f"  {skipped.rel}: {skipped.reason}", file=sys.stderr)

    print(f"\nFound {summary.files_rendered} files matching the criteria.")
    print(f"==> {settings.output} ({format_file_size(summary.bytes_written)})")


def main(argv: Sequence[str] | None = None) -> int:
    settings = parse_args(argv)
    if settings.log_file or settings.verbose:
        setup_logging(
            settings.log_file or None,
            level=logging.DEBUG if settings.verbose else logging.INFO,
        )

    root = settings.root_dir.resolve()
    try:
        if not root.is_dir():
            raise InvalidRootError(folder=root)
        pattern_set = PatternSet.build(settings.include, settings.exclude, root)
    except InvalidRootError as e:
        print(f"Error: {e.message} {e.folder}", file=sys.stderr)
        return 1
    except PatternCompileError as e:
        print(f"Error: {e.message} {e.pattern!r}: {e.reason}", file=sys.stderr)
        return 1

    output = settings.output
    if output.exists() and not settings.skip_confirm:
        if not ask_continue(f"Output file {output} already exists.\nOverwrite?", default=True):
            print("Aborted.")
            return 0
        try:
            LOCAL_FS.delete_file(output)
        except OSError as e:
            print(f"Error: failed to delete existing output file {output}: {e}", file=sys.stderr)
            return 1

    files = select_files(root, pattern_set, settings)
    if not files:
        print("No files found matching the criteria.")
        return 0

    try:
        summary = export(files, settings)
    except OutputWriteError as e:
        logger.error("output_write_failed", path=str(e.path), error=e.reason)
        print(f"Error: {e.message} {e.path}: {e.reason}", file=sys.stderr)
        return 1

    print_summary(summary, settings)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
