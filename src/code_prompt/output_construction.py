from __future__ import annotations

import io
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, BinaryIO

from pydantic import BaseModel, ConfigDict, Field

from code_prompt.config import RenderOptions, SelectedFile, comment_prefix, guess_language
from code_prompt.exceptions import FileReadError, OutputWriteError
from code_prompt.file_manipulation import LOCAL_FS
from code_prompt.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

    from code_prompt.file_manipulation import FileSystem

FENCE = "```"

_KB = 1024.0
_MB = _KB * 1024.0
_GB = _MB * 1024.0


def split_content_lines(content: str) -> list[str]:
    r"""Split text into lines on `\n`, dropping a `\r` before it.

    A final newline does not produce an extra empty line, so `"a\nb"` and
    `"a\nb\n"` give the same lines.

    Args:
        content (str): the text to split

    Returns:
        list[str]: the lines, without their line endings
    """
    if not content:
        return []
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [ln.removesuffix("\r") for ln in lines]


def render_file(path: str, content: str, options: RenderOptions) -> str:
    """Render one file as a Markdown section with a fenced code block.

    The block is `## <path>`, a blank line, an opening fence tagged with the
    file's language when known, the kept lines (each ending with exactly one
    newline, optionally prefixed with `<line number>\\t`), the closing fence and
    a blank line. Line numbers always refer to the original content, so dropped
    lines leave gaps.

    Args:
        path (str): the display path, also used for language and comment detection
        content (str): the file text
        options (RenderOptions): line-level formatting options

    Returns:
        str: the rendered block
    """
    out = io.StringIO()
    out.write(f"## {path}\n\n")
    out.write(f"{FENCE}{guess_language(path) or ''}\n")

    prefix = comment_prefix(path) if options.ignore_comments else None
    for number, line in enumerate(split_content_lines(content), start=1):
        if not line and options.ignore_empty_lines:
            continue
        if prefix and line.lstrip().startswith(prefix):
            continue
        if options.line_number:
            out.write(f"{number}\t{line}\n")
        else:
            out.write(f"{line}\n")

    out.write(f"{FENCE}\n\n")
    return out.getvalue()


def format_file_size(size_in_bytes: float) -> str:
    """Format a byte count with a human readable unit (B, KB, MB, GB).

    Args:
        size_in_bytes (float): the size to format

    Returns:
        str: e.g. "512 B", "1.5 KB", "3.2 MB", "1.25 GB"
    """
    if size_in_bytes < _KB:
        return f"{size_in_bytes:.0f} B"
    if size_in_bytes < _MB:
        return f"{size_in_bytes / _KB:.1f} KB"
    if size_in_bytes < _GB:
        return f"{size_in_bytes / _MB:.1f} MB"
    return f"{size_in_bytes / _GB:.2f} GB"


class SkippedFile(BaseModel):
    """A selected file that did not make it into the output."""

    model_config = ConfigDict(frozen=True)

    rel: str = Field(..., description="File path relative to the walk root")
    reason: str = Field(..., description="Why the file was skipped")


class RunSummary(BaseModel):
    """What a pipeline run actually wrote."""

    rendered: list[SelectedFile] = Field(default_factory=list, description="Files written, in output order.")
    unreadable: list[SkippedFile] = Field(default_factory=list, description="Files skipped on read errors.")
    empty: list[SelectedFile] = Field(default_factory=list, description="Zero-byte files skipped by policy.")
    bytes_written: int = Field(default=0, ge=0, description="Bytes written to the output sink.")

    @property
    def files_rendered(self) -> int:
        return len(self.rendered)


def read_text(rec: SelectedFile, fs: FileSystem = LOCAL_FS) -> str:
    """Read a selected file as UTF-8 text.

    Args:
        rec (SelectedFile): the file to read
        fs (FileSystem): the filesystem to read from

    Raises:
        FileReadError: if the file cannot be read or is not valid UTF-8

    Returns:
        str: the file content
    """
    data = fs.read_file(rec.path)
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise FileReadError(path=rec.path, reason=f"not UTF-8 text ({e.reason})") from e


def _load_and_render(
    rec: SelectedFile,
    options: RenderOptions,
    fs: FileSystem,
) -> tuple[SelectedFile, str | None, FileReadError | None]:
    try:
        content = read_text(rec, fs)
    except FileReadError as e:
        return rec, None, e
    return rec, render_file(rec.rel, content, options), None


def write_prompt(
    files: Iterable[SelectedFile],
    sink: BinaryIO,
    *,
    options: RenderOptions,
    fs: FileSystem = LOCAL_FS,
    skip_empty_files: bool = False,
    jobs: int = 1,
    output_path: Path | None = None,
) -> RunSummary:
    """Render the selected files and append them to the output sink.

    Files are read and rendered concurrently when `jobs > 1`, but blocks are
    always written in the order of `files`. Unreadable files are skipped and
    recorded; a failing sink aborts the run.

    Args:
        files (Iterable[SelectedFile]): the files to render, in output order
        sink (BinaryIO): the binary stream the document is written to
        options (RenderOptions): line-level formatting options
        fs (FileSystem): the filesystem to read from
        skip_empty_files (bool): skip zero-byte files instead of rendering empty blocks
        jobs (int): number of worker threads reading and rendering files
        output_path (Path | None): the output file path, used in error reports

    Raises:
        OutputWriteError: if the sink cannot be written to

    Returns:
        RunSummary: the files written and skipped, and the number of bytes written
    """
    summary = RunSummary()

    def wanted() -> Iterator[SelectedFile]:
        for rec in files:
            if rec.size == 0 and skip_empty_files:
                summary.empty.append(rec)
                continue
            yield rec

    def consume(results: Iterable[tuple[SelectedFile, str | None, FileReadError | None]]) -> None:
        for rec, block, error in results:
            if error is not None:
                logger.warning("file_skipped", path=rec.rel, error=error.reason)
                summary.unreadable.append(SkippedFile(rel=rec.rel, reason=error.reason))
                continue
            data = block.encode("utf-8")
            try:
                sink.write(data)
            except OSError as e:
                raise OutputWriteError(path=output_path or rec.path, reason=str(e)) from e
            summary.rendered.append(rec)
            summary.bytes_written += len(data)

    if jobs > 1:
        with ThreadPoolExecutor(max_workers=jobs) as pool:
            consume(pool.map(lambda rec: _load_and_render(rec, options, fs), wanted()))
    else:
        consume(_load_and_render(rec, options, fs) for rec in wanted())

    logger.info(
        "prompt_written",
        files=summary.files_rendered,
        unreadable=len(summary.unreadable),
        empty_skipped=len(summary.empty),
        bytes=summary.bytes_written,
    )
    return summary
