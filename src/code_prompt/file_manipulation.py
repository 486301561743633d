from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import pathspec

from code_prompt.config import GIT_EXCLUDE_FILE, IGNORE_FILE_NAMES, SelectedFile
from code_prompt.exceptions import FileReadError, TraversalEntryError
from code_prompt.logging import logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from code_prompt.patterns import PatternSet

    KeepFn = Callable[[str, bool], bool]


@dataclass(frozen=True)
class DirectoryEntry:
    """One child of a listed directory.

    Symlinked directories report `is_dir=False`, so they are never descended.
    Symlinks to regular files report `is_file=True`; dangling links report neither.
    """

    name: str
    path: Path
    is_dir: bool
    is_file: bool


class FileSystem(Protocol):
    """Filesystem capabilities the walker and the pipeline rely on."""

    def read_file(self, path: Path) -> bytes: ...

    def file_size(self, path: Path) -> int: ...

    def list_directory(self, path: Path) -> list[DirectoryEntry]: ...

    def delete_file(self, path: Path) -> None: ...


class LocalFileSystem:
    """`FileSystem` backed by the local disk."""

    def read_file(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as e:
            raise FileReadError(path=path, reason=str(e)) from e

    def file_size(self, path: Path) -> int:
        try:
            return path.stat().st_size
        except OSError as e:
            raise TraversalEntryError(path=path, reason=str(e)) from e

    def list_directory(self, path: Path) -> list[DirectoryEntry]:
        entries: list[DirectoryEntry] = []
        try:
            with os.scandir(path) as it:
                for entry in it:
                    try:
                        is_dir = entry.is_dir(follow_symlinks=False)
                        is_file = not is_dir and entry.is_file()
                    except OSError:
                        continue
                    entries.append(DirectoryEntry(entry.name, Path(entry.path), is_dir, is_file))
        except OSError as e:
            raise TraversalEntryError(path=path, reason=str(e)) from e
        return entries

    def delete_file(self, path: Path) -> None:
        path.unlink()


LOCAL_FS = LocalFileSystem()


def _last_match(spec: pathspec.PathSpec, path: str) -> bool | None:
    verdict: bool | None = None
    for pattern in spec.patterns:
        if pattern.include is not None and pattern.match_file(path) is not None:
            verdict = pattern.include
    return verdict


class IgnoreRules:
    """Standard ignore rules: hidden entries plus `.gitignore`/`.ignore` files.

    Ignore files are loaded lazily, once per directory, and apply to the paths
    below the directory that holds them. The deepest directory with a matching
    line decides; within one directory the last matching line wins, so `!`
    lines re-include. The root's `.git/info/exclude` has the lowest precedence.
    Hidden entries are skipped unless an ignore file re-includes them.
    """

    def __init__(self, root: Path, fs: FileSystem = LOCAL_FS) -> None:
        self._root = root
        self._fs = fs
        self._specs: dict[str, pathspec.PathSpec | None] = {}

    def _load(self, rel_dir: str) -> pathspec.PathSpec | None:
        directory = self._root / rel_dir if rel_dir else self._root
        names = list(IGNORE_FILE_NAMES) if rel_dir else [GIT_EXCLUDE_FILE, *IGNORE_FILE_NAMES]
        lines: list[str] = []
        for name in names:
            try:
                data = self._fs.read_file(directory / name)
            except FileReadError:
                continue
            lines.extend(data.decode("utf-8", errors="replace").splitlines())
        if not lines:
            return None
        try:
            return pathspec.PathSpec.from_lines("gitwildmatch", lines)
        except ValueError as e:
            logger.warning("ignore_rules_unparsable", directory=str(directory), error=str(e))
            return None

    def _spec_for(self, rel_dir: str) -> pathspec.PathSpec | None:
        if rel_dir not in self._specs:
            self._specs[rel_dir] = self._load(rel_dir)
        return self._specs[rel_dir]

    def is_ignored(self, rel: str, *, is_dir: bool) -> bool:
        """Check a root-relative POSIX path against the standard ignore rules.

        Args:
            rel (str): the path relative to the walk root
            is_dir (bool): whether the path is a directory

        Returns:
            bool: True if the entry must be skipped (and pruned, for directories)
        """
        parts = rel.split("/")
        for depth in range(len(parts) - 1, -1, -1):
            spec = self._spec_for("/".join(parts[:depth]))
            if spec is None:
                continue
            target = "/".join(parts[depth:]) + ("/" if is_dir else "")
            verdict = _last_match(spec, target)
            if verdict is not None:
                return verdict
        return parts[-1].startswith(".")


def iter_tree(root: Path, keep: KeepFn, fs: FileSystem = LOCAL_FS) -> Iterator[tuple[Path, str]]:
    """Walk `root` depth-first in name order and yield the files `keep` accepts.

    `keep(rel, is_dir)` is asked about every entry; a rejected directory is
    pruned, not descended. Entries that fail to list are skipped.

    Args:
        root (Path): the directory to walk
        keep (KeepFn): predicate on the root-relative POSIX path and the entry kind
        fs (FileSystem): the filesystem to list directories with

    Yields:
        Iterator[tuple[Path, str]]: the file path and its root-relative POSIX path
    """

    def walk(directory: Path, prefix: str) -> Iterator[tuple[Path, str]]:
        try:
            entries = fs.list_directory(directory)
        except TraversalEntryError as e:
            logger.debug("traversal_entry_skipped", path=str(e.path), error=e.reason)
            return
        for entry in sorted(entries, key=lambda e: e.name):
            rel = prefix + entry.name
            if entry.is_dir:
                if keep(rel, True):  # noqa: FBT003
                    yield from walk(entry.path, rel + "/")
            elif entry.is_file and keep(rel, False):  # noqa: FBT003
                yield entry.path, rel

    yield from walk(root, "")


def walk_files(
    root: Path,
    pattern_set: PatternSet,
    *,
    respect_standard_ignore_rules: bool = True,
    fs: FileSystem = LOCAL_FS,
) -> Iterator[SelectedFile]:
    """Select the files under `root` that pass the ignore rules and the patterns.

    The patterns are consulted first: an exclude match rejects and an include
    match selects a file even when it is hidden or ignored. Directories are
    pruned only by exclude globs or the ignore rules. Each call walks the filesystem again, so the result can be re-iterated by
    calling the function again.

    Args:
        root (Path): the directory to walk
        pattern_set (PatternSet): the compiled include/exclude patterns
        respect_standard_ignore_rules (bool): skip hidden entries and honour ignore files
        fs (FileSystem): the filesystem to walk

    Yields:
        Iterator[SelectedFile]: the selected files, in deterministic walk order
    """
    rules = IgnoreRules(root, fs) if respect_standard_ignore_rules else None

    def keep(rel: str, is_dir: bool) -> bool:  # noqa: FBT001
        if is_dir:
            if pattern_set.prunes(rel):
                return False
            return rules is None or not rules.is_ignored(rel, is_dir=True)
        verdict = pattern_set.match(rel)
        if verdict is not None:
            return verdict
        if rules is not None and rules.is_ignored(rel, is_dir=False):
            return False
        return pattern_set.decide(rel)

    for path, rel in iter_tree(root, keep, fs):
        try:
            size = fs.file_size(path)
        except TraversalEntryError as e:
            logger.debug("traversal_entry_skipped", path=str(e.path), error=e.reason)
            continue
        yield SelectedFile(path=path, rel=rel, size=size)
