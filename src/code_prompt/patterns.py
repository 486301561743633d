from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

import pathspec

from code_prompt.config import REGEX_PREFIX
from code_prompt.exceptions import PatternCompileError
from code_prompt.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path


def split_patterns(raw: str) -> list[str]:
    """Split a comma separated pattern list while respecting brace expressions.

    Commas nested inside `{...}` belong to the pattern, e.g.
    `*.png,*.ico,lib/{generated,l10n}*` yields three patterns. A stray closing
    brace never drives the depth below zero, so malformed input is split as
    well as it can be instead of failing.

    Args:
        raw (str): the comma separated pattern string

    Returns:
        list[str]: the patterns in input order, without empty entries
    """
    patterns: list[str] = []
    current: list[str] = []
    depth = 0
    for ch in raw:
        if ch == "{":
            depth += 1
            current.append(ch)
        elif ch == "}":
            depth = max(0, depth - 1)
            current.append(ch)
        elif ch == "," and depth == 0:
            if current:
                patterns.append("".join(current))
                current = []
        else:
            current.append(ch)
    if current:
        patterns.append("".join(current))
    return patterns


def _split_alternatives(body: str) -> list[str]:
    alternatives: list[str] = []
    depth = 0
    start = 0
    for i, ch in enumerate(body):
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        elif ch == "," and depth == 0:
            alternatives.append(body[start:i])
            start = i + 1
    alternatives.append(body[start:])
    return alternatives


def expand_braces(pattern: str) -> list[str]:
    """Expand glob brace alternation into plain glob patterns.

    `lib/{generated,l10n}*` becomes `lib/generated*` and `lib/l10n*`. Nested
    braces are expanded recursively. A `{` without a matching `}` is kept
    literally.

    Args:
        pattern (str): a single glob pattern

    Returns:
        list[str]: the expanded patterns (the input itself when it has no braces)
    """
    start = pattern.find("{")
    if start == -1:
        return [pattern]

    depth = 0
    for end in range(start, len(pattern)):
        if pattern[end] == "{":
            depth += 1
        elif pattern[end] == "}":
            depth -= 1
            if depth == 0:
                break
    else:
        return [pattern]

    head, body, tail = pattern[:start], pattern[start + 1 : end], pattern[end + 1 :]
    expanded: list[str] = []
    for alternative in _split_alternatives(body):
        expanded.extend(expand_braces(head + alternative + tail))
    return expanded


@dataclass(frozen=True)
class CompiledPattern:
    """A single include/exclude pattern compiled into a path matcher."""

    source: str
    spec: pathspec.PathSpec | None = None
    regex: re.Pattern[str] | None = None

    def matches(self, rel: str) -> bool:
        """Check a root-relative POSIX path against this pattern."""
        if self.regex is not None:
            return self.regex.search(rel) is not None
        return self.spec is not None and self.spec.match_file(rel)

    @property
    def is_glob(self) -> bool:
        return self.spec is not None


def compile_pattern(source: str) -> CompiledPattern:
    """Compile a glob (gitignore wildcard syntax) or `regex:` pattern.

    Args:
        source (str): the pattern as typed by the user, without negation

    Raises:
        PatternCompileError: if the pattern is not valid syntax or can never match

    Returns:
        CompiledPattern: the compiled matcher
    """
    if source.startswith(REGEX_PREFIX):
        try:
            return CompiledPattern(source=source, regex=re.compile(source[len(REGEX_PREFIX) :]))
        except re.error as e:
            raise PatternCompileError(pattern=source, reason=str(e)) from e

    lines = expand_braces(source)
    try:
        spec = pathspec.PathSpec.from_lines("gitwildmatch", lines)
    except ValueError as e:
        raise PatternCompileError(pattern=source, reason=str(e)) from e
    if all(p.include is None for p in spec.patterns):
        raise PatternCompileError(pattern=source, reason="pattern never matches a path")
    if any(p.include is False for p in spec.patterns):
        raise PatternCompileError(pattern=source, reason="negation is only allowed as a leading '!'")
    return CompiledPattern(source=source, spec=spec)


def _normalize(raw: str | Sequence[str] | None) -> list[str]:
    if raw is None:
        return []
    chunks = [raw] if isinstance(raw, str) else list(raw)
    out: list[str] = []
    for chunk in chunks:
        for pattern in split_patterns(chunk):
            pattern = pattern.strip()  # noqa: PLW2901
            if pattern:
                out.append(pattern)
    return out


@dataclass(frozen=True)
class PatternSet:
    """Compiled include/exclude patterns for one run.

    Exclude patterns are checked first and reject unconditionally; include
    patterns accept; anything else falls back to the default decision.
    """

    include: tuple[CompiledPattern, ...] = ()
    exclude: tuple[CompiledPattern, ...] = ()

    @classmethod
    def build(
        cls,
        include: str | Sequence[str] | None = None,
        exclude: str | Sequence[str] | None = None,
        root: Path | None = None,
    ) -> PatternSet:
        """Build a pattern set from raw comma separated include/exclude strings.

        A pattern written with a leading `!` is moved to the opposite list.
        Patterns are matched against paths relative to the walk root.

        Args:
            include (str | Sequence[str] | None): include pattern string(s)
            exclude (str | Sequence[str] | None): exclude pattern string(s)
            root (Path | None): the walk root the patterns are anchored at, for logging

        Raises:
            PatternCompileError: if any pattern is invalid; no partial set is built

        Returns:
            PatternSet: the immutable compiled pattern set
        """
        includes: list[CompiledPattern] = []
        excludes: list[CompiledPattern] = []

        def add(patterns: Iterable[str], *, negated_target: list, target: list) -> None:
            for pattern in patterns:
                if pattern.startswith("!") and len(pattern) > 1:
                    negated_target.append(compile_pattern(pattern[1:]))
                else:
                    target.append(compile_pattern(pattern))

        add(_normalize(include), negated_target=excludes, target=includes)
        add(_normalize(exclude), negated_target=includes, target=excludes)

        pattern_set = cls(include=tuple(includes), exclude=tuple(excludes))
        logger.debug(
            "pattern_set_built",
            root=str(root) if root else None,
            include=[p.source for p in includes],
            exclude=[p.source for p in excludes],
        )
        return pattern_set

    @property
    def has_patterns(self) -> bool:
        return bool(self.include or self.exclude)

    def match(self, rel: str) -> bool | None:
        """Return False on an exclude match, True on an include match, None otherwise."""
        if any(p.matches(rel) for p in self.exclude):
            return False
        if any(p.matches(rel) for p in self.include):
            return True
        return None

    def decide(self, rel: str, default_include: bool | None = None) -> bool:
        """Decide whether a root-relative path is selected.

        Args:
            rel (str): the root-relative path with POSIX separators
            default_include (bool | None): decision when no pattern matches; when
                None, paths are accepted unless include patterns are configured

        Returns:
            bool: True if the path is selected, False otherwise
        """
        verdict = self.match(rel)
        if verdict is not None:
            return verdict
        if default_include is not None:
            return default_include
        return not self.include

    def prunes(self, rel_dir: str) -> bool:
        """Check whether an exclude glob rejects a whole directory."""
        target = rel_dir.rstrip("/") + "/"
        return any(p.is_glob and p.matches(target) for p in self.exclude)
