from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CodePromptError(Exception):
    """Base exception for errors in the code_prompt package."""


@dataclass(frozen=True)
class PatternCompileError(CodePromptError):
    """Raised when an include/exclude pattern is not valid glob or regex syntax."""

    pattern: str
    reason: str
    message: str = "Invalid include/exclude pattern."


@dataclass(frozen=True)
class TraversalEntryError(CodePromptError):
    """Raised when a directory entry cannot be listed or inspected during the walk."""

    path: Path
    reason: str


@dataclass(frozen=True)
class FileReadError(CodePromptError):
    """Raised when a selected file cannot be read or is not UTF-8 text."""

    path: Path
    reason: str


@dataclass(frozen=True)
class OutputWriteError(CodePromptError):
    """Raised when the output document cannot be written."""

    path: Path
    reason: str
    message: str = "Failed to write the output file."


@dataclass(frozen=True)
class InvalidRootError(CodePromptError):
    """Raised when the directory to scan does not exist or is not a directory."""

    folder: Path
    message: str = "The specified root is not a directory."


@dataclass(frozen=True)
class ConfigFileError(CodePromptError):
    """Raised when the YAML configuration file cannot be loaded."""

    path: Path
    reason: str
