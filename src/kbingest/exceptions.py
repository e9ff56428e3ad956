"""Centralized exceptions for kbingest."""

from __future__ import annotations

from pathlib import Path


class KBIngestError(Exception):
    """Base exception for all kbingest errors."""

    code: str = "KBINGEST_ERROR"


class PathEscapeError(KBIngestError):
    """Raised when a source or target would resolve outside the dataset root."""

    code = "PATH_ESCAPE"

    def __init__(self, source: str, target: str, dataset_root: str | Path) -> None:
        self.source = source
        self.target = target
        self.dataset_root = str(dataset_root)
        super().__init__(
            f"Source '{source}' or target '{target}' escapes the dataset root {self.dataset_root}. Aborting."
        )


class SourceNotExistsError(KBIngestError):
    """Raised when a required source path cannot be stat'ed."""

    code = "SOURCE_NOT_EXISTS"

    def __init__(self, source_path: str | Path) -> None:
        self.source_path = str(source_path)
        super().__init__(f"Source does not exist: {self.source_path}")


class InvalidPathError(KBIngestError):
    """Raised when a caller passes an absolute path where a relative one is required."""

    code = "INVALID_PATH"

    def __init__(self, source: str, target: str) -> None:
        self.source = source
        self.target = target
        super().__init__(f"Source and target paths must be relative, not absolute: '{source}' -> '{target}'")


class InvalidSubfolderOperationError(KBIngestError):
    """Raised when a directory would be copied or moved into its own subtree."""

    def __init__(self, operation: str, source: str, target: str) -> None:
        self.operation = operation
        self.source = source
        self.target = target
        self.code = f"INVALID_SUBFOLDER_{operation.upper()}"
        super().__init__(f"Cannot {operation} a folder into one of its own subfolders: '{source}' -> '{target}'")


class MergeIOError(KBIngestError):
    """Raised when a copy or move fails on an I/O call."""

    code = "IO_ERROR"

    def __init__(self, operation: str, path: str | Path, message: str) -> None:
        self.operation = operation
        self.path = str(path)
        super().__init__(message)


class ExtractionError(KBIngestError):
    """Raised when an archive is missing, malformed or fails safety validation."""

    code = "EXTRACTION_FAILURE"

    def __init__(self, archive_path: str | Path, reason: str) -> None:
        self.archive_path = str(archive_path)
        self.reason = reason
        super().__init__(f"Failed to extract {self.archive_path}: {reason}")


class KBNotFoundError(KBIngestError):
    """Raised by callers that want an exception when no KB layout was found."""

    code = "KB_NOT_FOUND"

    def __init__(self, root: str | Path) -> None:
        self.root = str(root)
        super().__init__(f"Invalid KB structure: no knowledge base found in {self.root}")


class AmbiguousKBLayoutError(KBNotFoundError):
    """Raised when several subdirectories each look like a KB."""

    code = "AMBIGUOUS_KB_LAYOUT"

    def __init__(self, root: str | Path) -> None:
        super().__init__(root)
        self.args = (
            f"Invalid KB structure: several candidate knowledge bases found in {self.root}, refusing to guess",
        )


class InvalidBehaviorError(KBIngestError, ValueError):
    """Raised when a behavior name is not one of overwrite/add/skip."""

    code = "INVALID_BEHAVIOR"

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Unknown behavior {value!r}; expected one of 'overwrite', 'add', 'skip'")


class ConfigError(KBIngestError):
    """Raised when the configuration file cannot be read or validated."""

    code = "CONFIG_ERROR"
