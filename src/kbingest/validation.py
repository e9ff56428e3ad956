"""Containment and existence checks run before any write."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import PurePath

from kbingest.exceptions import (
    InvalidPathError,
    InvalidSubfolderOperationError,
    PathEscapeError,
    SourceNotExistsError,
)
from kbingest.ports import FileStat, FileSystem, StrPath

__all__ = [
    "PathValidationContext",
    "ensure_relative",
    "escapes_root",
    "validate_paths",
    "validate_source_exists",
    "validate_subfolder_operation",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PathValidationContext:
    """Logical and resolved paths of one copy or move request."""

    source: str
    target: str
    resolved_source_path: StrPath
    resolved_target_path: StrPath
    dataset_root: StrPath


def _relative_to(root: StrPath, path: StrPath) -> str | None:
    try:
        return os.path.relpath(os.path.normpath(path), os.path.normpath(root))
    except ValueError:
        # Different drives on Windows.
        return None


def escapes_root(root: StrPath, path: StrPath) -> bool:
    """Return True if ``path`` resolves outside ``root`` (lexically)."""
    rel = _relative_to(root, path)
    if rel is None:
        return True
    return PurePath(rel).parts[:1] == ("..",)


def validate_paths(context: PathValidationContext) -> None:
    """Raise ``PathEscapeError`` if the source or target leaves the dataset root.

    Identical logical source and target are accepted as a no-op.
    """
    if context.source == context.target:
        logger.info("Source and target are the same: %s. Nothing to do.", context.source)
        return

    if escapes_root(context.dataset_root, context.resolved_source_path) or escapes_root(
        context.dataset_root, context.resolved_target_path
    ):
        raise PathEscapeError(context.source, context.target, context.dataset_root)


def validate_source_exists(fs: FileSystem, path: StrPath) -> FileStat:
    """Stat ``path`` once, raising ``SourceNotExistsError`` on failure."""
    try:
        return fs.stat(path)
    except OSError as err:
        raise SourceNotExistsError(path) from err


def ensure_relative(source: str, target: str) -> None:
    if os.path.isabs(source) or os.path.isabs(target):
        raise InvalidPathError(source, target)


def validate_subfolder_operation(
    src_path: StrPath,
    dest_path: StrPath,
    source: str,
    target: str,
    operation: str,
) -> None:
    """Refuse to copy or move a directory into its own subtree."""
    rel = _relative_to(src_path, dest_path)
    if rel is None or rel == os.curdir:
        return
    if PurePath(rel).parts[:1] != ("..",):
        raise InvalidSubfolderOperationError(operation, source, target)
