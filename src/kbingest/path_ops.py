"""Copy and move of caller-supplied relative paths inside a dataset root.

These are the entry points that accept user-controlled paths, so each one
validates containment before its first filesystem call.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from kbingest.behavior import Behavior, normalize_key, resolve_behavior
from kbingest.exceptions import KBIngestError, MergeIOError
from kbingest.merge import CopyContext, copy_directory, copy_file, move_directory_contents
from kbingest.ports import FileStat, FileSystem, StrPath
from kbingest.validation import (
    PathValidationContext,
    ensure_relative,
    validate_paths,
    validate_source_exists,
    validate_subfolder_operation,
)

__all__ = ["PathOperationResult", "SyncOptions", "copy_path", "move_path"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SyncOptions:
    """Conflict policy for a copy or move."""

    default_behavior: Behavior = Behavior.OVERWRITE
    folder_behavior: Mapping[str, Behavior] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class PathOperationResult:
    source: str
    target: str
    destination: Path | None = None
    skipped: bool = False


@dataclass(frozen=True, slots=True)
class _Setup:
    norm_source: str
    norm_target: str
    src_path: Path
    dest_path: Path
    options: SyncOptions


def _setup(source: str, target: str, dataset_root: StrPath, options: SyncOptions | None) -> _Setup | None:
    ensure_relative(source, target)
    options = options or SyncOptions()

    norm_source = source.replace("\\", "/")
    norm_target = target.replace("\\", "/")
    if norm_source == norm_target:
        logger.info("Source and target are the same: %s. Nothing to do.", norm_source)
        return None

    root = Path(dataset_root)
    src_path = Path(os.path.normpath(root / norm_source))
    dest_path = Path(os.path.normpath(root / norm_target))
    validate_paths(
        PathValidationContext(
            source=norm_source,
            target=norm_target,
            resolved_source_path=src_path,
            resolved_target_path=dest_path,
            dataset_root=root,
        )
    )
    return _Setup(norm_source, norm_target, src_path, dest_path, options)


def _final_destination(fs: FileSystem, dest_path: Path, source: str, norm_target: str) -> Path:
    """Where a single file lands: inside an existing directory, or at the target itself."""
    try:
        dest_stat = fs.stat(dest_path)
    except FileNotFoundError:
        if PurePosixPath(norm_target).suffix:
            fs.mkdir(dest_path.parent, recursive=True)
            return dest_path
        fs.mkdir(dest_path, recursive=True)
        return dest_path / PurePosixPath(source).name

    if dest_stat.is_directory:
        return dest_path / PurePosixPath(source).name
    return dest_path


def _source_folder_behavior(setup: _Setup) -> Behavior:
    return resolve_behavior(
        normalize_key(setup.norm_source),
        setup.options.folder_behavior,
        setup.options.default_behavior,
    )


def _reject_non_regular(stat: FileStat, src_path: Path) -> None:
    if not stat.is_directory and not stat.is_file:
        raise MergeIOError("stat", src_path, f"Source is neither a file nor a directory: {src_path}")


def copy_path(
    fs: FileSystem,
    source: str,
    target: str,
    dataset_root: StrPath,
    options: SyncOptions | None = None,
) -> PathOperationResult:
    """Copy ``source`` to ``target``, both relative to ``dataset_root``.

    Raises:
        InvalidPathError: If either path is absolute
        PathEscapeError: If either path resolves outside ``dataset_root``
        SourceNotExistsError: If the source cannot be stat'ed
        InvalidSubfolderOperationError: If a directory is copied into itself
        MergeIOError: If a read or write fails during the copy

    """
    setup = _setup(source, target, dataset_root, options)
    if setup is None:
        return PathOperationResult(source=source, target=target, skipped=True)

    stat = validate_source_exists(fs, setup.src_path)
    _reject_non_regular(stat, setup.src_path)

    if stat.is_directory:
        if _source_folder_behavior(setup) is Behavior.SKIP:
            logger.info("Skipping directory %s due to 'skip' behavior", setup.src_path)
            return PathOperationResult(source=source, target=target, skipped=True)

        validate_subfolder_operation(setup.src_path, setup.dest_path, setup.norm_source, setup.norm_target, "copy")
        context = CopyContext(
            source_dir=setup.src_path,
            dest_dir=setup.dest_path,
            folder_behavior=setup.options.folder_behavior,
            default_behavior=setup.options.default_behavior,
            dataset_root=Path(dataset_root),
        )
        try:
            copy_directory(fs, context)
        except KBIngestError:
            raise
        except OSError as err:
            logger.error("Failed to copy entries: %s", err)
            raise MergeIOError(
                "copy_directory",
                setup.src_path,
                f"Failed to copy directory contents from {setup.src_path} to {setup.dest_path}",
            ) from err
        logger.info("Copied contents of %s -> %s", setup.src_path, setup.dest_path)
        return PathOperationResult(source=source, target=target, destination=setup.dest_path)

    behavior = _source_folder_behavior(setup)
    if behavior is Behavior.SKIP:
        logger.info("Skipping file %s due to 'skip' behavior", setup.src_path)
        return PathOperationResult(source=source, target=target, skipped=True)

    try:
        final_dest = _final_destination(fs, setup.dest_path, setup.norm_source, setup.norm_target)
        written = copy_file(fs, setup.src_path, final_dest, behavior)
    except OSError as err:
        logger.error("Failed to copy file %s -> %s: %s", setup.src_path, setup.dest_path, err)
        raise MergeIOError(
            "copy_file", setup.src_path, f"Failed to copy file {setup.src_path} -> {setup.dest_path}"
        ) from err
    logger.info("Copied file %s -> %s", setup.src_path, final_dest)
    return PathOperationResult(source=source, target=target, destination=final_dest, skipped=not written)


def move_path(
    fs: FileSystem,
    source: str,
    target: str,
    dataset_root: StrPath,
    options: SyncOptions | None = None,
) -> PathOperationResult:
    """Move ``source`` to ``target``, both relative to ``dataset_root``.

    With ``add`` as the default behavior an existing destination is left
    alone and nothing is moved.
    """
    setup = _setup(source, target, dataset_root, options)
    if setup is None:
        return PathOperationResult(source=source, target=target, skipped=True)

    stat = validate_source_exists(fs, setup.src_path)
    _reject_non_regular(stat, setup.src_path)

    if setup.options.default_behavior is Behavior.ADD and fs.exists(setup.dest_path):
        logger.info("Destination %s exists and behavior is 'add'; not moving", setup.dest_path)
        return PathOperationResult(source=source, target=target, destination=setup.dest_path, skipped=True)

    if stat.is_directory:
        validate_subfolder_operation(setup.src_path, setup.dest_path, setup.norm_source, setup.norm_target, "move")
        try:
            fs.mkdir(setup.dest_path, recursive=True)
            move_directory_contents(fs, setup.src_path, setup.dest_path)
            fs.rm(setup.src_path, recursive=True, force=True)
        except OSError as err:
            raise MergeIOError(
                "move_directory", setup.src_path, f"Failed to move directory {setup.src_path} -> {setup.dest_path}"
            ) from err
        logger.info("Moved directory %s -> %s", setup.src_path, setup.dest_path)
        return PathOperationResult(source=source, target=target, destination=setup.dest_path)

    try:
        final_dest = _final_destination(fs, setup.dest_path, setup.norm_source, setup.norm_target)
        fs.write_file(final_dest, fs.read_file(setup.src_path))
        fs.unlink(setup.src_path)
    except OSError as err:
        raise MergeIOError(
            "move_file", setup.src_path, f"Failed to move file {setup.src_path} -> {setup.dest_path}"
        ) from err
    logger.info("Moved file %s -> %s", setup.src_path, final_dest)
    return PathOperationResult(source=source, target=target, destination=final_dest)
