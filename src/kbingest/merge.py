"""Recursive copy and move of directory trees.

Copies consult the folder-behavior map for every entry; moves are always
copy-then-delete so they keep working across filesystem boundaries.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path, PurePath
from types import MappingProxyType

from kbingest.behavior import Behavior, normalize_key, resolve_behavior
from kbingest.ports import FileSystem, StrPath
from kbingest.validation import PathValidationContext, escapes_root, validate_paths

__all__ = [
    "CopyContext",
    "copy_directory",
    "copy_file",
    "copy_tree",
    "move_directory_contents",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CopyContext:
    """Immutable parameters of one ``copy_directory`` call.

    Attributes:
        source_dir: Directory whose entries are copied
        dest_dir: Directory receiving the entries
        folder_behavior: Relative-path keys mapped to behaviors (read-only)
        default_behavior: Behavior used when no key matches
        dataset_root: Boundary for every write, and base for behavior keys

    """

    source_dir: Path
    dest_dir: Path
    folder_behavior: Mapping[str, Behavior] = field(default_factory=dict)
    default_behavior: Behavior = Behavior.OVERWRITE
    dataset_root: Path | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "source_dir", Path(self.source_dir))
        object.__setattr__(self, "dest_dir", Path(self.dest_dir))
        if self.dataset_root is not None:
            object.__setattr__(self, "dataset_root", Path(self.dataset_root))
        if not isinstance(self.folder_behavior, MappingProxyType):
            object.__setattr__(self, "folder_behavior", MappingProxyType(dict(self.folder_behavior or {})))

    def child(self, source_dir: StrPath, dest_dir: StrPath) -> CopyContext:
        """Return a context for a subdirectory, sharing everything else."""
        return replace(self, source_dir=Path(source_dir), dest_dir=Path(dest_dir))

    def key_for(self, source_entry: Path) -> str:
        """Behavior key of ``source_entry``: its path relative to the dataset root."""
        if self.dataset_root is None or escapes_root(self.dataset_root, source_entry):
            return source_entry.name
        return normalize_key(PurePath(os.path.relpath(source_entry, self.dataset_root)).as_posix())


def _destination_exists(fs: FileSystem, path: Path) -> bool:
    try:
        fs.stat(path)
    except OSError:
        return False
    return True


def copy_file(
    fs: FileSystem,
    source: StrPath,
    dest: StrPath,
    behavior: Behavior = Behavior.OVERWRITE,
) -> bool:
    """Copy a single file, honouring ``add`` and ``skip``.

    Returns True when the destination was written.
    """
    dest = Path(dest)
    if behavior is Behavior.SKIP:
        return False
    if behavior is Behavior.ADD and _destination_exists(fs, dest):
        logger.debug("add: keeping existing %s", dest)
        return False

    content = fs.read_file(source)
    fs.mkdir(dest.parent, recursive=True)
    fs.write_file(dest, content)
    return True


def copy_directory(fs: FileSystem, context: CopyContext) -> None:
    """Merge ``context.source_dir`` into ``context.dest_dir``.

    The destination is checked against the dataset root before anything is
    created. A missing source directory propagates ``FileNotFoundError``.
    """
    if context.dataset_root is not None:
        validate_paths(
            PathValidationContext(
                source=str(context.source_dir),
                target=str(context.dest_dir),
                resolved_source_path=context.source_dir,
                resolved_target_path=context.dest_dir,
                dataset_root=context.dataset_root,
            )
        )

    fs.mkdir(context.dest_dir, recursive=True)
    for entry in fs.read_dir(context.source_dir):
        source_entry = context.source_dir / entry.name
        dest_entry = context.dest_dir / entry.name

        behavior = resolve_behavior(context.key_for(source_entry), context.folder_behavior, context.default_behavior)
        if behavior is Behavior.SKIP:
            logger.debug("skip: %s", source_entry)
            continue
        if behavior is Behavior.ADD and _destination_exists(fs, dest_entry):
            logger.debug("add: keeping existing %s", dest_entry)
            continue

        if entry.is_directory:
            copy_directory(fs, context.child(source_entry, dest_entry))
        else:
            copy_file(fs, source_entry, dest_entry)


def copy_tree(fs: FileSystem, source_dir: StrPath, dest_dir: StrPath) -> None:
    """Copy a whole tree, overwriting whatever exists at the destination."""
    copy_directory(fs, CopyContext(source_dir=Path(source_dir), dest_dir=Path(dest_dir)))


def move_directory_contents(fs: FileSystem, source_dir: StrPath, target_dir: StrPath) -> None:
    """Move every entry of ``source_dir`` into ``target_dir``.

    Files are read, written and unlinked; directories are recreated,
    drained recursively and then removed. A failure stops the walk where it
    happened and is left to the caller to clean up.
    """
    source_dir = Path(source_dir)
    target_dir = Path(target_dir)

    for entry in fs.read_dir(source_dir):
        source_path = source_dir / entry.name
        target_path = target_dir / entry.name

        if entry.is_directory:
            fs.mkdir(target_path, recursive=True)
            move_directory_contents(fs, source_path, target_path)
            fs.rm(source_path, recursive=True, force=True)
        else:
            content = fs.read_file(source_path)
            fs.write_file(target_path, content)
            fs.unlink(source_path)
