"""Capability interfaces the ingestion core depends on.

The core never touches a concrete storage backend. Production code injects
:class:`kbingest.filesystem.LocalFileSystem`; tests inject an in-memory
implementation satisfying the same protocol.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

StrPath = str | Path


@dataclass(frozen=True, slots=True)
class DirEntry:
    """A single child of a directory listing."""

    name: str
    is_directory: bool


@dataclass(frozen=True, slots=True)
class FileStat:
    """Result of a successful ``stat``. A missing path raises ``FileNotFoundError`` instead."""

    is_file: bool
    is_directory: bool


@runtime_checkable
class FileSystem(Protocol):
    """Filesystem operations consumed by the merge, layout and archive modules."""

    def read_dir(self, path: StrPath) -> list[DirEntry]: ...
    def read_file(self, path: StrPath) -> bytes: ...
    def write_file(self, path: StrPath, content: bytes | str) -> None: ...
    def mkdir(self, path: StrPath, *, recursive: bool = False) -> None: ...
    def rm(self, path: StrPath, *, recursive: bool = False, force: bool = False) -> None: ...
    def rename(self, old: StrPath, new: StrPath) -> None: ...
    def stat(self, path: StrPath) -> FileStat: ...
    def unlink(self, path: StrPath) -> None: ...
    def exists(self, path: StrPath) -> bool: ...


@runtime_checkable
class ArchiveExtractor(Protocol):
    """Unpacks an archive into a staging directory."""

    def extract(self, archive_path: StrPath, target_dir: StrPath) -> None:
        """Extract every member of ``archive_path`` under ``target_dir``.

        Raises ``ExtractionError`` for a missing or malformed archive.
        """
        ...
