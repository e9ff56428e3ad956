"""Local disk implementation of the :class:`~kbingest.ports.FileSystem` protocol."""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from kbingest.ports import DirEntry, FileStat, StrPath


class LocalFileSystem:
    """Thin pass-through over :mod:`pathlib` and :mod:`shutil`."""

    def read_dir(self, path: StrPath) -> list[DirEntry]:
        with os.scandir(path) as it:
            entries = [DirEntry(name=e.name, is_directory=e.is_dir(follow_symlinks=False)) for e in it]
        return sorted(entries, key=lambda e: e.name)

    def read_file(self, path: StrPath) -> bytes:
        return Path(path).read_bytes()

    def write_file(self, path: StrPath, content: bytes | str) -> None:
        target = Path(path)
        if isinstance(content, str):
            target.write_text(content, encoding="utf-8")
        else:
            target.write_bytes(content)

    def mkdir(self, path: StrPath, *, recursive: bool = False) -> None:
        Path(path).mkdir(parents=recursive, exist_ok=recursive)

    def rm(self, path: StrPath, *, recursive: bool = False, force: bool = False) -> None:
        target = Path(path)
        if not target.exists() and not target.is_symlink():
            if force:
                return
            raise FileNotFoundError(str(target))

        if target.is_dir() and not target.is_symlink():
            if recursive:
                shutil.rmtree(target)
            else:
                target.rmdir()
        else:
            target.unlink()

    def rename(self, old: StrPath, new: StrPath) -> None:
        Path(old).rename(new)

    def stat(self, path: StrPath) -> FileStat:
        target = Path(path)
        # Raises FileNotFoundError for missing paths.
        target.stat()
        return FileStat(is_file=target.is_file(), is_directory=target.is_dir())

    def unlink(self, path: StrPath) -> None:
        Path(path).unlink()

    def exists(self, path: StrPath) -> bool:
        return Path(path).exists()
