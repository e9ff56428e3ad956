"""ZIP extraction into a staging directory, with safety checks on every member.

The archive is read through the injected :class:`~kbingest.ports.FileSystem`
and members are written back through it, so extraction behaves the same on
local disk and in memory.
"""

from __future__ import annotations

import io
import logging
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Annotated

from kbingest.exceptions import ExtractionError
from kbingest.ports import FileSystem, StrPath

__all__ = [
    "ZipArchiveExtractor",
    "ZipValidationError",
    "ZipValidationLimits",
    "safe_member_path",
    "validate_zip_contents",
]

logger = logging.getLogger(__name__)


class ZipValidationError(ValueError):
    """Base exception for ZIP archive validation errors."""


class ZipMemberCountError(ZipValidationError):
    """Raised when a ZIP archive exceeds the maximum number of members."""

    def __init__(self, member_count: int, max_member_count: int) -> None:
        self.member_count = member_count
        self.max_member_count = max_member_count
        super().__init__(f"ZIP archive contains too many files ({member_count} > {max_member_count})")


class ZipMemberSizeError(ZipValidationError):
    """Raised when a member in a ZIP archive exceeds the maximum allowed size."""

    def __init__(self, member_name: str, member_size: int, max_member_size: int) -> None:
        self.member_name = member_name
        self.member_size = member_size
        self.max_member_size = max_member_size
        super().__init__(f"ZIP member '{member_name}' ({member_size} bytes) exceeds maximum size of {max_member_size} bytes")


class ZipTotalSizeError(ZipValidationError):
    """Raised when the total uncompressed size of a ZIP archive exceeds the maximum."""

    def __init__(self, total_size: int, max_total_size: int) -> None:
        self.total_size = total_size
        self.max_total_size = max_total_size
        super().__init__(f"ZIP archive uncompressed size ({total_size} bytes) exceeds {max_total_size} bytes")


class ZipCompressionBombError(ZipValidationError):
    """Raised when a ZIP member has a suspiciously high compression ratio."""

    def __init__(self, member_name: str, ratio: float, max_ratio: float) -> None:
        self.member_name = member_name
        self.ratio = ratio
        self.max_ratio = max_ratio
        super().__init__(
            f"ZIP member '{member_name}' has suspicious compression ratio "
            f"({self.ratio:.1f}:1 > {self.max_ratio}:1). This may indicate a zip bomb attack."
        )


class ZipPathTraversalError(ZipValidationError):
    """Raised when a ZIP member's path is unsafe (absolute or traversal)."""

    def __init__(self, member_name: str) -> None:
        self.member_name = member_name
        super().__init__(f"ZIP member path is unsafe: '{member_name}'")


@dataclass(frozen=True, slots=True)
class ZipValidationLimits:
    """Constraints applied when validating KB archives."""

    max_total_size: int = 500 * 1024 * 1024
    max_member_size: int = 50 * 1024 * 1024
    max_member_count: int = 20000
    max_compression_ratio: float = 100.0  # Detect zip bombs (100:1 ratio)


def validate_zip_contents(
    zf: Annotated[zipfile.ZipFile, "The ZIP file to validate"],
    *,
    limits: Annotated[ZipValidationLimits | None, "Optional validation limits to use"] = None,
) -> None:
    """Validate members of a ZIP archive before anything is extracted.

    Checks performed:
    - Member count limit
    - Individual file size limit
    - Total uncompressed size limit
    - Compression ratio (zip bomb detection)
    - Path traversal prevention
    """
    limits = limits or ZipValidationLimits()
    total_size = 0
    members = zf.infolist()
    if len(members) > limits.max_member_count:
        raise ZipMemberCountError(len(members), limits.max_member_count)

    for info in members:
        _ensure_safe_path(info.filename)
        if info.file_size > limits.max_member_size:
            raise ZipMemberSizeError(info.filename, info.file_size, limits.max_member_size)

        if info.compress_size > 0 and info.file_size > 0:
            ratio = info.file_size / info.compress_size
            if ratio > limits.max_compression_ratio:
                raise ZipCompressionBombError(info.filename, ratio, limits.max_compression_ratio)

        total_size += info.file_size
        if total_size > limits.max_total_size:
            raise ZipTotalSizeError(total_size, limits.max_total_size)


def _ensure_safe_path(member_name: str) -> None:
    """Check for unsafe path components in a zip member name."""
    # Absolute paths (POSIX, Windows, UNC) and drive prefixes.
    is_abs = member_name.startswith(("/", "\\")) or (len(member_name) > 1 and member_name[1] == ":")
    if is_abs:
        raise ZipPathTraversalError(member_name)

    normalized_path = member_name.replace("\\", "/")
    if "/../" in f"/{normalized_path}/":
        raise ZipPathTraversalError(member_name)


def safe_member_path(target_dir: StrPath, member_name: str) -> Path:
    """Join a validated member name onto ``target_dir``."""
    _ensure_safe_path(member_name)
    parts = [p for p in PurePosixPath(member_name.replace("\\", "/")).parts if p not in ("", ".")]
    return Path(target_dir).joinpath(*parts)


class ZipArchiveExtractor:
    """Extracts ZIP archives through a :class:`FileSystem`."""

    def __init__(self, fs: FileSystem, limits: ZipValidationLimits | None = None) -> None:
        self.fs = fs
        self.limits = limits

    def _open(self, archive_path: StrPath) -> zipfile.ZipFile:
        try:
            data = self.fs.read_file(archive_path)
        except OSError as err:
            raise ExtractionError(archive_path, f"archive not found ({err})") from err
        try:
            return zipfile.ZipFile(io.BytesIO(data))
        except zipfile.BadZipFile as err:
            raise ExtractionError(archive_path, f"invalid zip: {err}") from err

    def extract(self, archive_path: StrPath, target_dir: StrPath) -> None:
        """Validate every member, then write them all under ``target_dir``."""
        target_dir = Path(target_dir)
        with self._open(archive_path) as zf:
            try:
                validate_zip_contents(zf, limits=self.limits)
            except ZipValidationError as err:
                raise ExtractionError(archive_path, str(err)) from err

            self.fs.mkdir(target_dir, recursive=True)
            count = 0
            for info in zf.infolist():
                dest = safe_member_path(target_dir, info.filename)
                if info.is_dir():
                    self.fs.mkdir(dest, recursive=True)
                    continue
                try:
                    content = zf.read(info)
                except (zipfile.BadZipFile, zlib.error, RuntimeError, NotImplementedError) as err:
                    raise ExtractionError(archive_path, f"corrupted zip member '{info.filename}': {err}") from err
                self.fs.mkdir(dest.parent, recursive=True)
                self.fs.write_file(dest, content)
                count += 1

        logger.info("Extracted %d files from %s into %s", count, archive_path, target_dir)

