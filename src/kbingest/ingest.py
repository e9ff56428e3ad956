"""Install a knowledge base from an archive or a local directory.

Both entry points populate a private staging directory next to the cache,
normalize it there, and only then replace the contents of the cache. A
failed or non-KB install leaves the cache as it was.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from pathlib import Path

from kbingest.archive import ZipArchiveExtractor
from kbingest.exceptions import AmbiguousKBLayoutError, KBNotFoundError
from kbingest.layout import DEFAULT_MARKERS, KBMarkers
from kbingest.merge import copy_tree, move_directory_contents
from kbingest.normalize import NormalizeOutcome, NormalizeResult, normalize_kb
from kbingest.ports import ArchiveExtractor, FileSystem, StrPath
from kbingest.validation import validate_source_exists

__all__ = ["ingest_archive", "install_from_directory", "require_valid"]

logger = logging.getLogger(__name__)


def _staging_dir(cache_path: Path) -> Path:
    return cache_path.parent / f".{cache_path.name}.staging-{uuid.uuid4().hex}"


def _install(fs: FileSystem, staging: Path, cache_path: Path, markers: KBMarkers) -> NormalizeResult:
    """Normalize ``staging`` and, if it holds a KB, make it the new contents of ``cache_path``."""
    result = normalize_kb(fs, staging, markers)
    if not result.ok:
        return replace(result, root=cache_path, nested_dir=None)

    fs.rm(cache_path, recursive=True, force=True)
    fs.mkdir(cache_path, recursive=True)
    move_directory_contents(fs, staging, cache_path)
    nested_dir = cache_path / result.nested_dir.name if result.nested_dir is not None else None
    return replace(result, root=cache_path, nested_dir=nested_dir)


def ingest_archive(
    fs: FileSystem,
    archive_path: StrPath,
    cache_path: StrPath,
    extractor: ArchiveExtractor | None = None,
    markers: KBMarkers = DEFAULT_MARKERS,
) -> NormalizeResult:
    """Extract ``archive_path`` and install the KB it holds into ``cache_path``.

    A missing KB is returned as a ``NOT_FOUND``/``AMBIGUOUS`` result; a bad
    archive raises ``ExtractionError``. In both cases ``cache_path`` is left
    untouched.
    """
    validate_source_exists(fs, archive_path)
    cache_path = Path(cache_path)
    extractor = extractor or ZipArchiveExtractor(fs)

    staging = _staging_dir(cache_path)
    fs.mkdir(staging, recursive=True)
    try:
        extractor.extract(archive_path, staging)
        result = _install(fs, staging, cache_path, markers)
    finally:
        fs.rm(staging, recursive=True, force=True)

    if result.ok:
        logger.info("Knowledge base ready at %s", cache_path)
    return result


def install_from_directory(
    fs: FileSystem,
    source_dir: StrPath,
    cache_path: StrPath,
    markers: KBMarkers = DEFAULT_MARKERS,
) -> NormalizeResult:
    """Copy a local KB checkout into ``cache_path`` and normalize it."""
    validate_source_exists(fs, source_dir)
    cache_path = Path(cache_path)

    staging = _staging_dir(cache_path)
    try:
        copy_tree(fs, source_dir, staging)
        result = _install(fs, staging, cache_path, markers)
    finally:
        fs.rm(staging, recursive=True, force=True)

    if result.ok:
        logger.info("Knowledge base installed from %s into %s", source_dir, cache_path)
    return result


def require_valid(result: NormalizeResult) -> Path:
    """Return the KB root, raising if normalization found nothing usable."""
    if result.outcome is NormalizeOutcome.AMBIGUOUS:
        raise AmbiguousKBLayoutError(result.root)
    if not result.ok:
        raise KBNotFoundError(result.root)
    return result.root
