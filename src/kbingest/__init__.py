"""Knowledge-base archive ingestion and policy-driven directory merging."""

from kbingest.archive import ZipArchiveExtractor, ZipValidationError, ZipValidationLimits
from kbingest.behavior import Behavior, normalize_key, resolve_behavior
from kbingest.exceptions import (
    AmbiguousKBLayoutError,
    ExtractionError,
    InvalidPathError,
    InvalidSubfolderOperationError,
    KBIngestError,
    KBNotFoundError,
    MergeIOError,
    PathEscapeError,
    SourceNotExistsError,
)
from kbingest.filesystem import LocalFileSystem
from kbingest.ingest import ingest_archive, install_from_directory, require_valid
from kbingest.layout import DEFAULT_MARKERS, KBMarkers, find_nested_kb, is_valid_kb
from kbingest.merge import CopyContext, copy_directory, copy_file, copy_tree, move_directory_contents
from kbingest.normalize import NormalizeOutcome, NormalizeResult, normalize_extracted_kb, normalize_kb
from kbingest.path_ops import PathOperationResult, SyncOptions, copy_path, move_path
from kbingest.ports import ArchiveExtractor, DirEntry, FileStat, FileSystem
from kbingest.validation import PathValidationContext, validate_paths, validate_source_exists

__all__ = [
    "DEFAULT_MARKERS",
    "AmbiguousKBLayoutError",
    "ArchiveExtractor",
    "Behavior",
    "CopyContext",
    "DirEntry",
    "ExtractionError",
    "FileStat",
    "FileSystem",
    "InvalidPathError",
    "InvalidSubfolderOperationError",
    "KBIngestError",
    "KBMarkers",
    "KBNotFoundError",
    "LocalFileSystem",
    "MergeIOError",
    "NormalizeOutcome",
    "NormalizeResult",
    "PathEscapeError",
    "PathOperationResult",
    "PathValidationContext",
    "SourceNotExistsError",
    "SyncOptions",
    "ZipArchiveExtractor",
    "ZipValidationError",
    "ZipValidationLimits",
    "copy_directory",
    "copy_file",
    "copy_path",
    "copy_tree",
    "find_nested_kb",
    "ingest_archive",
    "install_from_directory",
    "is_valid_kb",
    "move_directory_contents",
    "move_path",
    "normalize_extracted_kb",
    "normalize_key",
    "normalize_kb",
    "require_valid",
    "resolve_behavior",
    "validate_paths",
    "validate_source_exists",
]
