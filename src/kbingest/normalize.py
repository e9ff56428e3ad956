"""Bring an extracted knowledge base up to the root of its staging directory."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from kbingest.layout import DEFAULT_MARKERS, KBMarkers, is_valid_kb, search_nested_kb
from kbingest.merge import move_directory_contents
from kbingest.ports import FileSystem, StrPath

__all__ = ["NormalizeOutcome", "NormalizeResult", "normalize_extracted_kb", "normalize_kb"]

logger = logging.getLogger(__name__)


class NormalizeOutcome(str, Enum):
    """Terminal states of a normalization."""

    ALREADY_VALID = "already_valid"
    NESTED_FOUND = "nested_found"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True, slots=True)
class NormalizeResult:
    outcome: NormalizeOutcome
    root: Path
    nested_dir: Path | None = None

    @property
    def ok(self) -> bool:
        return self.outcome in (NormalizeOutcome.ALREADY_VALID, NormalizeOutcome.NESTED_FOUND)

    def __bool__(self) -> bool:
        return self.ok


def _relocate(fs: FileSystem, nested: Path, root: Path) -> Path:
    """Move ``nested`` to a fresh sibling so none of its children can share its name."""
    holding = root / f".kbingest-{uuid.uuid4().hex}"
    fs.mkdir(holding)
    move_directory_contents(fs, nested, holding)
    fs.rm(nested, recursive=True, force=True)
    return holding


def normalize_kb(fs: FileSystem, root: StrPath, markers: KBMarkers = DEFAULT_MARKERS) -> NormalizeResult:
    """Make ``root`` itself a valid knowledge base if the archive nested one.

    A root that is already valid is left untouched. Otherwise the contents
    of the nested KB are moved up, the nested directory removed, and the
    root checked again. Running this twice is a no-op the second time.
    """
    root = Path(root)
    if is_valid_kb(fs, root, markers):
        return NormalizeResult(NormalizeOutcome.ALREADY_VALID, root)

    search = search_nested_kb(fs, root, markers)
    if search.path is None:
        outcome = NormalizeOutcome.AMBIGUOUS if search.ambiguous else NormalizeOutcome.NOT_FOUND
        logger.info("No knowledge base found in %s (%s)", root, outcome.value)
        return NormalizeResult(outcome, root)

    logger.info("Moving nested knowledge base %s up to %s", search.path, root)
    holding = _relocate(fs, search.path, root)
    move_directory_contents(fs, holding, root)
    fs.rm(holding, recursive=True, force=True)

    if is_valid_kb(fs, root, markers):
        return NormalizeResult(NormalizeOutcome.NESTED_FOUND, root, nested_dir=search.path)
    logger.warning("Root %s is still not a knowledge base after moving %s", root, search.path)
    return NormalizeResult(NormalizeOutcome.NOT_FOUND, root, nested_dir=search.path)


def normalize_extracted_kb(fs: FileSystem, root: StrPath, markers: KBMarkers = DEFAULT_MARKERS) -> bool:
    return normalize_kb(fs, root, markers).ok
