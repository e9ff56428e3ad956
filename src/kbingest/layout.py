"""Recognize a knowledge-base layout and locate one nested inside an extraction."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from kbingest.ports import DirEntry, FileSystem, StrPath

__all__ = [
    "DEFAULT_MARKERS",
    "KBMarkers",
    "NestedSearch",
    "find_nested_kb",
    "is_valid_kb",
    "search_nested_kb",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class KBMarkers:
    """Names that identify a knowledge base at the root of a directory."""

    config_dir: str = ".pair"
    root_manifest: str = "AGENTS.md"
    manifest_file: str = "manifest.json"
    staging_dir: str = ".zip-temp"


DEFAULT_MARKERS = KBMarkers()


@dataclass(frozen=True, slots=True)
class NestedSearch:
    """Outcome of looking for a KB one level down.

    ``path`` is None when nothing qualified, or when several subdirectories
    did (``ambiguous`` is then True).
    """

    path: Path | None = None
    ambiguous: bool = False

    @property
    def found(self) -> bool:
        return self.path is not None


def _list(fs: FileSystem, directory: StrPath) -> list[DirEntry]:
    try:
        return fs.read_dir(directory)
    except OSError:
        return []


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def is_valid_kb(fs: FileSystem, directory: StrPath, markers: KBMarkers = DEFAULT_MARKERS) -> bool:
    """Return True if ``directory`` directly holds a knowledge base.

    A KB has the config directory, the root manifest, or a manifest file
    accompanied by at least one other non-hidden entry. A missing or empty
    directory is simply not a KB.
    """
    entries = _list(fs, directory)
    names = {e.name for e in entries}

    if markers.config_dir in names or markers.root_manifest in names:
        return True
    if markers.manifest_file in names:
        return any(e.name != markers.manifest_file and not _is_hidden(e.name) for e in entries)
    return False


def search_nested_kb(fs: FileSystem, directory: StrPath, markers: KBMarkers = DEFAULT_MARKERS) -> NestedSearch:
    """Look for a KB in the staging subdirectory or in the only visible subdirectory."""
    directory = Path(directory)
    entries = _list(fs, directory)

    staging = next((e for e in entries if e.is_directory and e.name == markers.staging_dir), None)
    if staging is not None and is_valid_kb(fs, directory / staging.name, markers):
        return NestedSearch(path=directory / staging.name)

    visible = [e for e in entries if e.is_directory and not _is_hidden(e.name)]
    if len(visible) == 1:
        candidate = directory / visible[0].name
        if is_valid_kb(fs, candidate, markers):
            return NestedSearch(path=candidate)
        return NestedSearch()

    qualifying = [e.name for e in visible if is_valid_kb(fs, directory / e.name, markers)]
    if len(qualifying) > 1:
        logger.warning("Ambiguous KB layout in %s: %s all look like knowledge bases", directory, ", ".join(qualifying))
        return NestedSearch(ambiguous=True)
    return NestedSearch()


def find_nested_kb(fs: FileSystem, directory: StrPath, markers: KBMarkers = DEFAULT_MARKERS) -> Path | None:
    """Return the nested KB directory, or None when absent or ambiguous."""
    return search_nested_kb(fs, directory, markers).path
