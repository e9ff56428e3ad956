"""Per-path conflict policies used when merging one tree into another."""

from __future__ import annotations

import re
from collections.abc import Mapping
from enum import Enum

from kbingest.exceptions import InvalidBehaviorError

__all__ = ["Behavior", "coerce_behavior", "normalize_key", "resolve_behavior"]

_LEADING_DOT_SLASH = re.compile(r"^(?:\./)+")


class Behavior(str, Enum):
    """What to do with a source entry when merging it into a destination."""

    OVERWRITE = "overwrite"
    ADD = "add"
    SKIP = "skip"


def normalize_key(path: str) -> str:
    """Normalize a relative path into a folder-behavior key.

    >>> normalize_key(".\\\\docs\\\\guides/")
    'docs/guides'
    """
    key = path.replace("\\", "/")
    key = _LEADING_DOT_SLASH.sub("", key)
    key = key.strip("/")
    return "" if key == "." else key


def coerce_behavior(value: Behavior | str) -> Behavior:
    """Parse a behavior name (case-insensitive) into a ``Behavior``."""
    if isinstance(value, Behavior):
        return value
    try:
        return Behavior(str(value).strip().lower())
    except ValueError as err:
        raise InvalidBehaviorError(value) from err


def resolve_behavior(
    relative_key: str,
    folder_behavior: Mapping[str, Behavior] | None,
    default_behavior: Behavior,
) -> Behavior:
    """Return the behavior for ``relative_key``.

    The most specific folder-map key wins: the key itself, then each of its
    ancestors walking upward, then the root key ``""``. Unmatched keys fall
    back to ``default_behavior``.
    """
    if not folder_behavior:
        return default_behavior

    normalized = {normalize_key(k): v for k, v in folder_behavior.items()}
    key = normalize_key(relative_key)

    if key in normalized:
        return normalized[key]
    while "/" in key:
        key = key.rsplit("/", 1)[0]
        if key in normalized:
            return normalized[key]
    if "" in normalized:
        return normalized[""]
    return default_behavior
