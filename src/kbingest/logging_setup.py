"""Centralized logging configuration for kbingest."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Final, cast

from rich.console import Console
from rich.logging import RichHandler

__all__ = ["configure_logging", "console"]

_LOG_LEVEL_ENV: Final[str] = "KBINGEST_LOG_LEVEL"
_DEFAULT_LEVEL_NAME: Final[str] = "INFO"

console = Console(stderr=True)

if TYPE_CHECKING:

    class _ManagedRichHandler(RichHandler):
        _kbingest_managed: bool
else:
    _ManagedRichHandler = RichHandler


def _resolve_level(level: str | None = None) -> int:
    """Return the logging level from the argument or the environment."""
    level_name = (level or os.getenv(_LOG_LEVEL_ENV, _DEFAULT_LEVEL_NAME)).upper()
    return getattr(logging, level_name, logging.INFO)


def configure_logging(level: str | None = None) -> logging.Handler:
    """Install a single Rich handler on the root logger.

    Calling this again reuses the handler installed the first time.
    """
    root_logger = logging.getLogger()

    managed_handler: _ManagedRichHandler | None = None
    for handler in root_logger.handlers:
        if isinstance(handler, RichHandler) and getattr(handler, "_kbingest_managed", False):
            managed_handler = cast(_ManagedRichHandler, handler)
            break

    if managed_handler is None:
        root_logger.handlers.clear()
        managed_handler = _ManagedRichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            markup=False,
        )
        managed_handler.setFormatter(logging.Formatter("%(message)s"))
        managed_handler._kbingest_managed = True
        root_logger.addHandler(managed_handler)

    root_logger.setLevel(_resolve_level(level))
    logging.captureWarnings(True)
    return managed_handler
