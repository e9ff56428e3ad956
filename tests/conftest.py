from __future__ import annotations

import logging

import pytest

from kbingest.filesystem import LocalFileSystem
from tests.helpers.memfs import InMemoryFileSystem


@pytest.fixture(autouse=True)
def _restore_root_logger():
    # Tests that call configure_logging() must not leak handlers into others.
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def memfs() -> InMemoryFileSystem:
    return InMemoryFileSystem()


@pytest.fixture
def local_fs() -> LocalFileSystem:
    return LocalFileSystem()
