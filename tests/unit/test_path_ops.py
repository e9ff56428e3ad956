"""Tests for caller-facing copy_path / move_path."""

from pathlib import Path

import pytest

from kbingest.behavior import Behavior
from kbingest.exceptions import (
    InvalidPathError,
    InvalidSubfolderOperationError,
    MergeIOError,
    PathEscapeError,
    SourceNotExistsError,
)
from kbingest.path_ops import SyncOptions, copy_path, move_path
from tests.helpers.io import read_tree, write_tree
from tests.helpers.memfs import InMemoryFileSystem

ROOT = "/dataset"


@pytest.fixture
def fs() -> InMemoryFileSystem:
    return InMemoryFileSystem(
        {
            "/dataset/docs/a.md": "A",
            "/dataset/docs/sub/b.md": "B",
            "/dataset/readme.md": "R",
        }
    )


class TestCopyPath:
    def test_copies_directory(self, fs):
        result = copy_path(fs, "docs", "guides", ROOT)
        assert result.destination == Path("/dataset/guides")
        assert fs.files_under("/dataset/guides") == {"a.md": b"A", "sub/b.md": b"B"}
        assert fs.exists("/dataset/docs/a.md")

    def test_copies_file_to_explicit_name(self, fs):
        result = copy_path(fs, "readme.md", "docs/intro.md", ROOT)
        assert result.destination == Path("/dataset/docs/intro.md")
        assert fs.read_file("/dataset/docs/intro.md") == b"R"

    def test_copies_file_into_existing_directory(self, fs):
        result = copy_path(fs, "readme.md", "docs", ROOT)
        assert result.destination == Path("/dataset/docs/readme.md")

    def test_copies_file_into_new_directory_without_suffix(self, fs):
        copy_path(fs, "readme.md", "archive/2024", ROOT)
        assert fs.read_file("/dataset/archive/2024/readme.md") == b"R"

    def test_same_source_and_target_is_noop(self, fs):
        result = copy_path(fs, "docs", "docs", ROOT)
        assert result.skipped
        assert fs.mutations == []

    def test_escape_raises_before_any_write(self, fs):
        with pytest.raises(PathEscapeError):
            copy_path(fs, "readme.md", "../outside.md", ROOT)
        assert fs.mutations == []
        assert not fs.exists("/outside.md")

    def test_absolute_paths_are_rejected(self, fs):
        with pytest.raises(InvalidPathError):
            copy_path(fs, "/dataset/readme.md", "copy.md", ROOT)
        assert fs.mutations == []

    def test_missing_source(self, fs):
        with pytest.raises(SourceNotExistsError):
            copy_path(fs, "nope", "other", ROOT)

    def test_copy_into_own_subfolder_is_rejected(self, fs):
        with pytest.raises(InvalidSubfolderOperationError):
            copy_path(fs, "docs", "docs/nested", ROOT)
        assert not fs.exists("/dataset/docs/nested")

    def test_skipped_source_folder_writes_nothing(self, fs):
        opts = SyncOptions(folder_behavior={"docs": Behavior.SKIP})
        result = copy_path(fs, "docs", "guides", ROOT, opts)
        assert result.skipped
        assert not fs.exists("/dataset/guides")

    def test_skipped_file_creates_no_directories(self, fs):
        result = copy_path(fs, "readme.md", "archive/2024", ROOT, SyncOptions(default_behavior=Behavior.SKIP))
        assert result.skipped
        assert result.destination is None
        assert fs.mutations == []

    def test_file_key_in_folder_map_is_honoured(self, fs):
        opts = SyncOptions(folder_behavior={"readme.md": Behavior.SKIP})
        assert copy_path(fs, "readme.md", "docs/intro.md", ROOT, opts).skipped
        assert not fs.exists("/dataset/docs/intro.md")

    def test_add_keeps_existing_file_on_rerun(self, fs):
        opts = SyncOptions(default_behavior=Behavior.ADD)
        copy_path(fs, "docs", "guides", ROOT, opts)
        fs.write_file("/dataset/guides/a.md", "X")
        copy_path(fs, "docs", "guides", ROOT, opts)
        assert fs.read_file("/dataset/guides/a.md") == b"X"

    def test_add_file_copy_reports_skip(self, fs):
        opts = SyncOptions(default_behavior=Behavior.ADD)
        fs.write_file("/dataset/docs/readme.md", "existing")
        result = copy_path(fs, "readme.md", "docs", ROOT, opts)
        assert result.skipped
        assert fs.read_file("/dataset/docs/readme.md") == b"existing"

    def test_io_failure_is_wrapped(self, fs):
        def failing_read(path):
            raise OSError("boom")

        fs.read_file = failing_read  # type: ignore[method-assign]
        with pytest.raises(MergeIOError) as exc_info:
            copy_path(fs, "docs", "guides", ROOT)
        assert exc_info.value.code == "IO_ERROR"
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_backslash_paths(self, fs):
        copy_path(fs, "docs\\sub", "guides\\sub", ROOT)
        assert fs.read_file("/dataset/guides/sub/b.md") == b"B"

    def test_on_local_disk(self, tmp_path, local_fs):
        write_tree(tmp_path, {"docs/a.md": "A", "docs/sub/b.md": "B"})
        copy_path(local_fs, "docs", "guides", tmp_path)
        assert read_tree(tmp_path / "guides") == {"a.md": "A", "sub/b.md": "B"}


class TestMovePath:
    def test_moves_directory(self, fs):
        move_path(fs, "docs", "guides", ROOT)
        assert fs.files_under("/dataset/guides") == {"a.md": b"A", "sub/b.md": b"B"}
        assert not fs.exists("/dataset/docs")

    def test_moves_file(self, fs):
        result = move_path(fs, "readme.md", "docs/readme-moved.md", ROOT)
        assert result.destination == Path("/dataset/docs/readme-moved.md")
        assert not fs.exists("/dataset/readme.md")
        assert fs.read_file("/dataset/docs/readme-moved.md") == b"R"

    def test_add_with_existing_destination_does_nothing(self, fs):
        fs.mkdir("/dataset/guides", recursive=True)
        fs.mutations.clear()
        result = move_path(fs, "docs", "guides", ROOT, SyncOptions(default_behavior=Behavior.ADD))
        assert result.skipped
        assert fs.mutations == []
        assert fs.exists("/dataset/docs/a.md")

    def test_escape_raises_before_any_write(self, fs):
        with pytest.raises(PathEscapeError):
            move_path(fs, "docs", "../../elsewhere", ROOT)
        assert fs.mutations == []

    def test_move_into_own_subfolder_is_rejected(self, fs):
        with pytest.raises(InvalidSubfolderOperationError) as exc_info:
            move_path(fs, "docs", "docs/inner", ROOT)
        assert exc_info.value.code == "INVALID_SUBFOLDER_MOVE"
        assert fs.mutations == []

    def test_on_local_disk(self, tmp_path, local_fs):
        write_tree(tmp_path, {"docs/a.md": "A", "docs/sub/b.md": "B"})
        move_path(local_fs, "docs", "guides", tmp_path)
        assert not (tmp_path / "docs").exists()
        assert read_tree(tmp_path / "guides") == {"a.md": "A", "sub/b.md": "B"}
