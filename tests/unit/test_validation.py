"""Tests for containment and existence validation."""

import posixpath

import pytest
from hypothesis import given
from hypothesis import strategies as st

from kbingest.exceptions import (
    InvalidPathError,
    InvalidSubfolderOperationError,
    PathEscapeError,
    SourceNotExistsError,
)
from kbingest.validation import (
    PathValidationContext,
    ensure_relative,
    escapes_root,
    validate_paths,
    validate_source_exists,
    validate_subfolder_operation,
)
from tests.helpers.memfs import InMemoryFileSystem

ROOT = "/dataset"

segment = st.text(alphabet="abcxyz0123_-", min_size=1, max_size=8)
inside_rel = st.lists(segment, min_size=1, max_size=5).map("/".join)


def _ctx(source: str, target: str) -> PathValidationContext:
    return PathValidationContext(
        source=source,
        target=target,
        resolved_source_path=posixpath.join(ROOT, source),
        resolved_target_path=posixpath.join(ROOT, target),
        dataset_root=ROOT,
    )


class TestValidatePaths:
    def test_paths_inside_root_pass(self):
        validate_paths(_ctx("docs/a.md", "guides/a.md"))

    def test_identical_source_and_target_is_a_noop(self):
        validate_paths(_ctx("../escape.md", "../escape.md"))

    def test_target_escape_is_rejected(self):
        with pytest.raises(PathEscapeError) as exc_info:
            validate_paths(_ctx("docs/a.md", "../outside.md"))
        err = exc_info.value
        assert err.code == "PATH_ESCAPE"
        assert err.source == "docs/a.md"
        assert err.target == "../outside.md"
        assert "docs/a.md" in str(err)
        assert "../outside.md" in str(err)

    def test_source_escape_is_rejected(self):
        with pytest.raises(PathEscapeError):
            validate_paths(_ctx("../../etc/passwd", "docs/passwd"))

    def test_traversal_hidden_in_middle_is_rejected(self):
        with pytest.raises(PathEscapeError):
            validate_paths(_ctx("docs/a.md", "docs/../../outside.md"))

    def test_names_starting_with_dots_are_not_traversal(self):
        validate_paths(_ctx("docs/a.md", "..hidden/a.md"))

    @given(source=inside_rel, target=inside_rel)
    def test_never_raises_for_paths_inside_root(self, source, target):
        validate_paths(_ctx(source, target))

    @given(source=inside_rel, target=inside_rel, depth=st.integers(min_value=1, max_value=4))
    def test_always_raises_for_paths_outside_root(self, source, target, depth):
        escaping = "/".join([".."] * (depth + target.count("/") + 1)) + "/" + target
        with pytest.raises(PathEscapeError):
            validate_paths(_ctx(source, escaping))


def test_escapes_root_is_lexical():
    assert not escapes_root("/dataset", "/dataset")
    assert not escapes_root("/dataset", "/dataset/a/../b")
    assert escapes_root("/dataset", "/dataset-other/file")
    assert escapes_root("/dataset", "/")


class TestValidateSourceExists:
    def test_returns_stat_for_existing_path(self):
        fs = InMemoryFileSystem({"/dataset/a.md": "x"})
        stat = validate_source_exists(fs, "/dataset/a.md")
        assert stat.is_file
        assert not stat.is_directory

    def test_missing_path_raises_naming_the_path(self):
        fs = InMemoryFileSystem()
        with pytest.raises(SourceNotExistsError) as exc_info:
            validate_source_exists(fs, "/dataset/missing.md")
        assert exc_info.value.code == "SOURCE_NOT_EXISTS"
        assert exc_info.value.source_path == "/dataset/missing.md"


def test_ensure_relative_rejects_absolute_paths():
    ensure_relative("a", "b/c")
    with pytest.raises(InvalidPathError):
        ensure_relative("/a", "b")
    with pytest.raises(InvalidPathError):
        ensure_relative("a", "/b")


class TestValidateSubfolderOperation:
    def test_copy_into_own_subfolder_is_rejected(self):
        with pytest.raises(InvalidSubfolderOperationError) as exc_info:
            validate_subfolder_operation("/d/docs", "/d/docs/archive", "docs", "docs/archive", "copy")
        assert exc_info.value.code == "INVALID_SUBFOLDER_COPY"

    def test_move_code_names_the_operation(self):
        with pytest.raises(InvalidSubfolderOperationError) as exc_info:
            validate_subfolder_operation("/d/docs", "/d/docs/x", "docs", "docs/x", "move")
        assert exc_info.value.code == "INVALID_SUBFOLDER_MOVE"

    def test_sibling_and_same_directory_are_allowed(self):
        validate_subfolder_operation("/d/docs", "/d/docs-copy", "docs", "docs-copy", "copy")
        validate_subfolder_operation("/d/docs", "/d/docs", "docs", "docs", "copy")
