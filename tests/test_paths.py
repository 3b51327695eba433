"""Tests for source path handling and destination naming helpers."""

import os

import pytest

from bundlefs.exceptions import InvalidNamePrefixError, InvalidSourcePathError
from bundlefs.paths import (
    absolute_or_relative,
    destination_path,
    file_suffix,
    is_valid_entry_name,
    join_source_path,
    relative_path,
    resolve_base_dir,
    source_base_name,
    source_parent,
    validate_name_prefix,
    validate_source_path,
)


class TestRelativePath:
    """Test relative_path function."""

    def test_dot_root_keeps_path(self):
        """Root "." leaves walked paths unchanged."""
        assert relative_path(".", "a/b.txt") == "a/b.txt"
        assert relative_path(".", "a.txt") == "a.txt"

    def test_strips_root_prefix(self):
        """The root segment and its separator are removed."""
        assert relative_path("root", "root/a.txt") == "a.txt"
        assert relative_path("root", "root/sub/b.js") == "sub/b.js"

    def test_strips_multi_segment_root(self):
        """Multi-segment roots are stripped as a whole."""
        assert relative_path("web/static", "web/static/css/site.css") == "css/site.css"

    def test_root_itself(self):
        """The root maps to "."."""
        assert relative_path("root", "root") == "."

    def test_similar_prefix_is_not_stripped(self):
        """Only a full segment match counts as the root prefix."""
        assert relative_path("root", "rootless/a.txt") == "rootless/a.txt"


class TestDestinationPath:
    """Test destination_path function."""

    def test_uses_platform_separator(self, tmp_path):
        """Relative paths are joined with os.path.join."""
        assert destination_path(str(tmp_path), "a/b/c.txt") == os.path.join(
            str(tmp_path), "a", "b", "c.txt"
        )

    def test_dot_is_destination(self, tmp_path):
        """"." refers to the destination itself."""
        assert destination_path(str(tmp_path), ".") == str(tmp_path)


class TestFileSuffix:
    """Test file_suffix function."""

    @pytest.mark.parametrize(
        "path, expected",
        [
            ("a.txt", ".txt"),
            ("dir/archive.tar.gz", ".gz"),
            ("dir.d/tool", ""),
            ("bin/tool", ""),
            (".env", ".env"),
            ("trailing.", "."),
        ],
    )
    def test_suffix(self, path, expected):
        """The suffix starts at the last dot of the base name."""
        assert file_suffix(path) == expected


class TestValidateSourcePath:
    """Test validate_source_path function."""

    @pytest.mark.parametrize("path", [".", "a", "a/b", "a/b.c/d", "..a", "a..b"])
    def test_valid(self, path):
        """Well-formed paths are returned unchanged."""
        assert validate_source_path(path) == path

    @pytest.mark.parametrize(
        "path", ["", "/a", "a/", "a//b", "./a", "a/.", "..", "a/../b", "a\x00b"]
    )
    def test_invalid(self, path):
        """Malformed paths raise InvalidSourcePathError."""
        with pytest.raises(InvalidSourcePathError) as exc_info:
            validate_source_path(path)
        assert exc_info.value.path == path


class TestEntryNames:
    """Test entry name and join helpers."""

    def test_is_valid_entry_name(self):
        """Single safe elements are accepted."""
        assert is_valid_entry_name("file.txt")
        assert not is_valid_entry_name("")
        assert not is_valid_entry_name(".")
        assert not is_valid_entry_name("..")
        assert not is_valid_entry_name("a/b")
        assert not is_valid_entry_name("a\x00")

    def test_join_and_split(self):
        """Joining under "." yields the bare name."""
        assert join_source_path(".", "a") == "a"
        assert join_source_path("a/b", "c") == "a/b/c"
        assert source_base_name("a/b/c") == "c"
        assert source_base_name("c") == "c"
        assert source_parent("a/b/c") == "a/b"
        assert source_parent("c") == "."


class TestNamePrefix:
    """Test validate_name_prefix function."""

    def test_plain_prefix(self):
        """Plain prefixes pass, None becomes empty."""
        assert validate_name_prefix("assets") == "assets"
        assert validate_name_prefix("") == ""
        assert validate_name_prefix(None) == ""

    @pytest.mark.parametrize("prefix", ["a/b", "a\x00b"])
    def test_rejected(self, prefix):
        """Separators and null bytes are rejected."""
        with pytest.raises(InvalidNamePrefixError) as exc_info:
            validate_name_prefix(prefix)
        assert exc_info.value.field == "prefix"


class TestBaseDir:
    """Test base directory helpers."""

    def test_empty_means_cwd(self):
        """Empty and None base directories resolve to "."."""
        assert resolve_base_dir("") == "."
        assert resolve_base_dir(None) == "."

    def test_explicit(self, tmp_path):
        """Explicit base directories pass through."""
        assert resolve_base_dir(str(tmp_path)) == str(tmp_path)
        assert resolve_base_dir(tmp_path) == str(tmp_path)

    def test_absolute_or_relative(self, mocker):
        """A failing abspath keeps the relative path."""
        assert os.path.isabs(absolute_or_relative("x"))
        mocker.patch("bundlefs.paths.os.path.abspath", side_effect=OSError("gone"))
        assert absolute_or_relative("x") == "x"
