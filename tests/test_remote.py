"""Tests for remote path parsing."""

import pytest

from gscp.google import RemotePathError
from gscp.storage.remote import (
    RemotePath,
    is_remote,
    parse_bucket_path,
    parse_object_path,
    split_remote,
)


class TestSplitRemote:
    """Test splitting on @ and :."""

    @pytest.mark.parametrize(
        ("remote", "expected"),
        [
            ("p@b:o", ("p", "b", "o")),
            ("p@b", ("p", "b")),
            ("p", ("p",)),
            ("my-project@my-bucket:dir/file.txt", ("my-project", "my-bucket", "dir/file.txt")),
        ],
    )
    def test_fields_in_order(self, remote, expected):
        """Should return the non-delimiter substrings in order."""
        assert split_remote(remote) == expected

    def test_empty_fields_dropped(self):
        """Should collapse runs of delimiters."""
        assert split_remote("@p@@b::o:") == ("p", "b", "o")

    def test_extra_fields_kept(self):
        """Should split on every delimiter."""
        assert split_remote("p@b:o:extra") == ("p", "b", "o", "extra")

    def test_empty_string(self):
        """Should return no fields for an empty string."""
        assert split_remote("") == ()


class TestParseObjectPath:
    """Test parsing paths that name an object."""

    def test_full_path(self):
        """Should return project, bucket and object."""
        assert parse_object_path("p@b:o") == RemotePath("p", "b", "o")

    def test_bucket_only_fails(self):
        """Should reject a path without an object."""
        with pytest.raises(RemotePathError, match="project@bucket:object"):
            parse_object_path("p@b")

    def test_project_only_fails(self):
        """Should reject a bare project."""
        with pytest.raises(RemotePathError):
            parse_object_path("p")

    def test_error_is_value_error(self):
        """Should be catchable as ValueError."""
        with pytest.raises(ValueError):
            parse_object_path("p@b")


class TestParseBucketPath:
    """Test parsing paths that name a bucket."""

    def test_bucket_path(self):
        """Should return project and bucket with no object."""
        path = parse_bucket_path("p@b")
        assert path == RemotePath("p", "b")
        assert path.object is None

    def test_object_kept_when_present(self):
        """Should keep a third field as the object."""
        assert parse_bucket_path("p@b:o").object == "o"

    def test_project_only_fails(self):
        """Should reject a bare project."""
        with pytest.raises(RemotePathError, match="project@bucket"):
            parse_bucket_path("p")


class TestRemotePath:
    """Test RemotePath helpers."""

    def test_str_round_trips_object_path(self):
        """Should format back to project@bucket:object."""
        assert str(RemotePath("p", "b", "o")) == "p@b:o"

    def test_str_bucket_path(self):
        """Should omit the object when absent."""
        assert str(RemotePath("p", "b")) == "p@b"

    def test_is_remote(self):
        """Should detect remote paths by the @ delimiter."""
        assert is_remote("p@b:o")
        assert is_remote("p@b")
        assert not is_remote("local/file.txt")
        assert not is_remote("project")
