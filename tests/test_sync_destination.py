"""Tests for destination resolution."""

import os

import pytest

from bucketsync.storage import URL, Object, ObjectType
from bucketsync.sync import generate_destination_url, is_batch_source


def source_object(path: str, relative: str) -> URL:
    return URL.parse(path, raw=True).set_relative(relative)


class TestIsBatchSource:
    """Tests for is_batch_source."""

    def test_wildcard(self):
        assert is_batch_source(URL.parse("s3://bucket/*.txt"))
        assert is_batch_source(URL.parse("dir/*"))

    def test_remote_prefix_and_bucket(self):
        assert is_batch_source(URL.parse("s3://bucket/prefix/"))
        assert is_batch_source(URL.parse("s3://bucket"))

    def test_remote_key(self):
        assert not is_batch_source(URL.parse("s3://bucket/key"))

    def test_local_directory(self):
        """Test that a local directory is a batch source."""
        url = URL.parse("folder")
        stat = Object(url=url, type=ObjectType.DIRECTORY)
        assert is_batch_source(url, stat)

    def test_local_file(self):
        url = URL.parse("folder/a.txt")
        assert not is_batch_source(url, Object(url=url))

    def test_local_without_stat(self):
        """Test that an unknown local path is treated as a single object."""
        assert not is_batch_source(URL.parse("missing"))


class TestGenerateDestinationUrl:
    """Tests for generate_destination_url."""

    @pytest.mark.parametrize(
        "destination, expected",
        [
            ("s3://bucket/prefix/", "s3://bucket/prefix/sub/c.txt"),
            ("s3://bucket", "s3://bucket/sub/c.txt"),
            ("s3://bucket/prefix", "s3://bucket/prefix/sub/c.txt"),
        ],
    )
    def test_remote_batch(self, destination, expected):
        """Test that batch runs keep the relative path remotely."""
        src = source_object("src/sub/c.txt", "sub/c.txt")
        url = generate_destination_url(src, URL.parse(destination), is_batch=True)
        assert str(url) == expected

    def test_remote_single_to_prefix(self):
        """Test that a single object uses its base name below a prefix."""
        src = source_object("dir/sub/file.txt", "sub/file.txt")
        url = generate_destination_url(src, URL.parse("s3://bucket/in/"), False)
        assert str(url) == "s3://bucket/in/file.txt"

    def test_remote_single_to_key(self):
        """Test that a single object to an exact key uses the key as is."""
        src = source_object("dir/file.txt", "file.txt")
        url = generate_destination_url(src, URL.parse("s3://bucket/renamed"), False)
        assert str(url) == "s3://bucket/renamed"

    def test_local_batch(self):
        """Test that batch runs keep the relative path locally."""
        src = source_object("s3://bucket/prefix/sub/c.txt", "sub/c.txt")
        url = generate_destination_url(src, URL.parse("dst"), is_batch=True)
        assert url.path == os.path.join("dst", "sub", "c.txt")

    def test_local_single(self):
        """Test that a single object lands below a local directory."""
        src = source_object("s3://bucket/prefix/sub/c.txt", "sub/c.txt")
        url = generate_destination_url(src, URL.parse("dst/"), is_batch=False)
        assert url.path == os.path.join("dst", "c.txt")

    def test_destination_is_not_modified(self):
        """Test that the destination base stays untouched."""
        destination = URL.parse("s3://bucket/prefix/")
        generate_destination_url(
            source_object("a/b.txt", "b.txt"), destination, is_batch=True
        )
        assert str(destination) == "s3://bucket/prefix/"
