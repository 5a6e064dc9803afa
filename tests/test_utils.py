"""Unit tests for utility functions and configuration."""

import importlib
import typing
from datetime import timezone

import pytest

from bucketsync.config import Config
from bucketsync.storage import URL, LocalClient, S3Client
from bucketsync.utils import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_WORKERS,
    format_size,
    has_glob,
    matches_any,
    timestamp_to_datetime,
    to_slash,
    wildcard_to_regex,
)


class TestFormatSize:
    """Tests for format_size function."""

    def test_bytes(self):
        assert format_size(0) == "0 B"
        assert format_size(512) == "512 B"
        assert format_size(1023) == "1023 B"

    def test_kilobytes(self):
        assert format_size(1024) == "1.0 KB"
        assert format_size(1536) == "1.5 KB"

    def test_megabytes(self):
        assert format_size(1024 * 1024) == "1.0 MB"

    def test_gigabytes(self):
        assert format_size(1024 * 1024 * 1024) == "1.0 GB"


class TestWildcards:
    """Tests for wildcard helpers."""

    @pytest.mark.parametrize(
        "value, expected",
        [("a*", True), ("a?", True), ("[ab]", True), ("plain/path.txt", False)],
    )
    def test_has_glob(self, value, expected):
        assert has_glob(value) is expected

    def test_star_crosses_separators(self):
        """Test that a star matches nested paths."""
        pattern = wildcard_to_regex("prefix/*.gz")
        assert pattern.match("prefix/a.gz")
        assert pattern.match("prefix/2024/01/a.gz")
        assert not pattern.match("other/a.gz")
        assert not pattern.match("prefix/a.gz.bak")

    def test_matches_any(self):
        assert matches_any("sub/a.log", ["*.txt", "*.log"])
        assert not matches_any("a.txt", ["*.log"])
        assert not matches_any("a.txt", [])

    def test_matches_any_is_case_sensitive(self):
        assert not matches_any("A.LOG", ["*.log"])

    def test_to_slash(self):
        assert to_slash("sub/c.txt") == "sub/c.txt"


class TestTimestamps:
    def test_timestamp_to_datetime(self):
        value = timestamp_to_datetime(0)
        assert value.tzinfo == timezone.utc
        assert value.year == 1970

    def test_none(self):
        assert timestamp_to_datetime(None) is None


class TestConfig:
    """Tests for environment configuration."""

    def test_defaults(self):
        config = Config({})
        assert config.endpoint_url is None
        assert config.region is None
        assert not config.no_verify_ssl
        assert config.get_default_workers() == DEFAULT_WORKERS
        assert config.get_max_retries() == DEFAULT_MAX_RETRIES

    def test_values_from_environment(self):
        config = Config(
            {
                "BUCKETSYNC_ENDPOINT_URL": "http://localhost:9000",
                "AWS_DEFAULT_REGION": "eu-west-1",
                "BUCKETSYNC_NO_VERIFY_SSL": "true",
                "BUCKETSYNC_WORKERS": "32",
                "BUCKETSYNC_MAX_RETRIES": "2",
            }
        )
        assert config.endpoint_url == "http://localhost:9000"
        assert config.region == "eu-west-1"
        assert config.no_verify_ssl
        assert config.get_default_workers() == 32
        assert config.get_max_retries() == 2

    def test_endpoint_fallback(self):
        config = Config({"S3_ENDPOINT_URL": "http://minio:9000"})
        assert config.endpoint_url == "http://minio:9000"

    def test_region_precedence(self):
        config = Config({"AWS_REGION": "us-east-2", "AWS_DEFAULT_REGION": "eu-west-1"})
        assert config.region == "us-east-2"

    @pytest.mark.parametrize("value", ["zero", "0", "-4", ""])
    def test_invalid_workers(self, value):
        """Test that invalid worker counts fall back to the default."""
        config = Config({"BUCKETSYNC_WORKERS": value})
        assert config.get_default_workers() == DEFAULT_WORKERS


class TestPackageImport:
    """Tests that the package modules import cleanly."""

    @pytest.mark.parametrize(
        "module",
        [
            "bucketsync.storage",
            "bucketsync.storage.local",
            "bucketsync.storage.s3",
            "bucketsync.sync",
            "bucketsync.cli",
        ],
    )
    def test_import(self, module):
        assert importlib.import_module(module) is not None

    def test_delete_annotations_resolve(self):
        """Test that methods declared after ``list`` keep builtin annotations."""
        for client_class in (LocalClient, S3Client):
            hints = typing.get_type_hints(client_class.delete)
            assert hints["urls"] == list[URL]
            assert hints["return"] is int
