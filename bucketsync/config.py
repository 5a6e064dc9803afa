"""Configuration management for bucketsync.

Defaults are read from environment variables. Command line options take
precedence over everything defined here.
"""

import os
from typing import Optional

from .utils import DEFAULT_MAX_RETRIES, DEFAULT_WORKERS

TRUE_VALUES = ("1", "true", "yes", "on")


class Config:
    """Reads bucketsync settings from the environment."""

    def __init__(self, environ: Optional[dict[str, str]] = None):
        """Initialize configuration.

        Args:
            environ: Mapping to read from (defaults to os.environ)
        """
        self._environ = environ if environ is not None else os.environ

    def _get(self, *names: str) -> Optional[str]:
        for name in names:
            value = self._environ.get(name)
            if value:
                return value
        return None

    def _get_int(self, name: str, default: int) -> int:
        value = self._get(name)
        if value is None:
            return default
        try:
            number = int(value)
        except ValueError:
            return default
        return number if number > 0 else default

    @property
    def endpoint_url(self) -> Optional[str]:
        """Custom S3 endpoint, e.g. for S3-compatible providers."""
        return self._get("BUCKETSYNC_ENDPOINT_URL", "S3_ENDPOINT_URL")

    @property
    def region(self) -> Optional[str]:
        return self._get("AWS_REGION", "AWS_DEFAULT_REGION")

    @property
    def no_verify_ssl(self) -> bool:
        value = self._get("BUCKETSYNC_NO_VERIFY_SSL")
        return value is not None and value.lower() in TRUE_VALUES

    def get_default_workers(self) -> int:
        """Get the default number of parallel workers."""
        return self._get_int("BUCKETSYNC_WORKERS", DEFAULT_WORKERS)

    def get_max_retries(self) -> int:
        """Get the number of retry attempts for storage requests."""
        return self._get_int("BUCKETSYNC_MAX_RETRIES", DEFAULT_MAX_RETRIES)


config = Config()
