"""Utility functions for bucketsync."""

import fnmatch
import os
import re
from datetime import datetime, timezone
from typing import Optional

# =============================================================================
# Constants
# =============================================================================

# Characters that turn a location into a wildcard expression
GLOB_CHARACTERS: str = "*?["

# Maximum number of keys per S3 DeleteObjects request
DELETE_BATCH_SIZE: int = 1000

# Default number of parallel workers
DEFAULT_WORKERS: int = 16

# Default retry attempts for storage requests
DEFAULT_MAX_RETRIES: int = 10


# =============================================================================
# Path utilities
# =============================================================================


def to_slash(path: str) -> str:
    """Replace the host path separator with forward slashes.

    Args:
        path: Path in host notation

    Returns:
        Path using forward slashes on all platforms

    Examples:
        >>> to_slash("sub/c.txt")
        'sub/c.txt'
    """
    if os.sep == "/":
        return path
    return path.replace(os.sep, "/")


def from_slash(path: str) -> str:
    """Replace forward slashes with the host path separator."""
    if os.sep == "/":
        return path
    return path.replace("/", os.sep)


def has_glob(value: str) -> bool:
    """Check whether a string contains glob characters."""
    return any(char in value for char in GLOB_CHARACTERS)


def wildcard_to_regex(pattern: str) -> "re.Pattern[str]":
    """Compile a wildcard expression into a regular expression.

    ``*`` matches across ``/`` so that ``prefix/*`` expands recursively.

    Args:
        pattern: Wildcard expression (e.g., "dir/*.gz")

    Returns:
        Compiled regular expression matching the full string
    """
    return re.compile(fnmatch.translate(pattern))


def matches_any(value: str, patterns: list[str]) -> bool:
    """Check whether a value matches any of the given wildcard patterns."""
    return any(fnmatch.fnmatchcase(value, pattern) for pattern in patterns)


# =============================================================================
# Time and size formatting
# =============================================================================


def timestamp_to_datetime(timestamp: Optional[float]) -> Optional[datetime]:
    """Convert a Unix timestamp into a timezone-aware UTC datetime."""
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB", "256 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / 1024 / 1024:.1f} MB"
    else:
        return f"{size_bytes / 1024 / 1024 / 1024:.1f} GB"
