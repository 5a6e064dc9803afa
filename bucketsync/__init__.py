"""bucketsync - Sync local directories and S3 buckets."""

from .exceptions import (
    BucketSyncError,
    ExecutionError,
    InvalidURLError,
    MultiError,
    ObjectNotFoundError,
    StorageError,
    TooManyOpenFilesError,
    ValidationError,
)
from .storage import URL, Object, StorageOptions
from .sync import SyncEngine, SyncOptions, SyncResult, SyncStrategy

__version__ = "0.1.0"

__all__ = [
    "SyncEngine",
    "SyncOptions",
    "SyncResult",
    "SyncStrategy",
    "StorageOptions",
    "URL",
    "Object",
    "BucketSyncError",
    "ExecutionError",
    "InvalidURLError",
    "MultiError",
    "ObjectNotFoundError",
    "StorageError",
    "TooManyOpenFilesError",
    "ValidationError",
]
