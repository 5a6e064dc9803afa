"""Storage clients for local paths and S3."""

from typing import Optional, Union

from .local import LocalClient
from .object import Object, ObjectType, StorageClass
from .options import StorageOptions
from .s3 import S3Client
from .url import URL

StorageClient = Union[LocalClient, S3Client]


def new_client(url: URL, options: Optional[StorageOptions] = None) -> StorageClient:
    """Create the storage client that serves a location.

    Args:
        url: Location the client will operate on
        options: Connection settings for remote storage

    Returns:
        S3Client for remote locations, LocalClient otherwise
    """
    if url.is_remote:
        return S3Client(options)
    return LocalClient()


__all__ = [
    "LocalClient",
    "Object",
    "ObjectType",
    "S3Client",
    "StorageClass",
    "StorageClient",
    "StorageOptions",
    "URL",
    "new_client",
]
