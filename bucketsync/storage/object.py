"""Object descriptors produced by storage listings."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from .url import URL


class ObjectType(str, Enum):
    """Kind of a listed object."""

    FILE = "file"
    DIRECTORY = "directory"

    @property
    def is_dir(self) -> bool:
        return self == ObjectType.DIRECTORY


class StorageClass(str, Enum):
    """S3 storage classes relevant to sync."""

    STANDARD = "STANDARD"
    REDUCED_REDUNDANCY = "REDUCED_REDUNDANCY"
    STANDARD_IA = "STANDARD_IA"
    ONEZONE_IA = "ONEZONE_IA"
    INTELLIGENT_TIERING = "INTELLIGENT_TIERING"
    GLACIER_IR = "GLACIER_IR"
    GLACIER = "GLACIER"
    DEEP_ARCHIVE = "DEEP_ARCHIVE"

    @property
    def is_glacier(self) -> bool:
        """True if objects need a restore before they can be read."""
        return self in (StorageClass.GLACIER, StorageClass.DEEP_ARCHIVE)

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["StorageClass"]:
        """Parse a storage class name, returning None for unknown values."""
        if not value:
            return None
        try:
            return cls(value.upper())
        except ValueError:
            return None


@dataclass
class Object:
    """Represents a listed object with metadata."""

    url: URL
    """Location of the object"""

    type: ObjectType = ObjectType.FILE
    """File or directory"""

    size: int = 0
    """Size in bytes"""

    mod_time: Optional[datetime] = None
    """Last modification time (timezone aware)"""

    etag: Optional[str] = None
    """Content identity reported by the backend, without quotes"""

    storage_class: Optional[StorageClass] = None
    """Storage class (remote objects only)"""

    error: Optional[BaseException] = None
    """Listing error attached to this entry"""

    @classmethod
    def from_error(cls, url: URL, error: BaseException) -> "Object":
        """Create an entry that only carries a listing error."""
        return cls(url=url, error=error)

    def relative(self) -> str:
        """Slash-normalized relative path used as the diff key."""
        return self.url.relative()

    def __str__(self) -> str:
        return str(self.url)
