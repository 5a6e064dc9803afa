"""Connection settings shared by storage clients."""

from dataclasses import dataclass, replace
from typing import Optional

from ..utils import DEFAULT_MAX_RETRIES


@dataclass
class StorageOptions:
    """Settings used to build a storage client."""

    endpoint_url: Optional[str] = None
    """Custom S3 endpoint (None for AWS)"""

    region: Optional[str] = None
    """Region name, overridden per side with --source/--destination-region"""

    no_verify_ssl: bool = False
    """Disable TLS certificate verification"""

    max_retries: int = DEFAULT_MAX_RETRIES
    """Retry attempts for a single storage request"""

    max_pool_connections: int = 50
    """Size of the HTTP connection pool"""

    def with_region(self, region: Optional[str]) -> "StorageOptions":
        """Return a copy using the given region, if one is set."""
        if not region:
            return self
        return replace(self, region=region)
