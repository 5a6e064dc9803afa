"""Strategies that decide whether a common object needs to be copied."""

from enum import Enum
from typing import Optional

from ..exceptions import (
    ObjectEtagsMatchError,
    ObjectInSyncError,
    ObjectIsNewerAndSizesMatchError,
    ObjectSizesMatchError,
)
from ..storage import Object


class SyncStrategy(str, Enum):
    """Comparison strategy, selected once per run.

    ``should_sync`` returns a reason when the destination is already up to
    date and None when the object has to be copied. Callers must branch on
    the returned reason, not on its truthiness being a "needs copy" flag.
    """

    SIZE_ONLY = "size-only"
    """Objects are in sync when their sizes match"""

    SIZE_AND_MODIFICATION = "size-and-modification"
    """Objects are in sync when sizes match and the destination is not older"""

    @classmethod
    def from_flags(cls, size_only: bool) -> "SyncStrategy":
        """Select the strategy for the given command line flags."""
        if size_only:
            return cls.SIZE_ONLY
        return cls.SIZE_AND_MODIFICATION

    def should_sync(
        self, source: Object, destination: Object
    ) -> Optional[ObjectInSyncError]:
        """Check whether the source object has to be copied.

        Args:
            source: Source object
            destination: Destination object at the same relative path

        Returns:
            None if synchronization is required, otherwise the reason why
            the destination is already in sync
        """
        if self == SyncStrategy.SIZE_ONLY:
            return _size_only(source, destination)
        return _size_and_modification(source, destination)


def _size_only(source: Object, destination: Object) -> Optional[ObjectInSyncError]:
    if source.size == destination.size:
        return ObjectSizesMatchError()
    return None


def _size_and_modification(
    source: Object, destination: Object
) -> Optional[ObjectInSyncError]:
    if source.size != destination.size:
        return None

    src_mod, dst_mod = source.mod_time, destination.mod_time
    if src_mod is not None and dst_mod is not None and not dst_mod < src_mod:
        return ObjectIsNewerAndSizesMatchError()

    if _etags_match(source.etag, destination.etag):
        return ObjectEtagsMatchError()

    return None


def _etags_match(source: Optional[str], destination: Optional[str]) -> bool:
    # Multipart ETags depend on the part size, they never prove identity
    if not source or not destination:
        return False
    if "-" in source or "-" in destination:
        return False
    return source == destination
