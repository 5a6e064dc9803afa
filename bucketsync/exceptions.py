"""Exceptions raised and reported by bucketsync."""

import errno
from concurrent.futures import CancelledError
from typing import Any, Optional


class BucketSyncError(Exception):
    """Base exception for all bucketsync errors."""

    pass


class ValidationError(BucketSyncError):
    """Raised when a source or destination expression cannot be synced."""

    pass


class InvalidURLError(ValidationError):
    """Raised when a location expression is malformed."""

    pass


class StorageError(BucketSyncError):
    """Raised when a storage operation fails."""

    pass


class ObjectNotFoundError(StorageError):
    """Raised when a location does not resolve to any object."""

    def __init__(self, location: Any = None):
        self.location = location
        message = "no object found"
        if location is not None:
            message = f"no object found: {location}"
        super().__init__(message)


class ListingCancelledError(BucketSyncError):
    """Attached to an object when listing stopped because of cancellation."""

    def __init__(self, message: str = "listing cancelled"):
        super().__init__(message)


class GlacierObjectError(BucketSyncError):
    """Raised for objects that need a restore before they can be read."""

    def __init__(self, obj: Any):
        self.object = obj
        super().__init__(f"object '{obj}' is on Glacier storage")


class ObjectInSyncError(BucketSyncError):
    """Reason why a common object does not need to be copied.

    Sync strategies return these instead of raising them.
    """

    pass


class ObjectSizesMatchError(ObjectInSyncError):
    def __init__(self) -> None:
        super().__init__("object size matches")


class ObjectIsNewerAndSizesMatchError(ObjectInSyncError):
    def __init__(self) -> None:
        super().__init__("object is newer or same age and object size matches")


class ObjectEtagsMatchError(ObjectInSyncError):
    def __init__(self) -> None:
        super().__init__("object etag and size match")


class PlanGenerationError(BucketSyncError):
    """Raised when a single plan entry cannot be generated."""

    pass


class ExecutionError(BucketSyncError):
    """Wraps a failure of one command run by the executor."""

    def __init__(self, command: Any, cause: BaseException):
        self.command = command
        self.cause = cause
        super().__init__(f'"{command}": {cause}')


class TooManyOpenFilesError(BucketSyncError):
    """Raised when the process ran out of file descriptors."""

    def __init__(self, cause: Optional[BaseException] = None):
        self.cause = cause
        message = "too many open files"
        if cause is not None:
            message = str(cause)
        super().__init__(message)


class MultiError(BucketSyncError):
    """Combines several errors into a single result."""

    def __init__(self, errors: list[BaseException]):
        self.errors = list(errors)
        super().__init__(self._format())

    def _format(self) -> str:
        if len(self.errors) == 1:
            return f"1 error occurred:\n\t* {self.errors[0]}"
        lines = "\n".join(f"\t* {err}" for err in self.errors)
        return f"{len(self.errors)} errors occurred:\n{lines}"

    def __len__(self) -> int:
        return len(self.errors)


def is_cancellation(err: Optional[BaseException]) -> bool:
    """Return True if the error was caused by cancellation."""
    if err is None:
        return False
    if isinstance(err, (ListingCancelledError, CancelledError)):
        return True
    if isinstance(err, ExecutionError):
        return is_cancellation(err.cause)
    return False


def is_too_many_open_files(err: Optional[BaseException]) -> bool:
    """Return True if the error signals file descriptor exhaustion."""
    if err is None:
        return False
    if isinstance(err, TooManyOpenFilesError):
        return True
    if "too many open files" in str(err).lower():
        return True
    cause = getattr(err, "cause", None)
    for candidate in (err, cause):
        if isinstance(candidate, OSError) and candidate.errno == errno.EMFILE:
            return True
    return False
