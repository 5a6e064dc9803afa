"""Location references for local paths and remote object keys."""

import os
from typing import Optional

from ..exceptions import InvalidURLError
from ..utils import GLOB_CHARACTERS, from_slash, has_glob, to_slash

S3_SCHEME = "s3"
S3_PREFIX = "s3://"


class URL:
    """An addressable location, either a local path or an S3 object key.

    Remote locations look like ``s3://bucket/key``. Anything else is
    treated as a local filesystem path.

    Examples:
        >>> url = URL.parse("s3://bucket/prefix/*.gz")
        >>> url.is_wildcard, url.list_base
        (True, 'prefix/')
        >>> URL.parse("s3://bucket/prefix/").join("a.txt")
        URL('s3://bucket/prefix/a.txt')
    """

    def __init__(self, scheme: str, bucket: str, path: str, raw: bool = False):
        self.scheme = scheme
        self.bucket = bucket
        self.path = path
        self.raw = raw
        self._relative: Optional[str] = None

    @classmethod
    def parse(cls, value: str, raw: bool = False) -> "URL":
        """Parse a location expression.

        Args:
            value: Local path or ``s3://bucket/key`` expression
            raw: If True, glob characters are taken literally

        Returns:
            Parsed URL

        Raises:
            InvalidURLError: If the expression is malformed
        """
        if not value:
            raise InvalidURLError("location cannot be empty")

        if value.startswith(S3_PREFIX):
            rest = value[len(S3_PREFIX) :]
            bucket, _, key = rest.partition("/")
            if not bucket:
                raise InvalidURLError(f"s3 url should have a bucket: {value!r}")
            if has_glob(bucket):
                raise InvalidURLError(
                    f"bucket name cannot contain wildcards: {value!r}"
                )
            return cls(S3_SCHEME, bucket, key, raw=raw)

        return cls("", "", value, raw=raw)

    @property
    def is_remote(self) -> bool:
        return self.scheme == S3_SCHEME

    @property
    def is_wildcard(self) -> bool:
        return not self.raw and has_glob(self.path)

    @property
    def is_bucket(self) -> bool:
        """True for a bucket root such as ``s3://bucket``."""
        return self.is_remote and self.path == ""

    @property
    def is_prefix(self) -> bool:
        """True for a remote key ending with a separator."""
        return self.is_remote and self.path.endswith("/")

    @property
    def slash_path(self) -> str:
        """Path with forward slashes."""
        if self.is_remote:
            return self.path
        return to_slash(self.path)

    @property
    def prefix(self) -> str:
        """Literal part of the path before the first glob character."""
        path = self.slash_path
        if not self.is_wildcard:
            return path
        index = min(path.find(c) for c in GLOB_CHARACTERS if c in path)
        return path[:index]

    @property
    def list_base(self) -> str:
        """Directory part of the prefix, relative paths are computed from it."""
        prefix = self.prefix
        if not (self.is_wildcard or self.is_prefix or self.is_bucket):
            prefix = prefix.rstrip("/")
        return prefix[: prefix.rfind("/") + 1]

    def relative(self) -> str:
        """Slash-normalized path relative to the listing base."""
        if self._relative is not None:
            return self._relative
        return self.base()

    def set_relative(self, relative: str) -> "URL":
        self._relative = to_slash(relative)
        return self

    def base(self) -> str:
        """Last path component, ignoring a trailing separator."""
        path = self.slash_path.rstrip("/")
        return path[path.rfind("/") + 1 :]

    def join(self, name: str) -> "URL":
        """Return a new URL with ``name`` appended to the path."""
        clone = self.clone()
        clone._relative = None
        if self.is_remote:
            if clone.path and not clone.path.endswith("/"):
                clone.path += "/"
            clone.path += to_slash(name)
        else:
            clone.path = os.path.join(clone.path, from_slash(name))
        return clone

    def clone(self) -> "URL":
        clone = URL(self.scheme, self.bucket, self.path, raw=self.raw)
        clone._relative = self._relative
        return clone

    def __str__(self) -> str:
        if self.is_remote:
            if self.path:
                return f"{S3_PREFIX}{self.bucket}/{self.path}"
            return f"{S3_PREFIX}{self.bucket}"
        return self.path

    def __repr__(self) -> str:
        return f"URL({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, URL):
            return NotImplemented
        return (self.scheme, self.bucket, self.path) == (
            other.scheme,
            other.bucket,
            other.path,
        )

    def __hash__(self) -> int:
        return hash((self.scheme, self.bucket, self.path))
