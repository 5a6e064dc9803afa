"""Destination path resolution for source-only objects."""

from typing import Optional

from ..storage import URL, Object


def is_batch_source(source: URL, source_stat: Optional[Object] = None) -> bool:
    """Check whether a source expression expands to multiple objects.

    Args:
        source: Source location
        source_stat: Stat result of a local source (None if unavailable)

    Returns:
        True for wildcards, remote prefixes and bucket roots, and local
        directories
    """
    if source.is_wildcard:
        return True
    if source.is_remote:
        return source.is_prefix or source.is_bucket
    return source_stat is not None and source_stat.type.is_dir


def generate_destination_url(source: URL, destination: URL, is_batch: bool) -> URL:
    """Compute where a source object lands in the destination.

    Batch runs keep the relative path below the destination. Single-object
    runs use the base name, except for an exact remote key which is used
    as is.

    Args:
        source: Source object location
        destination: Destination base given by the user
        is_batch: Whether the source expands to multiple objects

    Returns:
        Destination location for the object

    Examples:
        >>> src = URL.parse("dir/file.txt").set_relative("file.txt")
        >>> str(generate_destination_url(src, URL.parse("s3://bucket/key"), False))
        's3://bucket/key'
    """
    name = source.relative() if is_batch else source.base()

    if destination.is_remote and not (
        is_batch or destination.is_prefix or destination.is_bucket
    ):
        target = destination.clone()
    else:
        target = destination.join(name)

    # Object names are literal, glob characters in them are not patterns
    target.raw = True
    return target
