"""Local filesystem storage."""

from __future__ import annotations

import logging
import os
import shutil
import stat as stat_module
import threading
from collections.abc import Iterator
from typing import Optional, Union

from ..exceptions import (
    ListingCancelledError,
    MultiError,
    ObjectNotFoundError,
    StorageError,
)
from ..utils import from_slash, timestamp_to_datetime, to_slash, wildcard_to_regex
from .object import Object, ObjectType
from .url import URL

logger = logging.getLogger(__name__)


class LocalClient:
    """Lists and modifies files on the local filesystem."""

    def stat(self, url: URL) -> Object:
        """Get metadata for a local path.

        Args:
            url: Local location

        Returns:
            Object describing the path

        Raises:
            ObjectNotFoundError: If the path does not exist
        """
        try:
            st = os.stat(url.path)
        except FileNotFoundError as e:
            raise ObjectNotFoundError(url) from e
        return self._make_object(url.path, url.base(), st)

    def list(
        self,
        url: URL,
        follow_symlinks: bool = True,
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[Object]:
        """Lazily list the files a location expands to.

        Wildcards are matched against the whole path and ``*`` crosses
        directory boundaries. A directory expands to every file below it.
        Errors are yielded as objects carrying the error.

        Args:
            url: Local location, possibly containing wildcards
            follow_symlinks: Whether to follow symbolic links
            cancel_event: Stops the listing when set

        Yields:
            Object for every file found
        """
        if url.is_wildcard:
            entries = self._expand_wildcard(url, follow_symlinks)
        else:
            try:
                st = os.stat(url.path) if follow_symlinks else os.lstat(url.path)
            except FileNotFoundError:
                yield Object.from_error(url, ObjectNotFoundError(url))
                return
            except OSError as e:
                yield Object.from_error(url, e)
                return

            if not stat_module.S_ISDIR(st.st_mode):
                if stat_module.S_ISLNK(st.st_mode):
                    logger.debug("Skipping symlink: %s", url.path)
                    return
                yield self._make_object(url.path, url.base(), st)
                return
            entries = self._expand_directory(url.path, follow_symlinks)

        found = False
        for entry in entries:
            if cancel_event is not None and cancel_event.is_set():
                yield Object.from_error(url, ListingCancelledError())
                return
            found = True
            yield entry

        if not found:
            yield Object.from_error(url, ObjectNotFoundError(url))

    def _expand_directory(self, root: str, follow_symlinks: bool) -> Iterator[Object]:
        for item in self._walk(root, follow_symlinks):
            if isinstance(item, OSError):
                yield Object.from_error(self._url(root, ""), item)
                continue
            relative = to_slash(os.path.relpath(item, root))
            yield self._object_for_path(item, relative)

    def _expand_wildcard(self, url: URL, follow_symlinks: bool) -> Iterator[Object]:
        base = url.list_base
        pattern = wildcard_to_regex(url.slash_path)
        root = from_slash(base) if base else os.curdir

        for item in self._walk(root, follow_symlinks):
            if isinstance(item, OSError):
                yield Object.from_error(url, item)
                continue
            path = item
            if not base and path.startswith(os.curdir + os.sep):
                path = path[len(os.curdir + os.sep) :]
            slash_path = to_slash(path)
            if not pattern.match(slash_path):
                continue
            yield self._object_for_path(path, slash_path[len(base) :])

    def _walk(self, root: str, follow_symlinks: bool) -> Iterator[Union[str, OSError]]:
        errors: list[OSError] = []
        for dirpath, _dirnames, filenames in os.walk(
            root, onerror=errors.append, followlinks=follow_symlinks
        ):
            yield from errors
            errors.clear()
            for name in filenames:
                path = os.path.join(dirpath, name)
                if not follow_symlinks and os.path.islink(path):
                    logger.debug("Skipping symlink: %s", path)
                    continue
                yield path
        yield from errors

    def _object_for_path(self, path: str, relative: str) -> Object:
        try:
            st = os.stat(path)
        except OSError as e:
            return Object.from_error(self._url(path, relative), e)
        return self._make_object(path, relative, st)

    def _make_object(self, path: str, relative: str, st: os.stat_result) -> Object:
        is_dir = stat_module.S_ISDIR(st.st_mode)
        return Object(
            url=self._url(path, relative),
            type=ObjectType.DIRECTORY if is_dir else ObjectType.FILE,
            size=st.st_size,
            mod_time=timestamp_to_datetime(st.st_mtime),
        )

    def _url(self, path: str, relative: str) -> URL:
        url = URL("", "", path, raw=True)
        if relative:
            url.set_relative(relative)
        return url

    def copy(self, source: URL, destination: URL) -> None:
        """Copy a local file to another local path."""
        parent = os.path.dirname(destination.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        shutil.copy2(source.path, destination.path)

    def delete(self, urls: list[URL]) -> int:
        """Delete local files.

        Args:
            urls: Files to delete

        Returns:
            Number of deleted files

        Raises:
            StorageError: If one or more files could not be deleted
        """
        errors: list[BaseException] = []
        deleted = 0
        for url in urls:
            try:
                os.remove(url.path)
                deleted += 1
            except OSError as e:
                errors.append(e)

        if len(errors) == 1:
            raise StorageError(f"delete {errors[0]}") from errors[0]
        if errors:
            raise MultiError(errors)
        return deleted
