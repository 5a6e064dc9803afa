"""S3 storage built on boto3."""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Iterator
from typing import Any, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import (
    ListingCancelledError,
    MultiError,
    ObjectNotFoundError,
    StorageError,
)
from ..utils import DELETE_BATCH_SIZE, wildcard_to_regex
from .object import Object, ObjectType, StorageClass
from .options import StorageOptions
from .url import URL

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound")


def extra_args_from_flags(flags: dict[str, Any]) -> dict[str, str]:
    """Map copy command flags onto boto3 ``ExtraArgs``.

    Args:
        flags: Command flags (``sse``, ``sse-kms-key-id``, ``storage-class``)

    Returns:
        ExtraArgs dictionary for upload, copy and download calls
    """
    extra_args: dict[str, str] = {}
    if flags.get("sse"):
        extra_args["ServerSideEncryption"] = flags["sse"]
    if flags.get("sse-kms-key-id"):
        extra_args["SSEKMSKeyId"] = flags["sse-kms-key-id"]
    if flags.get("storage-class"):
        extra_args["StorageClass"] = flags["storage-class"]
    return extra_args


def _is_not_found(error: ClientError) -> bool:
    code = error.response.get("Error", {}).get("Code", "")
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
    return code in NOT_FOUND_CODES or status == 404


class S3Client:
    """Lists and modifies objects in S3-compatible storage."""

    def __init__(self, options: Optional[StorageOptions] = None, client: Any = None):
        """Initialize the S3 client.

        Args:
            options: Endpoint, region and retry settings
            client: Pre-built boto3 S3 client (created from options if omitted)
        """
        self.options = options or StorageOptions()
        self.client = client or self._create_client(self.options)

    @staticmethod
    def _create_client(options: StorageOptions) -> Any:
        boto_config = BotoConfig(
            retries={"max_attempts": options.max_retries, "mode": "adaptive"},
            max_pool_connections=options.max_pool_connections,
            s3={"addressing_style": "path"} if options.endpoint_url else None,
        )
        logger.debug(
            "Creating S3 client (endpoint=%s, region=%s)",
            options.endpoint_url,
            options.region,
        )
        return boto3.client(
            "s3",
            endpoint_url=options.endpoint_url,
            region_name=options.region,
            verify=not options.no_verify_ssl,
            config=boto_config,
        )

    def stat(self, url: URL) -> Object:
        """Get metadata for a single object.

        Raises:
            ObjectNotFoundError: If the key does not exist
            StorageError: For any other failure
        """
        try:
            head = self.client.head_object(Bucket=url.bucket, Key=url.path)
        except ClientError as e:
            if _is_not_found(e):
                raise ObjectNotFoundError(url) from e
            raise StorageError(str(e)) from e
        except BotoCoreError as e:
            raise StorageError(str(e)) from e

        return Object(
            url=self._url(url.bucket, url.path, url.base()),
            type=ObjectType.DIRECTORY if url.path.endswith("/") else ObjectType.FILE,
            size=int(head.get("ContentLength", 0)),
            mod_time=head.get("LastModified"),
            etag=self._clean_etag(head.get("ETag")),
            storage_class=StorageClass.parse(head.get("StorageClass")),
        )

    def list(
        self,
        url: URL,
        follow_symlinks: bool = True,
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[Object]:
        """Lazily list the objects a location expands to.

        Wildcards are matched against the whole key. A bucket root or a
        prefix expands to every object below it. An exact key yields the
        object itself.

        Args:
            url: Remote location, possibly containing wildcards
            follow_symlinks: Unused for remote storage
            cancel_event: Stops the listing when set

        Yields:
            Object for every key found
        """
        if not (url.is_wildcard or url.is_prefix or url.is_bucket):
            try:
                yield self.stat(url)
            except (ObjectNotFoundError, StorageError) as e:
                yield Object.from_error(url, e)
            return

        pattern = wildcard_to_regex(url.path) if url.is_wildcard else None
        base = url.list_base
        kwargs: dict[str, Any] = {"Bucket": url.bucket}
        if url.prefix:
            kwargs["Prefix"] = url.prefix

        found = False
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(**kwargs):
                for entry in page.get("Contents", []):
                    if cancel_event is not None and cancel_event.is_set():
                        yield Object.from_error(url, ListingCancelledError())
                        return
                    key = entry["Key"]
                    if pattern is not None and not pattern.match(key):
                        continue
                    found = True
                    yield self._object_from_entry(url.bucket, entry, key[len(base) :])
        except (ClientError, BotoCoreError) as e:
            yield Object.from_error(url, StorageError(str(e)))
            return

        if not found:
            yield Object.from_error(url, ObjectNotFoundError(url))

    def _object_from_entry(
        self, bucket: str, entry: dict[str, Any], relative: str
    ) -> Object:
        key = entry["Key"]
        return Object(
            url=self._url(bucket, key, relative),
            type=ObjectType.DIRECTORY if key.endswith("/") else ObjectType.FILE,
            size=int(entry.get("Size", 0)),
            mod_time=entry.get("LastModified"),
            etag=self._clean_etag(entry.get("ETag")),
            storage_class=StorageClass.parse(entry.get("StorageClass")),
        )

    @staticmethod
    def _url(bucket: str, key: str, relative: str) -> URL:
        url = URL("s3", bucket, key, raw=True)
        if relative:
            url.set_relative(relative)
        return url

    @staticmethod
    def _clean_etag(etag: Optional[str]) -> Optional[str]:
        if not etag:
            return None
        return etag.strip('"')

    def put(
        self,
        source: URL,
        destination: URL,
        extra_args: Optional[dict[str, str]] = None,
    ) -> None:
        """Upload a local file."""
        self.client.upload_file(
            Filename=source.path,
            Bucket=destination.bucket,
            Key=destination.path,
            ExtraArgs=extra_args or None,
        )

    def get(self, source: URL, destination: URL) -> None:
        """Download an object to a local path."""
        parent = os.path.dirname(destination.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        self.client.download_file(
            Bucket=source.bucket,
            Key=source.path,
            Filename=destination.path,
        )

    def copy(
        self,
        source: URL,
        destination: URL,
        extra_args: Optional[dict[str, str]] = None,
        source_client: Optional["S3Client"] = None,
    ) -> None:
        """Copy an object server side.

        Args:
            source: Object to copy
            destination: Target key
            extra_args: Encryption and storage class arguments
            source_client: Client for the source bucket when it lives in
                another region
        """
        self.client.copy(
            CopySource={"Bucket": source.bucket, "Key": source.path},
            Bucket=destination.bucket,
            Key=destination.path,
            ExtraArgs=extra_args or None,
            SourceClient=source_client.client if source_client else None,
        )

    def delete(self, urls: list[URL]) -> int:
        """Delete objects in bulk, up to 1000 keys per request.

        Args:
            urls: Objects to delete

        Returns:
            Number of deleted objects

        Raises:
            StorageError: If one or more objects could not be deleted
        """
        by_bucket: dict[str, list[str]] = {}
        for url in urls:
            by_bucket.setdefault(url.bucket, []).append(url.path)

        deleted = 0
        errors: list[BaseException] = []
        for bucket, keys in by_bucket.items():
            for i in range(0, len(keys), DELETE_BATCH_SIZE):
                chunk = keys[i : i + DELETE_BATCH_SIZE]
                try:
                    response = self.client.delete_objects(
                        Bucket=bucket,
                        Delete={"Objects": [{"Key": k} for k in chunk], "Quiet": True},
                    )
                except (ClientError, BotoCoreError) as e:
                    errors.append(StorageError(f"delete batch failed: {e}"))
                    continue

                failures = response.get("Errors", [])
                deleted += len(chunk) - len(failures)
                for failure in failures:
                    errors.append(
                        StorageError(
                            f"delete s3://{bucket}/{failure.get('Key')}: "
                            f"{failure.get('Code')} {failure.get('Message')}"
                        )
                    )

        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise MultiError(errors)
        return deleted
