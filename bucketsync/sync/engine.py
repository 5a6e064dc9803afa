"""Core sync engine: lists both sides, diffs them and runs the plan."""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from rich.progress import Progress, SpinnerColumn, TextColumn

from ..exceptions import (
    MultiError,
    ObjectNotFoundError,
    TooManyOpenFilesError,
    ValidationError,
)
from ..executor import CommandExecutor, ExecutionStats
from ..output import OutputFormatter
from ..storage import URL, Object, StorageClient, StorageOptions, new_client
from ..utils import DEFAULT_WORKERS, format_size
from .compare import compare_objects
from .destination import is_batch_source
from .errors import ErrorAggregator
from .filter import ObjectFilter
from .plan import PlanStream, PlanSummary, SyncPlanner
from .strategy import SyncStrategy

logger = logging.getLogger(__name__)


@dataclass
class SyncOptions:
    """Flags of a sync run."""

    delete: bool = False
    """Delete destination objects that are missing in the source"""

    size_only: bool = False
    """Compare sizes only"""

    exclude: list[str] = field(default_factory=list)
    """Wildcard patterns of relative paths to leave alone"""

    sse: Optional[str] = None
    sse_kms_key_id: Optional[str] = None
    storage_class: Optional[str] = None

    raw: bool = False
    """Take glob characters in the source literally"""

    source_region: Optional[str] = None
    destination_region: Optional[str] = None
    follow_symlinks: bool = True
    workers: int = DEFAULT_WORKERS
    dry_run: bool = False

    def copy_flags(self) -> dict[str, Any]:
        """Flags passed through to every copy command."""
        flags = {
            "sse": self.sse,
            "sse-kms-key-id": self.sse_kms_key_id,
            "storage-class": self.storage_class,
            "source-region": self.source_region,
            "destination-region": self.destination_region,
        }
        return {name: value for name, value in flags.items() if value}


@dataclass
class SyncResult:
    """Outcome of a sync run."""

    source_only: int = 0
    destination_only: int = 0
    common: int = 0
    plan: PlanSummary = field(default_factory=PlanSummary)
    stats: ExecutionStats = field(default_factory=ExecutionStats)
    errors: list[BaseException] = field(default_factory=list)
    dry_run: bool = False

    @property
    def error(self) -> Optional[MultiError]:
        """Combined execution error, None on success."""
        if not self.errors:
            return None
        return MultiError(self.errors)

    def as_dict(self) -> dict[str, Any]:
        return {
            "source_only": self.source_only,
            "destination_only": self.destination_only,
            "common": self.common,
            "in_sync": self.plan.in_sync,
            "copied": self.stats.copied,
            "deleted": self.stats.deleted,
            "failed": self.stats.failed,
            "errors": [str(err) for err in self.errors],
            "dry_run": self.dry_run,
        }


class SyncEngine:
    """Core sync engine that makes a destination match a source."""

    def __init__(
        self,
        output: Optional[OutputFormatter] = None,
        storage_options: Optional[StorageOptions] = None,
        client_factory: Callable[[URL, StorageOptions], StorageClient] = new_client,
    ):
        """Initialize sync engine.

        Args:
            output: Output formatter for displaying progress/status
            storage_options: Connection settings for remote storage
            client_factory: Creates the storage client for a location
        """
        self.output = output or OutputFormatter()
        self.storage_options = storage_options or StorageOptions()
        self.client_factory = client_factory
        self.cancel_event = threading.Event()

    def sync(
        self,
        source: str,
        destination: str,
        options: Optional[SyncOptions] = None,
        command: Optional[str] = None,
    ) -> SyncResult:
        """Synchronize a destination with a source.

        Args:
            source: Source expression (local path or s3:// URL, may contain
                wildcards)
            destination: Destination expression
            options: Sync flags
            command: Full command line, used as context in error reports

        Returns:
            SyncResult with statistics and accumulated errors

        Raises:
            ValidationError: If source or destination cannot be synced
            TooManyOpenFilesError: If the process ran out of file descriptors

        Examples:
            >>> engine = SyncEngine()
            >>> result = engine.sync("folder/", "s3://bucket/", SyncOptions(delete=True))
            >>> print(f"Copied {result.stats.copied} object(s)")
        """
        options = options or SyncOptions()
        command = command or f"sync {source} {destination}"
        self.cancel_event = threading.Event()

        src_url = URL.parse(source, raw=options.raw)
        dst_url = URL.parse(destination, raw=options.raw)
        self._validate(src_url, dst_url)

        source_client = self.client_factory(
            src_url, self.storage_options.with_region(options.source_region)
        )
        destination_client = self.client_factory(
            dst_url, self.storage_options.with_region(options.destination_region)
        )

        is_batch = self._is_batch(src_url, source_client)
        logger.debug("Source %s expands to multiple objects: %s", src_url, is_batch)

        object_filter = ObjectFilter(self.output, command, options.exclude)
        source_objects, destination_objects = self._list_objects(
            source_client,
            destination_client,
            src_url,
            dst_url,
            object_filter,
            options.follow_symlinks,
        )

        only_source, only_destination, common = compare_objects(
            source_objects, destination_objects
        )
        del source_objects, destination_objects
        logger.debug(
            "Diff: %d source-only, %d destination-only, %d common",
            len(only_source),
            len(only_destination),
            len(common),
        )

        result = SyncResult(
            source_only=len(only_source),
            destination_only=len(only_destination),
            common=len(common),
            dry_run=options.dry_run,
        )

        aggregator = ErrorAggregator(self.output, command, self.cancel_event).start()
        stream = PlanStream(self.cancel_event)
        planner = SyncPlanner(
            destination=dst_url,
            strategy=SyncStrategy.from_flags(options.size_only),
            is_batch=is_batch,
            delete=options.delete,
            copy_flags=options.copy_flags(),
        )
        executor = CommandExecutor(
            source_client,
            destination_client,
            report_error=aggregator.report,
            workers=options.workers,
            cancel_event=self.cancel_event,
            output=self.output,
            dry_run=options.dry_run,
        )

        planner_thread = threading.Thread(
            target=planner.run,
            args=(only_source, only_destination, common, stream),
            name="bucketsync-planner",
            daemon=True,
        )
        planner_thread.start()

        try:
            result.stats = executor.run(stream)
        except BaseException:
            self.cancel_event.set()
            raise
        finally:
            planner_thread.join()
            if planner.error is not None:
                aggregator.report(planner.error)
            aggregator.close()

        if aggregator.fatal is not None:
            raise TooManyOpenFilesError(aggregator.fatal)

        result.plan = planner.summary
        result.errors = list(aggregator.errors)

        if not self.output.quiet:
            self._display_summary(result)

        return result

    def _validate(self, source: URL, destination: URL) -> None:
        if destination.is_wildcard:
            raise ValidationError(
                f"target {destination} can not contain glob characters"
            )
        if source == destination:
            raise ValidationError("source and destination cannot be the same")

    def _is_batch(self, source: URL, client: StorageClient) -> bool:
        source_stat: Optional[Object] = None
        if not source.is_wildcard and not source.is_remote:
            try:
                source_stat = client.stat(source)
            except (ObjectNotFoundError, OSError) as e:
                logger.debug("Cannot stat source %s: %s", source, e)
        return is_batch_source(source, source_stat)

    def _destination_listing_url(self, destination: URL) -> URL:
        """Location that expands to everything below the destination."""
        listing = URL(destination.scheme, destination.bucket, destination.path, True)
        if listing.is_remote and listing.path and not listing.path.endswith("/"):
            listing.path += "/"
        return listing

    def _list_objects(
        self,
        source_client: StorageClient,
        destination_client: StorageClient,
        source: URL,
        destination: URL,
        object_filter: ObjectFilter,
        follow_symlinks: bool,
    ) -> tuple[list[Object], list[Object]]:
        """List both sides concurrently and keep the eligible objects."""
        destination_listing = self._destination_listing_url(destination)

        def collect_source() -> list[Object]:
            start = time.time()
            objects = object_filter.filter(
                source_client.list(source, follow_symlinks, self.cancel_event),
                is_source=True,
            )
            logger.debug(
                f"Source listing took {time.time() - start:.2f}s "
                f"for {len(objects)} object(s), "
                f"{format_size(sum(obj.size for obj in objects))}"
            )
            return objects

        def collect_destination() -> list[Object]:
            start = time.time()
            objects = object_filter.filter(
                destination_client.list(destination_listing, False, self.cancel_event),
                is_source=False,
            )
            logger.debug(
                f"Destination listing took {time.time() - start:.2f}s "
                f"for {len(objects)} object(s)"
            )
            return objects

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            disable=self.output.quiet or self.output.json_output,
        ) as progress:
            task = progress.add_task("Listing source and destination...", total=None)
            with ThreadPoolExecutor(max_workers=2) as pool:
                source_future = pool.submit(collect_source)
                destination_future = pool.submit(collect_destination)
                try:
                    source_objects = source_future.result()
                    destination_objects = destination_future.result()
                except BaseException:
                    self.cancel_event.set()
                    raise
            progress.update(
                task,
                description=(
                    f"Found {len(source_objects)} source and "
                    f"{len(destination_objects)} destination object(s)"
                ),
            )

        return source_objects, destination_objects

    def _display_summary(self, result: SyncResult) -> None:
        """Display sync summary.

        Args:
            result: Result of the run
        """
        if result.dry_run:
            self.output.success("Dry run complete!")
        else:
            self.output.success("Sync complete!")

        stats = result.stats
        total_actions = stats.copied + stats.deleted
        if total_actions > 0:
            self.output.info(f"Total actions: {total_actions}")
            if stats.copied > 0:
                self.output.info(f"  Copied: {stats.copied}")
            if stats.deleted > 0:
                self.output.info(f"  Deleted: {stats.deleted}")
        elif stats.failed == 0:
            self.output.info("No changes needed - everything is in sync!")

        if stats.failed > 0:
            self.output.warning(f"{stats.failed} operation(s) failed")
