"""Multi-worker executor for planned copy and delete commands."""

import logging
import threading
import time
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import asdict, dataclass
from typing import Callable, Optional, cast

from .exceptions import ExecutionError
from .output import OutputFormatter
from .storage import LocalClient, S3Client, StorageClient
from .storage.s3 import extra_args_from_flags
from .sync.plan import COPY, DELETE, Command
from .utils import DEFAULT_WORKERS

logger = logging.getLogger(__name__)


@dataclass
class ExecutionStats:
    """Counts of executed operations."""

    copied: int = 0
    deleted: int = 0
    failed: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


class CommandExecutor:
    """Runs commands from a stream on a pool of worker threads.

    At most ``workers`` commands are in flight. While every worker is busy
    the executor stops reading, which blocks the producer of the stream.
    Failures are handed to ``report_error`` and never stop the remaining
    commands.
    """

    def __init__(
        self,
        source_client: StorageClient,
        destination_client: StorageClient,
        report_error: Callable[[BaseException], None],
        workers: int = DEFAULT_WORKERS,
        cancel_event: Optional[threading.Event] = None,
        output: Optional[OutputFormatter] = None,
        dry_run: bool = False,
    ):
        """Initialize command executor.

        Args:
            source_client: Client for source locations
            destination_client: Client for destination locations
            report_error: Called with an ExecutionError for every failure
            workers: Number of parallel workers
            cancel_event: Stops reading new commands when set
            output: Output formatter for dry-run messages
            dry_run: If True, print commands instead of running them
        """
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.source_client = source_client
        self.destination_client = destination_client
        self.report_error = report_error
        self.workers = workers
        self.cancel_event = cancel_event or threading.Event()
        self.output = output or OutputFormatter()
        self.dry_run = dry_run
        self.stats = ExecutionStats()
        self._lock = threading.Lock()

    def run(self, commands: Iterable[Command]) -> ExecutionStats:
        """Execute every command of the stream.

        Args:
            commands: Commands to run, consumed lazily

        Returns:
            Statistics of the executed commands
        """
        logger.debug(f"Executing commands with {self.workers} workers")
        slots = threading.BoundedSemaphore(self.workers)

        def release(_future: Future) -> None:
            slots.release()

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            for command in commands:
                if self.cancel_event.is_set():
                    logger.debug("Cancelled, not starting: %s", command)
                    break
                slots.acquire()
                future = pool.submit(self._execute_with_timing, command)
                future.add_done_callback(release)

        return self.stats

    def _execute_with_timing(self, command: Command) -> None:
        start = time.time()
        try:
            self.execute(command)
        except Exception as e:
            elapsed = time.time() - start
            logger.debug(f"Failed {command} in {elapsed:.2f}s")
            with self._lock:
                self.stats.failed += 1
            self.report_error(ExecutionError(command, e))
            return
        elapsed = time.time() - start
        logger.debug(f"Completed {command} in {elapsed:.2f}s")

    def execute(self, command: Command) -> None:
        """Execute a single command.

        Raises:
            ValueError: For an unknown operation
            Exception: Whatever the storage client raises
        """
        if command.op not in (COPY, DELETE):
            raise ValueError(f"unknown operation: {command.op}")

        if self.dry_run:
            self.output.info(f"DRYRUN {command}")
            with self._lock:
                if command.op == COPY:
                    self.stats.copied += 1
                else:
                    self.stats.deleted += len(command.urls)
            return

        if command.op == COPY:
            self._copy(command)
            with self._lock:
                self.stats.copied += 1
        else:
            deleted = self.destination_client.delete(command.urls)
            with self._lock:
                self.stats.deleted += deleted

    def _copy(self, command: Command) -> None:
        source, destination = command.source, command.destination
        extra_args = extra_args_from_flags(command.flags)

        if source.is_remote and destination.is_remote:
            cast(S3Client, self.destination_client).copy(
                source,
                destination,
                extra_args,
                source_client=cast(S3Client, self.source_client),
            )
        elif destination.is_remote:
            cast(S3Client, self.destination_client).put(source, destination, extra_args)
        elif source.is_remote:
            cast(S3Client, self.source_client).get(source, destination)
        else:
            cast(LocalClient, self.destination_client).copy(source, destination)
