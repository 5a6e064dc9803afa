"""Plan generation: turns a diff into a stream of copy and delete commands."""

import logging
import queue
import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Optional

from ..exceptions import PlanGenerationError
from ..storage import URL
from .compare import ObjectPair
from .destination import generate_destination_url
from .strategy import SyncStrategy

logger = logging.getLogger(__name__)

COPY = "cp"
DELETE = "rm"

_CLOSED = object()


@dataclass
class Command:
    """A single planned operation."""

    op: str
    """Operation name, "cp" or "rm" """

    urls: list[URL]
    """Operands: (source, destination) for cp, targets for rm"""

    flags: dict[str, Any] = field(default_factory=dict)
    """Command flags, e.g. {"raw": True, "storage-class": "STANDARD_IA"}"""

    @property
    def source(self) -> URL:
        return self.urls[0]

    @property
    def destination(self) -> URL:
        return self.urls[-1]

    def __str__(self) -> str:
        parts = [self.op]
        for name, value in self.flags.items():
            if value is None or value is False:
                continue
            if value is True:
                value = "true"
            parts.append(f"--{name}={value}")
        parts.extend(f'"{url}"' for url in self.urls)
        return " ".join(parts)


def generate_command(op: str, flags: dict[str, Any], *urls: URL) -> Command:
    """Build a command, validating its operands.

    Raises:
        PlanGenerationError: If the operands do not form a valid command
    """
    if op == COPY:
        if len(urls) != 2:
            raise PlanGenerationError(f"cp expects 2 arguments, got {len(urls)}")
        source, destination = urls
        if source == destination:
            raise PlanGenerationError(
                f"source and destination are the same: {source}"
            )
    elif op == DELETE:
        if not urls:
            raise PlanGenerationError("rm expects at least one argument")
    else:
        raise PlanGenerationError(f"unknown operation: {op}")

    for url in urls:
        if url.is_wildcard:
            raise PlanGenerationError(f"unexpected wildcard in plan: {url}")

    return Command(op=op, urls=list(urls), flags=dict(flags))


class PlanStream:
    """Blocking hand-off between the planner and the executor.

    The queue holds at most one command, so the planner waits until the
    executor has taken the previous one. Both sides give up once the
    cancel event is set.
    """

    def __init__(
        self,
        cancel_event: Optional[threading.Event] = None,
        poll_interval: float = 0.1,
    ):
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=1)
        self._cancel_event = cancel_event or threading.Event()
        self._poll_interval = poll_interval

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def _put(self, item: Any) -> bool:
        while not self.cancelled:
            try:
                self._queue.put(item, timeout=self._poll_interval)
                return True
            except queue.Full:
                continue
        return False

    def put(self, command: Command) -> bool:
        """Hand a command to the consumer.

        Returns:
            False if the stream was cancelled before the command was taken
        """
        return self._put(command)

    def close(self) -> None:
        """Signal that no more commands will be produced."""
        self._put(_CLOSED)

    def __iter__(self) -> Iterator[Command]:
        while True:
            try:
                item = self._queue.get(timeout=self._poll_interval)
            except queue.Empty:
                if self.cancelled:
                    return
                continue
            if item is _CLOSED:
                return
            yield item


@dataclass
class PlanSummary:
    """Counts of what the planner emitted."""

    copies: int = 0
    deletes: int = 0
    in_sync: int = 0
    dropped: int = 0


class SyncPlanner:
    """Walks the diff partitions and emits commands into a PlanStream.

    Order is fixed: source-only objects, then common objects that need a
    copy, then one batched delete for destination-only objects when
    deletion is enabled.
    """

    def __init__(
        self,
        destination: URL,
        strategy: SyncStrategy,
        is_batch: bool,
        delete: bool = False,
        copy_flags: Optional[dict[str, Any]] = None,
        op: str = "sync",
    ):
        """Initialize sync planner.

        Args:
            destination: Destination base given by the user
            strategy: Strategy for common objects
            is_batch: Whether the source expands to multiple objects
            delete: Whether destination-only objects are deleted
            copy_flags: Extra flags passed to every copy command
            op: Name of the running operation, used in debug output
        """
        self.destination = destination
        self.strategy = strategy
        self.is_batch = is_batch
        self.delete = delete
        self.op = op
        # Sources are already expanded, copies must not glob them again
        self.default_flags: dict[str, Any] = {"raw": True}
        self.copy_flags = {**self.default_flags, **(copy_flags or {})}
        self.summary = PlanSummary()
        self.error: Optional[Exception] = None

    def plan(
        self,
        only_source: list[URL],
        only_destination: list[URL],
        common: list[ObjectPair],
    ) -> Iterator[Command]:
        """Generate commands for a diff result."""
        for source in only_source:
            try:
                destination = generate_destination_url(
                    source, self.destination, self.is_batch
                )
                command = generate_command(COPY, self.copy_flags, source, destination)
            except PlanGenerationError as e:
                self._debug(e, source)
                self.summary.dropped += 1
                continue
            self.summary.copies += 1
            yield command

        for pair in common:
            source, destination = pair.source.url, pair.destination.url
            reason = self.strategy.should_sync(pair.source, pair.destination)
            if reason is not None:
                self._debug(reason, source, destination)
                self.summary.in_sync += 1
                continue

            try:
                command = generate_command(COPY, self.copy_flags, source, destination)
            except PlanGenerationError as e:
                self._debug(e, source, destination)
                self.summary.dropped += 1
                continue
            self.summary.copies += 1
            yield command

        if self.delete and only_destination:
            try:
                command = generate_command(
                    DELETE, self.default_flags, *only_destination
                )
            except PlanGenerationError as e:
                self._debug(e, *only_destination)
                self.summary.dropped += 1
                return
            self.summary.deletes += len(only_destination)
            yield command

    def run(
        self,
        only_source: list[URL],
        only_destination: list[URL],
        common: list[ObjectPair],
        stream: PlanStream,
    ) -> PlanSummary:
        """Write the plan into a stream and close it when done.

        An unexpected failure stops planning and is kept in ``error`` so the
        caller can report it after the executor drained the stream.
        """
        try:
            for command in self.plan(only_source, only_destination, common):
                if not stream.put(command):
                    logger.debug("Plan stream cancelled, stopping planner")
                    break
        except Exception as e:
            logger.debug("Planner failed: %s", e)
            self.error = e
        finally:
            stream.close()
        return self.summary

    def _debug(self, err: BaseException, *urls: URL) -> None:
        operands = " ".join(f'"{url}"' for url in urls)
        logger.debug('"%s %s": %s', self.op, operands, err)
