"""Collection of execution errors reported while a sync runs."""

import logging
import queue
import threading
from typing import Optional, cast

from ..exceptions import (
    ExecutionError,
    MultiError,
    is_cancellation,
    is_too_many_open_files,
)
from ..output import OutputFormatter

logger = logging.getLogger(__name__)

FD_LIMIT_WARNING = (
    "bucketsync is hitting the max open file limit allowed by your OS. Either "
    "increase the open file limit or try to decrease the number of workers "
    "with the '--workers' option."
)

_DONE = object()


class ErrorAggregator:
    """Drains the executor error queue in a background thread.

    Every error is reported as it arrives and kept for the final result.
    Running out of file descriptors is fatal: it is reported once, the
    cancel event is set and later errors are discarded. The caller checks
    ``fatal`` after ``close()`` and decides how to exit.
    """

    def __init__(
        self,
        output: OutputFormatter,
        command: str,
        cancel_event: Optional[threading.Event] = None,
    ):
        """Initialize error aggregator.

        Args:
            output: Output formatter used for reports
            command: Full command line, used as context in reports
            cancel_event: Set when a fatal error is detected
        """
        self.output = output
        self.command = command
        self.cancel_event = cancel_event or threading.Event()
        self.queue: "queue.Queue[object]" = queue.Queue()
        self.errors: list[BaseException] = []
        self.fatal: Optional[BaseException] = None
        self._thread = threading.Thread(
            target=self._drain, name="bucketsync-errors", daemon=True
        )

    def start(self) -> "ErrorAggregator":
        self._thread.start()
        return self

    def report(self, err: BaseException) -> None:
        """Queue an error. Safe to call from any thread."""
        self.queue.put(err)

    def close(self) -> Optional[MultiError]:
        """Wait until every queued error is handled.

        Returns:
            Combined error, or None if nothing failed
        """
        self.queue.put(_DONE)
        self._thread.join()
        return self.error

    @property
    def error(self) -> Optional[MultiError]:
        if not self.errors:
            return None
        return MultiError(self.errors)

    def _drain(self) -> None:
        for item in iter(self.queue.get, _DONE):
            self._handle(cast(BaseException, item))

    def _handle(self, err: BaseException) -> None:
        if self.fatal is not None:
            logger.debug("Discarding error after fatal error: %s", err)
            return

        if is_too_many_open_files(err):
            self.output.warning(FD_LIMIT_WARNING)
            self.output.error(str(err))
            self.fatal = err
            self.cancel_event.set()
            return

        if is_cancellation(err):
            logger.debug("Ignoring cancellation: %s", err)
            return

        if isinstance(err, ExecutionError):
            self.output.error(str(err))
        else:
            self.output.command_error(self.command, err)
        self.errors.append(err)
