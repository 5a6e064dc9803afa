"""Tests for error collection during a sync run."""

import errno
import threading
from concurrent.futures import CancelledError
from unittest.mock import Mock

import pytest

from bucketsync.exceptions import (
    ExecutionError,
    ListingCancelledError,
    MultiError,
    StorageError,
    TooManyOpenFilesError,
    is_cancellation,
    is_too_many_open_files,
)
from bucketsync.output import OutputFormatter
from bucketsync.sync import ErrorAggregator
from bucketsync.sync.errors import FD_LIMIT_WARNING

COMMAND = "sync src/ s3://bucket/"


@pytest.fixture
def mock_output():
    """Create a mock output formatter."""
    return Mock(spec=OutputFormatter)


@pytest.fixture
def cancel_event():
    return threading.Event()


@pytest.fixture
def aggregator(mock_output, cancel_event):
    return ErrorAggregator(mock_output, COMMAND, cancel_event).start()


class TestErrorPredicates:
    """Tests for error classification helpers."""

    def test_too_many_open_files_by_errno(self):
        assert is_too_many_open_files(OSError(errno.EMFILE, "Too many open files"))

    def test_too_many_open_files_by_message(self):
        assert is_too_many_open_files(StorageError("open x: too many open files"))

    def test_too_many_open_files_wrapped(self):
        """Test detection through an execution error."""
        cause = OSError(errno.EMFILE, "no descriptors")
        assert is_too_many_open_files(ExecutionError("cp a b", cause))

    def test_other_errors(self):
        assert not is_too_many_open_files(StorageError("access denied"))
        assert not is_too_many_open_files(None)

    def test_cancellation(self):
        assert is_cancellation(ListingCancelledError())
        assert is_cancellation(CancelledError())
        assert is_cancellation(ExecutionError("cp a b", CancelledError()))
        assert not is_cancellation(StorageError("boom"))
        assert not is_cancellation(None)


class TestMultiError:
    """Tests for MultiError."""

    def test_single_error_message(self):
        error = MultiError([StorageError("boom")])
        assert len(error) == 1
        assert str(error) == "1 error occurred:\n\t* boom"

    def test_multiple_error_message(self):
        error = MultiError([StorageError("a"), StorageError("b")])
        assert len(error) == 2
        assert str(error) == "2 errors occurred:\n\t* a\n\t* b"


class TestErrorAggregator:
    """Tests for ErrorAggregator."""

    def test_no_errors(self, aggregator, cancel_event):
        """Test that a clean run has no combined error."""
        assert aggregator.close() is None
        assert aggregator.fatal is None
        assert not cancel_event.is_set()

    def test_errors_are_collected(self, aggregator, mock_output):
        """Test that every error is reported and combined."""
        first = ExecutionError("cp a b", StorageError("access denied"))
        second = ExecutionError("cp c d", StorageError("slow down"))
        aggregator.report(first)
        aggregator.report(second)

        error = aggregator.close()

        assert isinstance(error, MultiError)
        assert error.errors == [first, second]
        assert mock_output.error.call_count == 2
        mock_output.error.assert_any_call(str(first))

    def test_plain_errors_get_command_context(self, aggregator, mock_output):
        """Test that errors without a command are reported with the sync command."""
        error = StorageError("boom")
        aggregator.report(error)
        aggregator.close()
        mock_output.command_error.assert_called_once_with(COMMAND, error)

    def test_cancellation_is_ignored(self, aggregator, mock_output):
        """Test that cancellation errors are not reported."""
        aggregator.report(ExecutionError("cp a b", CancelledError()))
        assert aggregator.close() is None
        mock_output.error.assert_not_called()

    def test_too_many_open_files_is_fatal(self, aggregator, mock_output, cancel_event):
        """Test that fd exhaustion cancels the run and stops collecting."""
        fatal = ExecutionError("cp a b", OSError(errno.EMFILE, "Too many open files"))
        aggregator.report(fatal)
        aggregator.report(ExecutionError("cp c d", StorageError("later")))

        error = aggregator.close()

        assert aggregator.fatal is fatal
        assert cancel_event.is_set()
        assert error is None
        mock_output.warning.assert_called_once_with(FD_LIMIT_WARNING)
        mock_output.error.assert_called_once_with(str(fatal))

    def test_fatal_keeps_earlier_errors(self, aggregator):
        """Test that errors before the fatal one are kept."""
        earlier = ExecutionError("cp a b", StorageError("denied"))
        aggregator.report(earlier)
        aggregator.report(TooManyOpenFilesError())
        aggregator.close()
        assert aggregator.errors == [earlier]
        assert aggregator.fatal is not None

    def test_report_from_many_threads(self, aggregator):
        """Test that concurrent reports are all collected."""
        threads = [
            threading.Thread(
                target=aggregator.report,
                args=(ExecutionError(f"cp {i} x", StorageError("boom")),),
            )
            for i in range(20)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(aggregator.close()) == 20
