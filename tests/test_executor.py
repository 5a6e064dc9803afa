"""Tests for the command executor."""

import threading
import time
from unittest.mock import Mock

import pytest

from bucketsync.exceptions import ExecutionError, StorageError
from bucketsync.executor import CommandExecutor, ExecutionStats
from bucketsync.output import OutputFormatter
from bucketsync.storage import URL, LocalClient, S3Client
from bucketsync.sync import Command


def cp(source: str, destination: str, **flags) -> Command:
    return Command(
        op="cp",
        urls=[URL.parse(source, raw=True), URL.parse(destination, raw=True)],
        flags={"raw": True, **flags},
    )


def rm(*urls: str) -> Command:
    return Command(op="rm", urls=[URL.parse(u, raw=True) for u in urls])


@pytest.fixture
def errors():
    return []


@pytest.fixture
def mock_output():
    """Create a mock output formatter."""
    return Mock(spec=OutputFormatter)


def make_executor(source_client, destination_client, errors, **kwargs):
    return CommandExecutor(
        source_client,
        destination_client,
        report_error=errors.append,
        workers=kwargs.pop("workers", 2),
        **kwargs,
    )


class TestCopyDispatch:
    """Tests for copy dispatch by location type."""

    def test_upload(self, errors):
        """Test that local to remote copies upload."""
        src, dst = Mock(spec=LocalClient), Mock(spec=S3Client)
        executor = make_executor(src, dst, errors)

        stats = executor.run([cp("a.txt", "s3://bucket/a.txt", sse="aws:kms")])

        dst.put.assert_called_once()
        source, destination, extra_args = dst.put.call_args[0]
        assert source.path == "a.txt"
        assert destination.path == "a.txt"
        assert extra_args == {"ServerSideEncryption": "aws:kms"}
        assert stats.copied == 1
        assert errors == []

    def test_download(self, errors):
        """Test that remote to local copies download."""
        src, dst = Mock(spec=S3Client), Mock(spec=LocalClient)
        executor = make_executor(src, dst, errors)

        executor.run([cp("s3://bucket/a.txt", "out/a.txt")])

        src.get.assert_called_once()
        assert src.get.call_args[0][1].path == "out/a.txt"

    def test_server_side_copy(self, errors):
        """Test that remote to remote copies use the destination client."""
        src, dst = Mock(spec=S3Client), Mock(spec=S3Client)
        executor = make_executor(src, dst, errors)

        executor.run(
            [cp("s3://one/a.txt", "s3://two/a.txt", **{"storage-class": "GLACIER"})]
        )

        dst.copy.assert_called_once()
        args, kwargs = dst.copy.call_args
        assert args[2] == {"StorageClass": "GLACIER"}
        assert kwargs["source_client"] is src

    def test_local_copy(self, errors):
        """Test that local to local copies use the local client."""
        src, dst = Mock(spec=LocalClient), Mock(spec=LocalClient)
        executor = make_executor(src, dst, errors)

        executor.run([cp("a.txt", "b/a.txt")])

        dst.copy.assert_called_once()


class TestDelete:
    """Tests for delete commands."""

    def test_batched_delete(self, errors):
        """Test that a delete command is sent as one batch."""
        src, dst = Mock(spec=LocalClient), Mock(spec=S3Client)
        dst.delete.return_value = 3
        executor = make_executor(src, dst, errors)

        stats = executor.run([rm("s3://b/x", "s3://b/y", "s3://b/z")])

        dst.delete.assert_called_once()
        assert len(dst.delete.call_args[0][0]) == 3
        assert stats.deleted == 3


class TestFailures:
    """Tests for error reporting."""

    def test_failures_are_reported(self, errors):
        """Test that a failed command does not stop the others."""
        src, dst = Mock(spec=LocalClient), Mock(spec=S3Client)
        dst.put.side_effect = [StorageError("denied"), None, None]
        executor = make_executor(src, dst, errors, workers=1)

        stats = executor.run(
            [
                cp("a", "s3://bucket/a"),
                cp("b", "s3://bucket/b"),
                cp("c", "s3://bucket/c"),
            ]
        )

        assert stats.copied == 2
        assert stats.failed == 1
        assert len(errors) == 1
        assert isinstance(errors[0], ExecutionError)
        assert isinstance(errors[0].cause, StorageError)
        assert str(errors[0]) == '"cp --raw=true "a" "s3://bucket/a"": denied'

    def test_unknown_operation(self, errors):
        """Test that an unknown operation is reported as a failure."""
        executor = make_executor(Mock(spec=LocalClient), Mock(spec=S3Client), errors)
        stats = executor.run([Command(op="mv", urls=[])])
        assert stats.failed == 1
        assert isinstance(errors[0].cause, ValueError)

    def test_invalid_worker_count(self):
        with pytest.raises(ValueError):
            CommandExecutor(Mock(), Mock(), report_error=Mock(), workers=0)


class TestDryRun:
    """Tests for dry run mode."""

    def test_dry_run_prints_commands(self, errors, mock_output):
        """Test that dry runs print commands without touching storage."""
        src, dst = Mock(spec=LocalClient), Mock(spec=S3Client)
        executor = make_executor(
            src, dst, errors, output=mock_output, dry_run=True
        )

        stats = executor.run([cp("a", "s3://bucket/a"), rm("s3://bucket/x", "s3://bucket/y")])

        dst.put.assert_not_called()
        dst.delete.assert_not_called()
        mock_output.info.assert_any_call('DRYRUN cp --raw=true "a" "s3://bucket/a"')
        assert stats.copied == 1
        assert stats.deleted == 2


class TestConcurrency:
    """Tests for worker limits and cancellation."""

    def test_workers_run_in_parallel(self, errors):
        """Test that up to ``workers`` commands run at the same time."""
        barrier = threading.Barrier(3, timeout=5)
        src, dst = Mock(spec=LocalClient), Mock(spec=S3Client)
        dst.put.side_effect = lambda *args: barrier.wait()
        executor = make_executor(src, dst, errors, workers=3)

        stats = executor.run([cp(str(i), f"s3://bucket/{i}") for i in range(3)])

        assert stats.copied == 3
        assert errors == []

    def test_in_flight_is_bounded(self, errors):
        """Test that no more than ``workers`` commands are in flight."""
        lock = threading.Lock()
        state = {"running": 0, "peak": 0}

        def slow_put(*args):
            with lock:
                state["running"] += 1
                state["peak"] = max(state["peak"], state["running"])
            time.sleep(0.01)
            with lock:
                state["running"] -= 1

        src, dst = Mock(spec=LocalClient), Mock(spec=S3Client)
        dst.put.side_effect = slow_put
        executor = make_executor(src, dst, errors, workers=2)

        executor.run([cp(str(i), f"s3://bucket/{i}") for i in range(10)])

        assert state["peak"] <= 2

    def test_cancel_stops_reading(self, errors):
        """Test that no new commands start after cancellation."""
        cancel = threading.Event()
        src, dst = Mock(spec=LocalClient), Mock(spec=S3Client)
        dst.put.side_effect = lambda *args: cancel.set()
        executor = make_executor(src, dst, errors, workers=1, cancel_event=cancel)

        def commands():
            for i in range(10):
                yield cp(str(i), f"s3://bucket/{i}")
                time.sleep(0.05)

        stats = executor.run(commands())

        assert stats.copied < 10


class TestExecutionStats:
    def test_as_dict(self):
        assert ExecutionStats(copied=1).as_dict() == {
            "copied": 1,
            "deleted": 0,
            "failed": 0,
        }
