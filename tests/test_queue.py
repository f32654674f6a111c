"""Tests for the RunQueue scheduler."""

import asyncio
import time

from photocue import ExecutorError, PhotoRun, RunQueue, RunTimeoutError
from helpers import make_sleeper, quick_executor


def make_queue(**kwargs):
    """Queue with recorded events, driving run states like a photo would."""
    kwargs.setdefault("after_process_delay", 0)
    queue = RunQueue(**kwargs)
    runs = {}
    events = []
    drained = asyncio.Event()

    @queue.on_started
    def on_started(run_id):
        events.append(("started", run_id))
        runs[run_id].on_start()

    @queue.on_finished
    def on_finished(run_id, outcome):
        events.append(("finished", run_id))
        runs[run_id].on_finish(outcome)

    @queue.on_failed
    def on_failed(run_id, error):
        events.append(("failed", run_id, error))
        runs[run_id].on_fail(error)

    @queue.on_drained
    def on_drained():
        events.append(("drained",))
        drained.set()

    def push(run):
        runs[run.id] = run
        queue.push(run)

    return queue, push, events, drained


class TestOrdering:
    """FIFO with a concurrency of one."""

    async def test_runs_in_push_order(self):
        queue, push, events, drained = make_queue()
        for i in range(1, 4):
            push(PhotoRun(i, None, quick_executor))

        await asyncio.wait_for(drained.wait(), timeout=2)

        assert events == [
            ("started", 1), ("finished", 1),
            ("started", 2), ("finished", 2),
            ("started", 3), ("finished", 3),
            ("drained",),
        ]

    async def test_never_more_than_one_running(self):
        active = []
        peak = []

        async def executor(run, token):
            active.append(run.id)
            peak.append(len(active))
            await asyncio.sleep(0.02)
            active.remove(run.id)

        queue, push, events, drained = make_queue()
        for i in range(1, 6):
            push(PhotoRun(i, None, executor))

        await asyncio.wait_for(drained.wait(), timeout=2)

        assert max(peak) == 1

    async def test_in_flight_and_pending(self):
        queue, push, events, drained = make_queue()
        first = PhotoRun(1, None, make_sleeper(0.1))
        second = PhotoRun(2, None, quick_executor)
        push(first)
        push(second)

        await asyncio.sleep(0.02)
        assert queue.in_flight is first
        assert queue.pending == [second]
        assert not queue.idle

        await asyncio.wait_for(drained.wait(), timeout=2)
        assert queue.idle

    async def test_settle_delay_between_runs(self):
        starts = []

        async def executor(run, token):
            starts.append(time.monotonic())

        queue, push, events, drained = make_queue(after_process_delay=0.1)
        push(PhotoRun(1, None, executor))
        push(PhotoRun(2, None, executor))

        await asyncio.wait_for(drained.wait(), timeout=2)

        assert starts[1] - starts[0] >= 0.09


class TestFailures:
    """A failing run never halts the queue."""

    async def test_executor_error_reported_and_queue_continues(self):
        async def failing(run, token):
            raise ValueError("model crashed")

        queue, push, events, drained = make_queue()
        push(PhotoRun(1, None, failing))
        push(PhotoRun(2, None, quick_executor))

        await asyncio.wait_for(drained.wait(), timeout=2)

        assert events[0] == ("started", 1)
        assert events[1][0:2] == ("failed", 1)
        assert isinstance(events[1][2], ValueError)
        assert events[2:] == [("started", 2), ("finished", 2), ("drained",)]

    async def test_timeout_fails_run(self):
        async def stuck(run, token):
            # Ignores the token entirely
            await asyncio.sleep(10)

        queue, push, events, drained = make_queue(max_timeout=0.05)
        hung = PhotoRun(1, None, stuck)
        push(hung)
        push(PhotoRun(2, None, quick_executor))

        await asyncio.wait_for(drained.wait(), timeout=2)

        failed = [e for e in events if e[0] == "failed"]
        assert len(failed) == 1
        assert failed[0][1] == 1
        error = failed[0][2]
        assert isinstance(error, RunTimeoutError)
        assert isinstance(error, TimeoutError)
        assert error.timeout == 0.05
        assert hung.failed
        assert hung.token.cancelled
        assert ("finished", 2) in events

    async def test_executor_timeout_error_without_ceiling(self):
        """An executor's own TimeoutError is an ordinary failure."""
        async def upstream_timeout(run, token):
            raise TimeoutError("socket timed out")

        queue, push, events, drained = make_queue()
        push(PhotoRun(1, None, upstream_timeout))
        push(PhotoRun(2, None, quick_executor))

        await asyncio.wait_for(drained.wait(), timeout=2)

        error = events[1][2]
        assert events[1][0:2] == ("failed", 1)
        assert isinstance(error, TimeoutError)
        assert not isinstance(error, RunTimeoutError)
        assert str(error) == "socket timed out"
        assert events[2:] == [("started", 2), ("finished", 2), ("drained",)]

    async def test_executor_timeout_error_with_ceiling(self):
        async def upstream_timeout(run, token):
            raise TimeoutError("socket timed out")

        queue, push, events, drained = make_queue(max_timeout=5)
        run = PhotoRun(1, None, upstream_timeout)
        push(run)

        await asyncio.wait_for(drained.wait(), timeout=2)

        error = events[1][2]
        assert not isinstance(error, RunTimeoutError)
        assert str(error) == "socket timed out"
        assert run.failed
        assert not run.token.cancelled

    async def test_executor_raising_cancelled_error(self):
        """A CancelledError from inside the executor doesn't stop the worker."""
        async def cancelled_inside(run, token):
            if run.id == 1:
                raise asyncio.CancelledError()
            return "ok"

        queue, push, events, drained = make_queue()
        first = PhotoRun(1, None, cancelled_inside)
        push(first)
        push(PhotoRun(2, None, cancelled_inside))

        await asyncio.wait_for(drained.wait(), timeout=2)

        assert events[1][0:2] == ("failed", 1)
        assert isinstance(events[1][2], ExecutorError)
        assert first.failed
        assert events[2:] == [("started", 2), ("finished", 2), ("drained",)]

    async def test_no_automatic_retry(self):
        calls = []

        async def failing(run, token):
            calls.append(run.id)
            raise RuntimeError("nope")

        queue, push, events, drained = make_queue()
        push(PhotoRun(1, None, failing))

        await asyncio.wait_for(drained.wait(), timeout=2)

        assert calls == [1]

    async def test_callback_error_does_not_break_queue(self):
        queue, push, events, drained = make_queue()

        @queue.on_started
        def broken(run_id):
            raise RuntimeError("listener bug")

        push(PhotoRun(1, None, quick_executor))

        await asyncio.wait_for(drained.wait(), timeout=2)
        assert ("finished", 1) in events


class TestCancel:
    """Cancelling queued and in-flight runs."""

    async def test_cancel_queued_run_skips_it(self):
        calls = []

        async def executor(run, token):
            calls.append(run.id)
            await asyncio.sleep(0.05)

        queue, push, events, drained = make_queue()
        first = PhotoRun(1, None, executor)
        second = PhotoRun(2, None, executor)
        push(first)
        push(second)
        await asyncio.sleep(0.01)

        assert queue.cancel(2) is True
        assert second.cancelled

        await asyncio.wait_for(drained.wait(), timeout=2)
        assert calls == [1]
        assert first.finished

    async def test_cancel_in_flight_run(self):
        queue, push, events, drained = make_queue()
        run = PhotoRun(1, None, make_sleeper(5))
        push(run)
        await asyncio.sleep(0.02)

        assert queue.cancel(1) is True
        assert run.cancelled

        await asyncio.wait_for(drained.wait(), timeout=2)
        # Acknowledged as a failure event, but the run stays cancelled
        assert events[1][0:2] == ("failed", 1)
        assert run.cancelled

    async def test_cancel_unknown_returns_false(self):
        queue, push, events, drained = make_queue()
        assert queue.cancel(42) is False

    async def test_clear_cancels_everything(self):
        queue, push, events, drained = make_queue()
        runs = [PhotoRun(i, None, make_sleeper(5)) for i in range(1, 4)]
        for run in runs:
            push(run)
        await asyncio.sleep(0.02)

        queue.clear()

        await asyncio.wait_for(drained.wait(), timeout=2)
        assert all(run.cancelled for run in runs)
        assert queue.idle


class TestDrain:
    """The drained event."""

    async def test_drained_fires_once_per_batch(self):
        queue, push, events, drained = make_queue()
        push(PhotoRun(1, None, quick_executor))
        push(PhotoRun(2, None, quick_executor))

        await asyncio.wait_for(drained.wait(), timeout=2)
        await asyncio.sleep(0.02)

        assert events.count(("drained",)) == 1

    async def test_push_after_drain_restarts_worker(self):
        queue, push, events, drained = make_queue()
        push(PhotoRun(1, None, quick_executor))
        await asyncio.wait_for(drained.wait(), timeout=2)

        drained.clear()
        push(PhotoRun(2, None, quick_executor))
        await asyncio.wait_for(drained.wait(), timeout=2)

        assert events.count(("drained",)) == 2
        assert ("finished", 2) in events

    async def test_stop_cancels_worker(self):
        queue, push, events, drained = make_queue()
        push(PhotoRun(1, None, make_sleeper(5)))
        push(PhotoRun(2, None, make_sleeper(5)))
        await asyncio.sleep(0.02)

        await queue.stop()

        assert queue.idle
