"""Single-concurrency FIFO queue that drives runs to completion."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Callable

from photocue.config import AFTER_PROCESS_DELAY
from photocue.errors import ExecutorError, RunTimeoutError

if TYPE_CHECKING:
    from photocue.run import PhotoRun

logger = logging.getLogger(__name__)


class RunQueue:
    """
    Runs one PhotoRun at a time, in push order.

    The queue never retries; a failed run is reported and the next one
    starts. Push the run again to retry it.

    Example:
        queue = RunQueue(max_timeout=180)

        @queue.on_finished
        def on_finished(run_id, outcome):
            print(f"Run #{run_id} done")

        @queue.on_drained
        def on_drained():
            print("All runs finished")

        queue.push(run)
    """

    def __init__(
        self,
        *,
        max_timeout: float | None = None,
        after_process_delay: float = AFTER_PROCESS_DELAY,
    ) -> None:
        self.max_timeout = max_timeout
        self.after_process_delay = after_process_delay

        self._pending: list[PhotoRun] = []
        self._in_flight: PhotoRun | None = None
        self._worker: asyncio.Task | None = None

        # Event callbacks
        self._on_started_callbacks: list[Callable] = []
        self._on_finished_callbacks: list[Callable] = []
        self._on_failed_callbacks: list[Callable] = []
        self._on_drained_callbacks: list[Callable] = []

    # --- Inspection ---

    @property
    def pending(self) -> list[PhotoRun]:
        return list(self._pending)

    @property
    def in_flight(self) -> PhotoRun | None:
        return self._in_flight

    @property
    def idle(self) -> bool:
        return not self._pending and self._in_flight is None

    # --- Event Callbacks ---

    def on_started(self, func):
        """Register a callback called with (run_id) before a run starts."""
        self._on_started_callbacks.append(func)
        return func

    def on_finished(self, func):
        """Register a callback called with (run_id, outcome) on success."""
        self._on_finished_callbacks.append(func)
        return func

    def on_failed(self, func):
        """
        Register a callback called with (run_id, error) on failure.

        Covers executor errors, timeouts and cancellation acknowledgments.
        """
        self._on_failed_callbacks.append(func)
        return func

    def on_drained(self, func):
        """Register a callback called once nothing is pending or in flight."""
        self._on_drained_callbacks.append(func)
        return func

    def _emit(self, callbacks: list[Callable], *args: Any) -> None:
        for callback in callbacks:
            try:
                callback(*args)
            except Exception:
                logger.exception("Queue event callback %r failed", callback)

    # --- Operations ---

    def push(self, run: PhotoRun) -> None:
        """Enqueue a run. Must be called from within a running event loop."""
        self._pending.append(run)

        if self._worker is None:
            loop = asyncio.get_running_loop()
            self._worker = loop.create_task(self._process())

    def cancel(self, run_id: int) -> bool:
        """
        Request cancellation of a queued or in-flight run.

        A queued run is dropped from the queue. An in-flight run is
        asked to stop through its token and keeps its slot until it
        settles or times out.

        Returns:
            True if a matching run was found, False otherwise.
        """
        for i, run in enumerate(self._pending):
            if run.id == run_id:
                self._pending.pop(i)
                run.cancel()
                return True

        if self._in_flight is not None and self._in_flight.id == run_id:
            self._in_flight.cancel()
            return True

        return False

    def clear(self) -> None:
        """Cancel every queued and in-flight run."""
        pending, self._pending = self._pending, []
        for run in pending:
            run.cancel()

        if self._in_flight is not None:
            self._in_flight.cancel()

    async def stop(self) -> None:
        """Stop the worker without waiting for the in-flight run."""
        self.clear()

        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
            self._in_flight = None

    # --- Worker ---

    async def _process(self) -> None:
        """Background loop that runs pending work until the queue is empty."""
        try:
            while self._pending:
                run = self._pending.pop(0)
                self._in_flight = run
                try:
                    await self._execute(run)
                finally:
                    self._in_flight = None

                if self._pending and self.after_process_delay > 0:
                    await asyncio.sleep(self.after_process_delay)
        finally:
            self._worker = None

        logger.debug("Queue drained")
        self._emit(self._on_drained_callbacks)

    async def _execute(self, run: PhotoRun) -> None:
        """Execute a single run and report how it settled."""
        self._emit(self._on_started_callbacks, run.id)

        # Own task, so errors raised by the executor (TimeoutError and
        # CancelledError included) can't be mistaken for the ceiling
        # expiring or for this worker being stopped.
        task = asyncio.ensure_future(run.start())
        try:
            done, _ = await asyncio.wait({task}, timeout=self.max_timeout)
        except asyncio.CancelledError:
            task.cancel()
            raise

        if not done:
            run.token.cancel()
            task.cancel()
            await asyncio.wait({task})
            if not task.cancelled():
                task.exception()

            error = RunTimeoutError(run.id, self.max_timeout)
            logger.warning("%s", error)
            self._emit(self._on_failed_callbacks, run.id, error)
            return

        if task.cancelled():
            error = ExecutorError(f"Run #{run.id} executor was cancelled")
            self._emit(self._on_failed_callbacks, run.id, error)
            return

        error = task.exception()
        if error is not None:
            self._emit(self._on_failed_callbacks, run.id, error)
        else:
            self._emit(self._on_finished_callbacks, run.id, task.result())
