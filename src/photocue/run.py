"""A single execution attempt of a photo."""

from __future__ import annotations

import asyncio
import inspect
from typing import TYPE_CHECKING, Any, Callable

from photocue.errors import RunCancelledError
from photocue.models import SETTLED_STATES, RunState
from photocue.timer import Timer

if TYPE_CHECKING:
    from photocue.photo import Photo

# executor(run, token) -> outcome, sync or async
Executor = Callable[["PhotoRun", "CancelToken"], Any]


class CancelToken:
    """
    Cooperative cancellation flag handed to the executor.

    Executors poll `cancelled` or await `wait()` and stop on their own;
    nothing interrupts them from outside.

    Example:
        async def executor(run, token):
            for step in range(100):
                token.raise_if_cancelled()
                await do_step(step)
    """

    def __init__(self, run_id: int) -> None:
        self.run_id = run_id
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise RunCancelledError(self.run_id)

    async def wait(self) -> None:
        await self._event.wait()


class PhotoRun:
    """One of the N executions of a photo."""

    def __init__(self, id: int, photo: Photo | None, executor: Executor) -> None:
        self.id = id
        self.photo = photo
        self.executor = executor

        self.state = RunState.QUEUED
        self.outcome: Any = None
        self.error: BaseException | None = None
        self.timer = Timer()
        self.token = CancelToken(id)
        self.cancel_requested = False
        self._executing = False
        self._thread: asyncio.Future | None = None

    def __repr__(self) -> str:
        return f"PhotoRun(id={self.id}, state={self.state.value})"

    @property
    def running(self) -> bool:
        return self.state == RunState.RUNNING

    @property
    def finished(self) -> bool:
        return self.state == RunState.FINISHED

    @property
    def failed(self) -> bool:
        return self.state == RunState.FAILED

    @property
    def cancelled(self) -> bool:
        return self.state == RunState.CANCELLED

    @property
    def settled(self) -> bool:
        return self.state in SETTLED_STATES

    @property
    def duration(self) -> float:
        return self.timer.duration

    async def start(self) -> Any:
        """
        Invoke the executor and return its outcome.

        Async executors are awaited; plain callables run in a worker
        thread so they don't block the event loop. A thread still running
        from an abandoned attempt is waited for before the next call.

        Raises:
            RunCancelledError: Cancellation was requested before the
                executor started or before it returned.
            RuntimeError: The run is already executing.
        """
        # A thread left behind by a timed out attempt must return first
        while self._thread is not None and not self._thread.done():
            await asyncio.wait({self._thread})

        if self._executing:
            raise RuntimeError(f"Run #{self.id} is already executing")

        self.token.raise_if_cancelled()

        self._executing = True
        if inspect.iscoroutinefunction(self.executor):
            try:
                outcome = await self.executor(self, self.token)
            finally:
                self._executing = False
        else:
            # Cancelling the await doesn't stop the thread, so the guard
            # is only lowered once the thread itself returns.
            self._thread = asyncio.ensure_future(asyncio.to_thread(self.executor, self, self.token))
            self._thread.add_done_callback(self._on_thread_done)
            outcome = await asyncio.shield(self._thread)

        self.token.raise_if_cancelled()
        return outcome

    def _on_thread_done(self, future: asyncio.Future) -> None:
        self._executing = False
        if not future.cancelled():
            # Retrieved here in case nobody awaits it anymore
            future.exception()

    def cancel(self) -> None:
        """Request cancellation. Settled runs are left alone."""
        if self.settled:
            return

        self.cancel_requested = True
        self.token.cancel()
        self.state = RunState.CANCELLED
        self.timer.stop()

    def reset(self) -> None:
        """Return to a fresh queued state for a rerun."""
        self.state = RunState.QUEUED
        self.outcome = None
        self.error = None
        self.timer = Timer()
        self.token = CancelToken(self.id)
        self.cancel_requested = False

    # --- Queue events ---

    def on_start(self) -> None:
        self.state = RunState.RUNNING
        self.timer.start()

    def on_finish(self, outcome: Any = None) -> None:
        self.timer.stop()
        self.outcome = outcome
        if self.cancel_requested:
            return
        self.state = RunState.FINISHED

    def on_fail(self, error: BaseException | None = None) -> None:
        self.timer.stop()
        self.error = error
        if self.cancel_requested:
            # Cancellation acknowledged, not a failure
            return
        self.state = RunState.FAILED
