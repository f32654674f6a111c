"""Photo: the work item whose runs are scheduled."""

from __future__ import annotations

import copy
import dataclasses
import logging
from pathlib import Path
from typing import Any, Callable

from photocue.config import Preferences, Settings, compute_max_timeout
from photocue.errors import RunTimeoutError, ValidationError
from photocue.files import SUPPORTED_MIMETYPES, SourceFile
from photocue.models import FileKind, PhotoStatus
from photocue.notify import Notifier, Surface, send_completion_notification
from photocue.queue import RunQueue
from photocue.run import Executor, PhotoRun
from photocue.signals import CompletionSignal
from photocue.timer import Timer

logger = logging.getLogger(__name__)

MASKFIN_PREFERENCES = {
    "executions": 1,
    "randomize": False,
    "progressive": False,
    "scale_mode": "auto-rescale",
    "transform_mode": "import-maskfin",
    "use_color_transfer": False,
}


class Photo:
    """
    A photo processed N times by an executor, one run at a time.

    Example:
        async def executor(run, token):
            return await model.transform(run.photo.file.path)

        photo = Photo("dream.png", executor, settings=Settings())
        await photo.start()
        print(photo.status, [run.state for run in photo.runs])
    """

    def __init__(
        self,
        file: SourceFile | str | Path,
        executor: Executor,
        *,
        settings: Settings | None = None,
        is_maskfin: bool = False,
        notifier: Notifier | None = None,
        surface: Surface | None = None,
    ) -> None:
        self.file = file if isinstance(file, SourceFile) else SourceFile(file)
        self._validate()

        self.id = self.file.md5
        self.executor = executor
        self.settings = settings or Settings()
        self.notifier = notifier
        self.surface = surface
        self.log = logger.getChild(self.id[:8])

        self.preferences = self._setup_preferences(is_maskfin)

        self.runs: list[PhotoRun] = []
        self.timer = Timer()

        self._status = PhotoStatus.PENDING
        self._status_callbacks: list[Callable] = []
        self._completion = CompletionSignal()
        self._cycle_open = False

        self.max_timeout = self._compute_max_timeout()
        self.queue = self._setup_queue()

    def __repr__(self) -> str:
        return f"Photo({self.file.fullname!r}, status={self._status.value})"

    # --- Status ---

    @property
    def status(self) -> PhotoStatus:
        return self._status

    @status.setter
    def status(self, value: PhotoStatus) -> None:
        old = self._status
        self._status = PhotoStatus(value)

        if old == self._status:
            return

        for callback in self._status_callbacks:
            try:
                callback(self, old, self._status)
            except Exception:
                self.log.exception("Status callback %r failed", callback)

    def on_status_changed(self, func):
        """
        Register a callback called with (photo, old_status, new_status).

        Called synchronously on every status transition.

        Example:
            @photo.on_status_changed
            def refresh(photo, old, new):
                logging.info(f"{photo.id}: {old.value} -> {new.value}")
        """
        self._status_callbacks.append(func)
        return func

    @property
    def running(self) -> bool:
        return self._status == PhotoStatus.RUNNING

    @property
    def finished(self) -> bool:
        return self._status == PhotoStatus.FINISHED

    @property
    def pending(self) -> bool:
        return self._status == PhotoStatus.PENDING

    @property
    def waiting(self) -> bool:
        return self._status == PhotoStatus.WAITING

    @property
    def started(self) -> bool:
        return self.running or self.finished

    @property
    def can_modify(self) -> bool:
        return self.file.kind != FileKind.ANIMATED

    # --- Setup ---

    def _validate(self) -> None:
        if not self.file.exists:
            raise ValidationError("Upload failed.", f'The file "{self.file.path}" does not exist.')

        if self.file.mimetype not in SUPPORTED_MIMETYPES:
            raise ValidationError(
                "Upload failed.",
                f'The file "{self.file.path}" is not a valid photo. Only jpeg, png or gif.',
            )

    def _setup_preferences(self, is_maskfin: bool) -> Preferences:
        preferences = copy.deepcopy(self.settings.preferences)

        if is_maskfin:
            return dataclasses.replace(preferences, **MASKFIN_PREFERENCES)

        if not self.can_modify:
            return dataclasses.replace(preferences, transform_mode="normal")

        return preferences

    def _compute_max_timeout(self) -> float:
        if self.settings.max_timeout is not None:
            return self.settings.max_timeout
        return compute_max_timeout(self.settings.device, self.file.kind)

    def _setup_queue(self) -> RunQueue:
        queue = RunQueue(
            max_timeout=self.max_timeout,
            after_process_delay=self.settings.after_process_delay,
        )

        # Events from a queue discarded by a newer cycle are ignored

        @queue.on_drained
        def on_drained() -> None:
            if queue is not self.queue:
                return
            self.log.debug("All runs finished.")
            self._on_finish()

        @queue.on_started
        def on_started(run_id: int) -> None:
            if queue is not self.queue:
                return
            self.log.debug("Run #%d started!", run_id)
            self.get_run_by_id(run_id).on_start()

        @queue.on_finished
        def on_finished(run_id: int, outcome: Any) -> None:
            if queue is not self.queue:
                return
            self.log.debug("Run #%d finished!", run_id)
            self.get_run_by_id(run_id).on_finish(outcome)

        @queue.on_failed
        def on_failed(run_id: int, error: BaseException) -> None:
            if queue is not self.queue:
                return
            run = self.get_run_by_id(run_id)
            run.on_fail(error)

            if run.cancel_requested:
                self.log.debug("Run #%d cancelled.", run_id)
            elif isinstance(error, RunTimeoutError):
                self.log.warning("Run #%d failed: %s", run_id, error)
            else:
                self.log.warning("Run #%d failed: %s", run_id, error, exc_info=error)

        return queue

    # --- Runs ---

    def get_run_by_id(self, run_id: int) -> PhotoRun:
        return self.runs[run_id - 1]

    def reset(self) -> None:
        """Drop the current cycle and go back to pending."""
        if self._cycle_open:
            self.log.debug("Discarding an unfinished cycle.")
            self._completion.fire()

        self.queue.clear()
        self.queue = self._setup_queue()

        self.status = PhotoStatus.PENDING
        self.timer = Timer()
        self.runs = []
        self._cycle_open = False

    async def start(self) -> None:
        """
        Run the photo `preferences.executions` times and wait for the cycle.

        Returns at once, without touching the status, when executions is 0.
        """
        executions = self.preferences.executions

        if executions == 0:
            self.log.debug("No executions requested, nothing to do.")
            return

        self.reset()

        self.log.debug("Starting %d runs.", executions)

        self._on_start()

        for it in range(1, executions + 1):
            run = PhotoRun(it, self, self.executor)

            self.runs.append(run)
            self.queue.push(run)

        await self.wait()

    async def wait(self) -> None:
        """Wait until the current cycle finishes."""
        await self._completion.wait()

    def cancel(self, status: PhotoStatus = PhotoStatus.FINISHED) -> None:
        """
        Cancel every run and finish the cycle with `status`.

        The status changes right away; executors already in flight stop
        on their own time.
        """
        for run in self.runs:
            self.cancel_run(run)

        self._on_finish(status)

    def cancel_run(self, run: PhotoRun) -> bool:
        return self.queue.cancel(run.id)

    def rerun(self, run: PhotoRun) -> None:
        """
        Reset a single run and queue it again.

        Other runs are untouched. Await `wait()` for the cycle to finish.
        """
        if run not in self.runs:
            raise ValueError(f"Run #{run.id} does not belong to this photo's current runs")

        run.reset()
        self.queue.push(run)

        self._on_start()

    # --- Cycle ---

    def _on_start(self) -> None:
        self._cycle_open = True
        self._completion.arm()
        self.status = PhotoStatus.RUNNING
        self.timer.start()

    def _on_finish(self, status: PhotoStatus = PhotoStatus.FINISHED) -> None:
        if not self._cycle_open:
            self.log.debug("Cycle already finished, ignoring.")
            return

        self._cycle_open = False
        self.status = status
        self.timer.stop()

        self._completion.fire()

        send_completion_notification(self, self.notifier, self.surface)
