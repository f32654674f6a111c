"""Elapsed wall-clock tracking."""

from __future__ import annotations

import time


class Timer:
    """Measures the duration of a start/stop cycle."""

    def __init__(self) -> None:
        self.started_at: float | None = None
        self.stopped_at: float | None = None

    @property
    def running(self) -> bool:
        return self.started_at is not None and self.stopped_at is None

    @property
    def duration(self) -> float:
        """Seconds elapsed, up to now while the timer is still running."""
        if self.started_at is None:
            return 0.0
        end = self.stopped_at if self.stopped_at is not None else time.time()
        return end - self.started_at

    def start(self) -> None:
        self.started_at = time.time()
        self.stopped_at = None

    def stop(self) -> None:
        if self.running:
            self.stopped_at = time.time()
