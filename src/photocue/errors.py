"""Exceptions raised by photocue."""

from __future__ import annotations


class PhotocueError(Exception):
    """Base class for photocue errors."""


class ValidationError(PhotocueError):
    """The source file cannot be processed.

    Carries a short user-facing title and a longer message.
    """

    def __init__(self, title: str, message: str) -> None:
        super().__init__(f"{title} {message}")
        self.title = title
        self.message = message


class ExecutorError(PhotocueError):
    """Raised by an executor when a run cannot produce a result."""


class RunTimeoutError(PhotocueError, TimeoutError):
    """A run exceeded its timeout ceiling."""

    def __init__(self, run_id: int, timeout: float) -> None:
        super().__init__(f"Run #{run_id} timed out after {timeout:g}s")
        self.run_id = run_id
        self.timeout = timeout


class RunCancelledError(PhotocueError):
    """A run acknowledged a cancellation request."""

    def __init__(self, run_id: int) -> None:
        super().__init__(f"Run #{run_id} was cancelled")
        self.run_id = run_id
