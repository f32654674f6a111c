"""photocue - Schedules the repeated runs of a photo through a slow executor."""

from photocue.config import Preferences, Settings, compute_max_timeout
from photocue.errors import (
    ExecutorError,
    PhotocueError,
    RunCancelledError,
    RunTimeoutError,
    ValidationError,
)
from photocue.files import SourceFile
from photocue.models import DeviceClass, FileKind, PhotoStatus, RunState
from photocue.photo import Photo
from photocue.queue import RunQueue
from photocue.registry import PhotoRegistry
from photocue.run import CancelToken, PhotoRun
from photocue.timer import Timer

__version__ = "0.1.0"
__all__ = [
    "Photo",
    "PhotoRun",
    "PhotoRegistry",
    "RunQueue",
    "CancelToken",
    "SourceFile",
    "Timer",
    "Settings",
    "Preferences",
    "compute_max_timeout",
    "PhotoStatus",
    "RunState",
    "DeviceClass",
    "FileKind",
    "PhotocueError",
    "ValidationError",
    "ExecutorError",
    "RunTimeoutError",
    "RunCancelledError",
]
