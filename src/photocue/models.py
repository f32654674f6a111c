"""Core enums for photocue."""

from __future__ import annotations

from enum import Enum


class PhotoStatus(str, Enum):
    """Lifecycle status of a photo."""

    PENDING = "pending"
    WAITING = "waiting"
    RUNNING = "running"
    FINISHED = "finished"
    FAILED = "failed"
    CANCELLED = "cancelled"


class RunState(str, Enum):
    """Possible states for a single run."""

    QUEUED = "queued"
    RUNNING = "running"
    FINISHED = "finished"
    FAILED = "failed"
    CANCELLED = "cancelled"


class DeviceClass(str, Enum):
    """Compute device in effect for processing."""

    FAST = "fast"  # GPU
    SLOW = "slow"  # CPU


class FileKind(str, Enum):
    """Kind of source file content."""

    STILL = "still"
    ANIMATED = "animated"


SETTLED_STATES = frozenset({RunState.FINISHED, RunState.FAILED, RunState.CANCELLED})
TERMINAL_STATUSES = frozenset({PhotoStatus.FINISHED, PhotoStatus.FAILED, PhotoStatus.CANCELLED})
