"""Settings, preferences and timeout policy."""

from __future__ import annotations

from dataclasses import dataclass, field

from photocue.models import DeviceClass, FileKind

# Per-run timeout ceilings, in seconds
FAST_DEVICE_TIMEOUT = 3 * 60.0
SLOW_DEVICE_TIMEOUT = 20 * 60.0
ANIMATED_TIMEOUT_EXTENSION = 30 * 60.0

# Pause between two runs so the executor can release its resources
AFTER_PROCESS_DELAY = 0.5


@dataclass
class Preferences:
    """Processing preferences for one photo."""

    executions: int = 1
    randomize: bool = False
    progressive: bool = False
    scale_mode: str = "auto-rescale"
    transform_mode: str = "normal"
    use_color_transfer: bool = False


@dataclass
class Settings:
    """Application-wide settings snapshot.

    Values are trusted as-is; whoever loads them is expected to have
    checked them already.
    """

    device: DeviceClass = DeviceClass.FAST
    notify_all_runs: bool = False
    preferences: Preferences = field(default_factory=Preferences)
    after_process_delay: float = AFTER_PROCESS_DELAY
    max_timeout: float | None = None  # Overrides the computed ceiling


def compute_max_timeout(device: DeviceClass, kind: FileKind) -> float:
    """
    Per-run timeout ceiling for a device class and file kind.

    Example:
        compute_max_timeout(DeviceClass.FAST, FileKind.STILL)     # 180.0
        compute_max_timeout(DeviceClass.SLOW, FileKind.ANIMATED)  # 3000.0
    """
    if device == DeviceClass.FAST:
        timeout = FAST_DEVICE_TIMEOUT
    else:
        timeout = SLOW_DEVICE_TIMEOUT

    if kind == FileKind.ANIMATED:
        timeout += ANIMATED_TIMEOUT_EXTENSION

    return timeout
