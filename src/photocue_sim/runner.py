"""Simulation runner for photocue-sim.

This module handles the actual simulation logic, decoupled from display.
It updates a SimulationState object that can be rendered by any display.
"""

from __future__ import annotations

import asyncio
import random
import shutil
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable

import numpy as np
from PIL import Image

import photocue
from photocue import DeviceClass, PhotoRegistry, PhotoStatus, RunState
from photocue.errors import ExecutorError, RunCancelledError

if TYPE_CHECKING:
    from photocue_sim.display import SimulationState


@dataclass
class SimConfig:
    """Configuration for a simulation run."""

    photos: int = 3
    runs: int = 3
    latency_ms: int = 300
    latency_jitter: float = 0.2  # ±20% variance
    error_rate: float = 0.0
    hang_rate: float = 0.0  # Probability a run never returns on its own
    timeout: float | None = 2.0  # Per-run ceiling in seconds, None = device default
    device: DeviceClass = DeviceClass.FAST
    animated: bool = False
    delay: float = 0.1  # Settle delay between runs
    scenario: str = "basic"
    image_size: int = 64


def make_source_images(directory: Path, count: int, *, animated: bool = False, size: int = 64) -> list[Path]:
    """Write `count` distinct noise images (PNG, or 3-frame GIF) to `directory`."""
    paths = []
    for i in range(count):
        frames = [
            Image.fromarray(np.random.randint(0, 256, (size, size, 3), dtype=np.uint8))
            for _ in range(3 if animated else 1)
        ]
        if animated:
            path = directory / f"photo_{i:03d}.gif"
            frames[0].save(path, save_all=True, append_images=frames[1:], duration=100, loop=0)
        else:
            path = directory / f"photo_{i:03d}.png"
            frames[0].save(path)
        paths.append(path)
    return paths


class MockExecutor:
    """Stands in for the model: sleeps, sometimes fails, sometimes hangs.

    Honors the cancellation token: a cancelled run stops sleeping at once.
    """

    def __init__(self, config: SimConfig, on_event: Callable[[str, str, str | None, str], None]):
        self.config = config
        self.on_event = on_event

    async def execute(self, run: photocue.PhotoRun, token: photocue.CancelToken) -> dict:
        photo_name = run.photo.file.fullname if run.photo else "?"
        work_id = f"{photo_name}#{run.id}"
        started = time.time()
        self.on_event("started", work_id, "run", "")

        try:
            if random.random() < self.config.hang_rate:
                # Only a cancellation or the queue timeout ends this
                await token.wait()
                token.raise_if_cancelled()

            base_latency = self.config.latency_ms / 1000.0
            jitter = self.config.latency_jitter
            latency = base_latency * random.uniform(1 - jitter, 1 + jitter)

            try:
                await asyncio.wait_for(token.wait(), timeout=latency)
            except asyncio.TimeoutError:
                pass
            token.raise_if_cancelled()

            if random.random() < self.config.error_rate:
                raise ExecutorError("Simulated error")

            duration_ms = int((time.time() - started) * 1000)
            self.on_event("finished", work_id, "run", f"{duration_ms}ms")
            return {"mock": True, "latency_ms": duration_ms}

        except RunCancelledError:
            self.on_event("cancelled", work_id, "run", "")
            raise
        except asyncio.CancelledError:
            self.on_event("failed", work_id, "run", "timeout")
            raise
        except Exception as e:
            self.on_event("failed", work_id, "run", str(e))
            raise


class SimulationRunner:
    """Runs simulations and updates state for display.

    This class is decoupled from display - it just updates state.
    The display polls state to render.

    Usage:
        config = SimConfig(photos=3, runs=5)
        state = SimulationState()
        runner = SimulationRunner(config, state)

        # In your event loop:
        await runner.run()
    """

    def __init__(
        self,
        config: SimConfig,
        state: "SimulationState",
        on_event: Callable[[str, str, str | None, str], None] | None = None,
    ):
        self.config = config
        self.state = state
        self.on_event = on_event or state.add_event

        self.registry: PhotoRegistry | None = None
        self._workdir: Path | None = None
        self._running = False

    async def run(self) -> None:
        """Run the simulation to completion."""
        from photocue_sim.scenarios import get_scenario

        scenario = get_scenario(self.config.scenario)

        self._running = True
        self.state.start_time = time.time()
        self.state.scenario_name = scenario.info.name
        self.state.target_runs = self.config.photos * self.config.runs
        self.state.latency_ms = self.config.latency_ms
        self.state.error_rate = self.config.error_rate
        self.state.hang_rate = self.config.hang_rate

        self._workdir = Path(tempfile.mkdtemp(prefix="photocue-sim-"))
        paths = make_source_images(
            self._workdir,
            self.config.photos,
            animated=self.config.animated,
            size=self.config.image_size,
        )

        settings = photocue.Settings(
            device=self.config.device,
            preferences=photocue.Preferences(executions=self.config.runs),
            after_process_delay=self.config.delay,
            max_timeout=self.config.timeout,
        )
        executor = MockExecutor(self.config, self.on_event)

        self.registry = PhotoRegistry()

        @self.registry.on_update
        def on_update(photo, old, new):
            self.on_event(new.value, photo.id[:8], "photo", photo.file.fullname)
            self._update_state()

        photos = [
            self.registry.add(photocue.Photo(path, executor.execute, settings=settings))
            for path in paths
        ]
        self.state.photos = photos

        monitor = asyncio.create_task(self._monitor())
        try:
            await scenario.run(self.registry, photos, self.config, self.state)
        finally:
            self._running = False
            await monitor
            self._update_state()

    async def _monitor(self) -> None:
        """Refresh state until the scenario returns."""
        while self._running:
            self._update_state()
            await asyncio.sleep(0.05)

    def _update_state(self) -> None:
        """Update simulation state from the photos and their runs."""
        if not self.registry:
            return

        self.state.elapsed = time.time() - self.state.start_time

        runs = [run for photo in self.registry for run in photo.runs]
        counts = {state: 0 for state in RunState}
        for run in runs:
            counts[run.state] += 1

        self.state.queued = counts[RunState.QUEUED]
        self.state.running = counts[RunState.RUNNING]
        self.state.finished = counts[RunState.FINISHED]
        self.state.failed = counts[RunState.FAILED]
        self.state.cancelled = counts[RunState.CANCELLED]
        self.state.waiting = self.registry.counts()[PhotoStatus.WAITING]

    def stop(self) -> None:
        """Request simulation stop."""
        self._running = False

    async def cleanup(self) -> None:
        """Clean up resources. Call after interrupt or completion."""
        if self.registry:
            await self.registry.stop()
        if self._workdir:
            shutil.rmtree(self._workdir, ignore_errors=True)
            self._workdir = None
        self._running = False
