"""Cancel scenario.

Each photo is cancelled as soon as its first run finishes, so the
remaining runs never execute. Shows that the photo settles right away
while the in-flight executor winds down on its own.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from photocue import PhotoStatus
from photocue_sim.scenarios import Scenario, ScenarioInfo

if TYPE_CHECKING:
    from photocue import Photo, PhotoRegistry
    from photocue_sim.display import SimulationState
    from photocue_sim.runner import SimConfig


class CancelScenario(Scenario):
    """Cancel every photo after its first finished run."""

    @property
    def info(self) -> ScenarioInfo:
        return ScenarioInfo(
            name="cancel",
            description="Cancel each photo once its first run finishes",
        )

    async def run(
        self,
        registry: PhotoRegistry,
        photos: list[Photo],
        config: SimConfig,
        state: SimulationState,
    ) -> None:
        for photo in photos:
            registry.enqueue(photo)

        watcher = asyncio.create_task(self._cancel_after_first_run(registry, state))
        try:
            await registry.wait_idle()
        finally:
            watcher.cancel()
            try:
                await watcher
            except asyncio.CancelledError:
                pass

    async def _cancel_after_first_run(self, registry: PhotoRegistry, state: SimulationState) -> None:
        while True:
            photo = registry.current
            if photo is not None and photo.running and any(run.settled for run in photo.runs):
                state.add_event("cancel", photo.id[:8], "photo", photo.file.fullname)
                photo.cancel(PhotoStatus.CANCELLED)
            await asyncio.sleep(0.01)
