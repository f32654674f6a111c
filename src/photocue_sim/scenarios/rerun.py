"""Rerun scenario.

Processes every photo, then reruns each failed run once. Pair it with
--error-rate or --hang-rate to see anything interesting.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from photocue_sim.scenarios import Scenario, ScenarioInfo

if TYPE_CHECKING:
    from photocue import Photo, PhotoRegistry
    from photocue_sim.display import SimulationState
    from photocue_sim.runner import SimConfig


class RerunScenario(Scenario):
    """Retry failed runs one photo at a time."""

    @property
    def info(self) -> ScenarioInfo:
        return ScenarioInfo(
            name="rerun",
            description="Process all photos, then rerun every failed run once",
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

        await registry.wait_idle()

        for photo in photos:
            failed = [run for run in photo.runs if run.failed]
            if not failed:
                continue

            for run in failed:
                state.add_event("rerun", f"{photo.file.fullname}#{run.id}", "run", "")
                photo.rerun(run)

            await photo.wait()
