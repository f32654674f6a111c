"""Basic scenario - the default workload pattern.

Every photo is queued in the registry and processed in turn.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from photocue_sim.scenarios import Scenario, ScenarioInfo

if TYPE_CHECKING:
    from photocue import Photo, PhotoRegistry
    from photocue_sim.display import SimulationState
    from photocue_sim.runner import SimConfig


class BasicScenario(Scenario):
    """Queue everything, wait for everything."""

    @property
    def info(self) -> ScenarioInfo:
        return ScenarioInfo(
            name="basic",
            description="Queue all photos and process them in order (default)",
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
