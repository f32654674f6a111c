"""Built-in scenarios for photocue-sim.

Scenarios define what happens to the photos once they are loaded:
plain processing, cancellation, reruns.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from photocue import Photo, PhotoRegistry
    from photocue_sim.display import SimulationState
    from photocue_sim.runner import SimConfig


@dataclass
class ScenarioInfo:
    """Metadata about a scenario."""
    name: str
    description: str


class Scenario(ABC):
    """Base class for simulation scenarios."""

    @property
    @abstractmethod
    def info(self) -> ScenarioInfo:
        """Return scenario metadata."""
        ...

    @abstractmethod
    async def run(
        self,
        registry: "PhotoRegistry",
        photos: list["Photo"],
        config: "SimConfig",
        state: "SimulationState",
    ) -> None:
        """Drive the photos and return once the scenario is over.

        Args:
            registry: Registry the photos are registered in
            photos: Photos created for this simulation, in file order
            config: Simulation configuration
            state: State object to update for display
        """
        ...


# Import built-in scenarios
from photocue_sim.scenarios.basic import BasicScenario  # noqa: E402
from photocue_sim.scenarios.cancel import CancelScenario  # noqa: E402
from photocue_sim.scenarios.rerun import RerunScenario  # noqa: E402

# Registry of built-in scenarios
SCENARIOS: dict[str, type[Scenario]] = {
    "basic": BasicScenario,
    "cancel": CancelScenario,
    "rerun": RerunScenario,
}


def get_scenario(name: str) -> Scenario:
    """Get a scenario instance by name."""
    if name not in SCENARIOS:
        available = ", ".join(SCENARIOS.keys())
        raise ValueError(f"Unknown scenario: {name}. Available: {available}")
    return SCENARIOS[name]()


def list_scenarios() -> list[ScenarioInfo]:
    """List all available scenarios."""
    return [cls().info for cls in SCENARIOS.values()]
