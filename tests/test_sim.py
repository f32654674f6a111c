"""Tests for the photocue-sim runner and scenarios."""

import asyncio

import pytest

from photocue import DeviceClass, PhotoStatus, RunState
from photocue_sim.cli import build_parser
from photocue_sim.display import SimulationState
from photocue_sim.runner import SimConfig, SimulationRunner, make_source_images
from photocue_sim.scenarios import get_scenario, list_scenarios


async def simulate(**kwargs):
    kwargs.setdefault("latency_ms", 10)
    kwargs.setdefault("delay", 0)
    config = SimConfig(**kwargs)
    state = SimulationState()
    runner = SimulationRunner(config, state)
    try:
        await asyncio.wait_for(runner.run(), timeout=10)
    finally:
        await runner.cleanup()
    return state


class TestScenarios:
    """Scenario registry."""

    def test_list_scenarios(self):
        names = [info.name for info in list_scenarios()]
        assert names == ["basic", "cancel", "rerun"]

    def test_unknown_scenario(self):
        with pytest.raises(ValueError, match="Unknown scenario"):
            get_scenario("nope")


class TestSourceImages:
    """Synthetic inputs."""

    def test_png_images(self, tmp_path):
        paths = make_source_images(tmp_path, 3, size=8)
        assert [p.suffix for p in paths] == [".png"] * 3
        assert len({p.read_bytes() for p in paths}) == 3

    def test_animated_images(self, tmp_path):
        from PIL import Image

        (path,) = make_source_images(tmp_path, 1, animated=True, size=8)
        with Image.open(path) as image:
            assert image.format == "GIF"
            assert image.n_frames == 3


class TestRunner:
    """End-to-end simulations."""

    async def test_basic(self):
        state = await simulate(photos=2, runs=3)

        assert len(state.photos) == 2
        assert all(photo.status == PhotoStatus.FINISHED for photo in state.photos)
        assert state.finished == 6
        assert state.failed == 0
        assert state.progress == 1.0

    async def test_errors_are_counted(self):
        state = await simulate(photos=1, runs=3, error_rate=1.0)

        assert state.failed == 3
        assert state.photos[0].status == PhotoStatus.FINISHED

    async def test_hangs_time_out(self):
        state = await simulate(photos=1, runs=2, hang_rate=1.0, timeout=0.05)

        assert state.failed == 2
        assert all(run.failed for run in state.photos[0].runs)

    async def test_cancel_scenario(self):
        state = await simulate(photos=2, runs=3, latency_ms=100, latency_jitter=0, scenario="cancel")

        for photo in state.photos:
            assert photo.status == PhotoStatus.CANCELLED
            assert photo.runs[0].state == RunState.FINISHED
            assert all(run.state in (RunState.FINISHED, RunState.CANCELLED) for run in photo.runs)
            assert any(run.cancelled for run in photo.runs)

    async def test_rerun_scenario(self):
        state = await simulate(photos=1, runs=2, error_rate=1.0, scenario="rerun")

        reruns = [e for e in state.events if e.event_type == "rerun"]
        assert len(reruns) == 2
        assert state.photos[0].status == PhotoStatus.FINISHED
        assert state.failed == 2


class TestCli:
    """Argument parsing."""

    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.scenario == "basic"
        assert args.runs == 3
        assert args.device == DeviceClass.FAST.value
        assert args.timeout == 2.0

    def test_options(self):
        args = build_parser().parse_args(
            ["--runs", "5", "--device", "slow", "--hang-rate", "0.5", "--animated", "--no-tui"]
        )
        assert args.runs == 5
        assert args.device == "slow"
        assert args.hang_rate == 0.5
        assert args.animated is True
        assert args.no_tui is True
