#!/usr/bin/env python3
"""
photocue-sim: Interactive simulator for photocue.

Usage:
    photocue-sim --photos 3 --runs 5 --latency 200
    photocue-sim --error-rate 0.3 --scenario rerun
    photocue-sim --hang-rate 0.2 --timeout 1 --no-tui
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random
import signal
import sys
from datetime import datetime

import numpy as np
from rich.console import Console

from photocue import DeviceClass
from photocue_sim.display import SimulationState, SimulatorDisplay, print_final_summary, print_simple_stats
from photocue_sim.runner import SimConfig, SimulationRunner

EVENT_SYMBOLS = {
    "finished": "[green]✓[/green]",
    "failed": "[red]✗[/red]",
    "started": "[yellow]▶[/yellow]",
    "running": "[yellow]▶[/yellow]",
    "cancelled": "[magenta]⊘[/magenta]",
    "cancel": "[magenta]⊘[/magenta]",
    "rerun": "[cyan]⟳[/cyan]",
    "waiting": "+",
}


def configure_logging(verbose: bool = False) -> None:
    """Configure logging for the simulator."""
    photocue_logger = logging.getLogger("photocue")
    if verbose:
        photocue_logger.setLevel(logging.DEBUG)
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        photocue_logger.addHandler(handler)
    else:
        # Silence library logs - simulator handles its own display
        photocue_logger.setLevel(logging.CRITICAL)


async def run_with_display(config: SimConfig, use_tui: bool = True, verbose: bool = False) -> None:
    """Run simulation with visual display.

    Args:
        config: Simulation configuration
        use_tui: Use Rich live display (default True)
        verbose: Print event log instead of status updates (implies no-tui)
    """
    console = Console()
    state = SimulationState()

    if verbose:
        original_add_event = state.add_event

        def logging_add_event(event_type: str, work_id: str, task_type: str | None = None, details: str = "") -> None:
            ts = datetime.now().strftime("%H:%M:%S.%f")[:-3]
            symbol = EVENT_SYMBOLS.get(event_type, "·")
            console.print(f"{ts} {symbol} {event_type:<10} {task_type or '':<6} {work_id:<20} {details}", highlight=False)
            original_add_event(event_type, work_id, task_type, details)

        state.add_event = logging_add_event  # type: ignore

    runner = SimulationRunner(config, state)

    if verbose:
        console.print("\n[bold]photocue-sim[/bold] [dim]\\[verbose][/dim]")
        console.print(f"   Scenario: {config.scenario}, Photos: {config.photos}, Runs: {config.runs}")
        console.print()
        try:
            await runner.run()
        except (KeyboardInterrupt, asyncio.CancelledError):
            runner.stop()
        finally:
            await runner.cleanup()

    elif use_tui:
        display = SimulatorDisplay(state, console)

        async def update_loop():
            while True:
                display.refresh()
                await asyncio.sleep(0.1)

        with display:
            update_task = asyncio.create_task(update_loop())
            try:
                await runner.run()
            except (KeyboardInterrupt, asyncio.CancelledError):
                runner.stop()
            finally:
                update_task.cancel()
                try:
                    await update_task
                except asyncio.CancelledError:
                    pass
                display.refresh()
                await runner.cleanup()

    else:
        console.print("\n[bold]photocue-sim[/bold]")
        console.print(f"   Photos: {config.photos}, Runs: {config.runs}, Latency: {config.latency_ms}ms")
        console.print()

        async def update_loop():
            while True:
                print_simple_stats(state, console)
                await asyncio.sleep(0.5)

        update_task = asyncio.create_task(update_loop())
        try:
            await runner.run()
        except (KeyboardInterrupt, asyncio.CancelledError):
            runner.stop()
        finally:
            update_task.cancel()
            try:
                await update_task
            except asyncio.CancelledError:
                pass
            await runner.cleanup()

    print_final_summary(state, console)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="photocue simulator - watch photos go through their runs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  photocue-sim --photos 3 --runs 5
  photocue-sim --runs 10 --latency 50 --delay 0
  photocue-sim --error-rate 0.3 --scenario rerun
  photocue-sim --hang-rate 0.3 --timeout 1
  photocue-sim --scenario cancel --verbose
  photocue-sim --list-scenarios
        """,
    )

    parser.add_argument(
        "--scenario",
        type=str,
        default="basic",
        help="Scenario to run (default: basic)",
    )
    parser.add_argument(
        "--list-scenarios",
        action="store_true",
        help="List available scenarios and exit",
    )
    parser.add_argument(
        "--photos", "-p",
        type=int,
        default=3,
        help="Number of photos to process (default: 3)",
    )
    parser.add_argument(
        "--runs", "-n",
        type=int,
        default=3,
        help="Runs per photo (default: 3)",
    )
    parser.add_argument(
        "--latency", "-l",
        type=int,
        default=300,
        help="Base executor latency in ms (default: 300)",
    )
    parser.add_argument(
        "--jitter", "-j",
        type=float,
        default=0.2,
        help="Latency variance as fraction, e.g. 0.2 = ±20%% (default: 0.2)",
    )
    parser.add_argument(
        "--error-rate", "-e",
        type=float,
        default=0.0,
        help="Fraction of runs that fail, 0.0-1.0 (default: 0.0)",
    )
    parser.add_argument(
        "--hang-rate",
        type=float,
        default=0.0,
        help="Fraction of runs that never return on their own, 0.0-1.0 (default: 0.0)",
    )
    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=2.0,
        help="Per-run timeout in seconds; 0 uses the device default (default: 2)",
    )
    parser.add_argument(
        "--device",
        choices=[d.value for d in DeviceClass],
        default=DeviceClass.FAST.value,
        help="Device class used for the default timeout (default: fast)",
    )
    parser.add_argument(
        "--animated",
        action="store_true",
        help="Generate animated GIFs instead of PNGs",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=0.1,
        help="Settle delay between runs in seconds (default: 0.1)",
    )
    parser.add_argument(
        "--no-tui",
        action="store_true",
        help="Disable the live display, use simple text output",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Print event log instead of status updates (no-tui)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible behavior (default: random)",
    )
    return parser


def main():
    parser = build_parser()
    args = parser.parse_args()

    if args.list_scenarios:
        from photocue_sim.scenarios import list_scenarios
        print("\nAvailable scenarios:\n")
        for info in list_scenarios():
            print(f"  {info.name:<10} {info.description}")
        print()
        sys.exit(0)

    if args.runs < 0:
        parser.error("--runs must be zero or more")

    configure_logging(verbose=args.verbose)

    if args.seed is not None:
        random.seed(args.seed)
        np.random.seed(args.seed)

    config = SimConfig(
        photos=args.photos,
        runs=args.runs,
        latency_ms=args.latency,
        latency_jitter=args.jitter,
        error_rate=args.error_rate,
        hang_rate=args.hang_rate,
        timeout=args.timeout or None,
        device=DeviceClass(args.device),
        animated=args.animated,
        delay=args.delay,
        scenario=args.scenario,
    )

    async def run_main():
        """Wrapper to handle signals properly."""
        loop = asyncio.get_running_loop()
        stop_event = asyncio.Event()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stop_event.set)

        main_task = asyncio.create_task(
            run_with_display(config, use_tui=not args.no_tui, verbose=args.verbose)
        )
        stop_task = asyncio.create_task(stop_event.wait())

        done, pending = await asyncio.wait(
            [main_task, stop_task],
            return_when=asyncio.FIRST_COMPLETED,
        )

        for task in pending:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if stop_task in done:
            print("\nInterrupted.")
            sys.exit(130)

    try:
        asyncio.run(run_main())
    except KeyboardInterrupt:
        print("\nInterrupted.")
        sys.exit(130)


if __name__ == "__main__":
    main()
