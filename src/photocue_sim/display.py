"""Rich-based display for photocue-sim.

This module provides visual output for the simulator using Rich library.
It's decoupled from the simulation logic - it just renders data.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from photocue import PhotoStatus, RunState

if TYPE_CHECKING:
    from photocue import Photo


@dataclass
class EventRecord:
    """A recent event for display."""

    timestamp: datetime
    event_type: str
    work_id: str
    task_type: str | None = None
    details: str = ""


@dataclass
class SimulationState:
    """Current state of the simulation for display.

    This is the data contract between the runner and display.
    The runner updates this; the display renders it.
    """

    # Run stats
    queued: int = 0
    running: int = 0
    finished: int = 0
    failed: int = 0
    cancelled: int = 0

    # Photo stats
    waiting: int = 0
    photos: list[Photo] = field(default_factory=list)

    # Timing
    start_time: float = 0.0
    elapsed: float = 0.0

    # Recent events (most recent first)
    events: list[EventRecord] = field(default_factory=list)
    max_events: int = 10

    # Config display
    target_runs: int = 0
    latency_ms: int = 0
    error_rate: float = 0.0
    hang_rate: float = 0.0
    scenario_name: str = "basic"

    @property
    def settled(self) -> int:
        return self.finished + self.failed + self.cancelled

    @property
    def progress(self) -> float:
        """Fraction of target runs settled (0.0 to 1.0)."""
        if self.target_runs > 0:
            return min(1.0, self.settled / self.target_runs)
        return 0.0

    def add_event(self, event_type: str, work_id: str, task_type: str | None = None, details: str = "") -> None:
        """Add an event to the display log."""
        self.events.insert(0, EventRecord(
            timestamp=datetime.now(),
            event_type=event_type,
            work_id=work_id,
            task_type=task_type,
            details=details,
        ))
        # Trim to max
        if len(self.events) > self.max_events:
            self.events = self.events[:self.max_events]


STATUS_STYLES = {
    PhotoStatus.PENDING: "dim",
    PhotoStatus.WAITING: "blue",
    PhotoStatus.RUNNING: "yellow",
    PhotoStatus.FINISHED: "green",
    PhotoStatus.FAILED: "red",
    PhotoStatus.CANCELLED: "magenta",
}

RUN_SYMBOLS = {
    RunState.QUEUED: "[dim]·[/dim]",
    RunState.RUNNING: "[yellow]▶[/yellow]",
    RunState.FINISHED: "[green]✓[/green]",
    RunState.FAILED: "[red]✗[/red]",
    RunState.CANCELLED: "[magenta]⊘[/magenta]",
}

EVENT_STYLES = {
    "finished": "green",
    "failed": "red",
    "started": "yellow",
    "running": "yellow",
    "cancelled": "magenta",
    "cancel": "magenta",
    "rerun": "cyan",
    "waiting": "blue",
}


class SimulatorDisplay:
    """Rich-based TUI display for the simulator.

    Shows:
    - Run stats panel
    - One row per photo with its runs
    - Recent events log
    - Config footer
    """

    def __init__(self, state: SimulationState, console: Console | None = None):
        self.state = state
        self.console = console or Console()
        self._live: Live | None = None

    def __enter__(self) -> SimulatorDisplay:
        self._live = Live(
            self._build_layout(),
            console=self.console,
            refresh_per_second=10,
            screen=False,
        )
        self._live.__enter__()
        return self

    def __exit__(self, *args) -> None:
        if self._live:
            self._live.__exit__(*args)
            self._live = None

    def refresh(self) -> None:
        """Update the display with current state."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Panel:
        s = self.state

        layout = Layout()
        layout.split_column(
            Layout(name="runs", size=4),
            Layout(name="photos", size=3 + max(1, len(s.photos))),
            Layout(name="events", size=7),
            Layout(name="config", size=3),
        )
        layout["runs"].update(self._build_runs_section())
        layout["photos"].update(self._build_photos_section())
        layout["events"].update(self._build_events_section())
        layout["config"].update(self._build_config_section())

        return Panel(
            layout,
            title="[bold cyan]photocue-sim[/bold cyan]",
            border_style="cyan",
        )

    def _build_runs_section(self) -> Panel:
        s = self.state

        stats = Table.grid(expand=True, padding=(0, 2))
        for _ in range(5):
            stats.add_column(justify="left")

        stats.add_row(
            f"[dim]Queued:[/dim] [bold]{s.queued}[/bold]",
            f"[dim]Running:[/dim] [bold yellow]{s.running}[/bold yellow]",
            f"[dim]Finished:[/dim] [bold green]{s.finished}[/bold green]",
            f"[dim]Failed:[/dim] [bold red]{s.failed}[/bold red]",
            f"[dim]Cancelled:[/dim] [bold magenta]{s.cancelled}[/bold magenta]",
        )
        stats.add_row(
            f"[dim]Waiting photos:[/dim] [bold]{s.waiting}[/bold]",
            f"[dim]Progress:[/dim] [bold]{s.progress * 100:.0f}%[/bold]",
            f"[dim]Elapsed:[/dim] [bold]{s.elapsed:.1f}s[/bold]",
            "",
            "",
        )

        return Panel(stats, title="[bold]Runs[/bold]", border_style="blue")

    def _build_photos_section(self) -> Panel:
        s = self.state

        table = Table(box=None, expand=True, padding=(0, 1), show_header=False)
        table.add_column("Photo", width=16)
        table.add_column("Status", width=10)
        table.add_column("Runs", ratio=1)
        table.add_column("Time", width=8, justify="right")

        for photo in s.photos:
            style = STATUS_STYLES.get(photo.status, "white")
            runs = " ".join(RUN_SYMBOLS[run.state] for run in photo.runs) or "[dim]—[/dim]"
            table.add_row(
                f"[bold]{photo.file.fullname}[/bold]",
                f"[{style}]{photo.status.value}[/{style}]",
                runs,
                f"{photo.timer.duration:.1f}s",
            )

        if not s.photos:
            table.add_row("[dim]No photos yet[/dim]", "", "", "")

        return Panel(table, title="[bold]Photos[/bold]", border_style="blue")

    def _build_events_section(self) -> Panel:
        s = self.state

        table = Table(box=None, expand=True, padding=(0, 1), show_header=False)
        table.add_column("Time", width=10, style="dim")
        table.add_column("Event", width=12)
        table.add_column("ID", width=20)
        table.add_column("Kind", width=6)
        table.add_column("Details")

        for event in s.events[:5]:
            style = EVENT_STYLES.get(event.event_type, "white")
            table.add_row(
                event.timestamp.strftime("%H:%M:%S"),
                f"[{style}]{event.event_type}[/{style}]",
                event.work_id[:20],
                event.task_type or "",
                event.details[:30],
            )

        if not s.events:
            table.add_row("[dim]No events yet[/dim]", "", "", "", "")

        return Panel(table, title="[bold]Recent Events[/bold]", border_style="blue")

    def _build_config_section(self) -> Panel:
        s = self.state

        text = Text()
        text.append("Scenario: ", style="dim")
        text.append(s.scenario_name, style="bold")
        text.append("  Latency: ", style="dim")
        text.append(f"{s.latency_ms}ms", style="bold")
        text.append("  Error: ", style="dim")
        text.append(f"{s.error_rate * 100:.0f}%", style="bold red" if s.error_rate > 0 else "bold")
        if s.hang_rate > 0:
            text.append("  Hang: ", style="dim")
            text.append(f"{s.hang_rate * 100:.0f}%", style="bold yellow")
        text.append("    Ctrl+C to stop", style="dim")

        return Panel(text, title="[bold]Config[/bold]", border_style="dim")


def print_simple_stats(state: SimulationState, console: Console | None = None) -> None:
    """Print a one-line progress summary."""
    s = state
    console = console or Console()
    console.print(
        f"[{s.settled}/{s.target_runs}] "
        f"W:{s.waiting} Q:{s.queued} R:{s.running} "
        f"[green]✓:{s.finished}[/green] [red]✗:{s.failed}[/red] [magenta]⊘:{s.cancelled}[/magenta] "
        f"({s.progress * 100:.0f}%) {s.elapsed:.1f}s",
        highlight=False,
    )


def print_final_summary(state: SimulationState, console: Console | None = None) -> None:
    """Print final summary after simulation."""
    console = console or Console()
    console.print()

    table = Table(title="Simulation Results", show_header=False, border_style="green")
    table.add_column("Metric", style="dim")
    table.add_column("Value", style="bold")

    table.add_row("Photos", str(len(state.photos)))
    for status in PhotoStatus:
        count = sum(1 for photo in state.photos if photo.status == status)
        if count:
            style = STATUS_STYLES[status]
            table.add_row(f"  {status.value}", f"[{style}]{count}[/{style}]")
    table.add_row("Runs finished", f"[green]{state.finished}[/green]")
    table.add_row("Runs failed", f"[red]{state.failed}[/red]" if state.failed else "0")
    table.add_row("Runs cancelled", str(state.cancelled))
    table.add_row("Duration", f"{state.elapsed:.2f}s")
    table.add_row("Started at", time.strftime("%H:%M:%S", time.localtime(state.start_time)))

    console.print(table)
