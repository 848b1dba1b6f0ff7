"""
Rich-based terminal dashboard for speedflux results.

All formatting helpers live in ``engine.stats`` -- this module only does
presentation via the ``rich`` library.
"""
from __future__ import annotations

from typing import Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from engine.latency import LatencyResult
from engine.protocol import PHASE_PING, ProgressEvent
from engine.quality import QualityResult
from engine.scenarios import ScenarioResult
from engine.session import SessionReport
from engine.stats import format_latency, format_speed, smooth_samples, summarize
from engine.throughput import ThroughputResult

console = Console()


# ---------------------------------------------------------------------------
# Histogram helper
# ---------------------------------------------------------------------------

_BARS = "▁▂▃▄▅▆▇█"


def create_histogram(values: Sequence[float]) -> str:
    """Return a single-line Unicode bar-chart."""
    if not values:
        return "No data"

    lo, hi = min(values), max(values)
    span = hi - lo if hi > lo else 1.0
    top = len(_BARS) - 1
    return "".join(_BARS[min(int((v - lo) / span * top), top)] for v in values)


def _score_color(score: int) -> str:
    if score >= 80:
        return "green"
    if score >= 50:
        return "yellow"
    return "red"


# ---------------------------------------------------------------------------
# Print helpers
# ---------------------------------------------------------------------------

def print_header(server_url: str) -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]SpeedFlux[/bold cyan]\n"
            f"[dim]Connection quality test against {server_url}[/dim]",
            border_style="cyan",
        )
    )
    console.print()


def print_latency_details(result: LatencyResult) -> None:
    table = Table(title="Latency", box=box.ROUNDED)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Latency", format_latency(result.latency))
    table.add_row("Jitter", f"{result.jitter:.2f} ms")
    if result.min_latency is not None:
        table.add_row("Min", format_latency(result.min_latency))
    if result.max_latency is not None:
        table.add_row("Max", format_latency(result.max_latency))
    table.add_row("Packets", str(result.packets))
    if result.packet_loss is not None:
        table.add_row("Packet Loss", f"{result.packet_loss:.1f}%")
    console.print(table)


def print_speed_result(result: ThroughputResult, title: str, color: str = "green") -> None:
    """Print a download or upload result panel."""
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Speed", f"[bold {color}]{format_speed(result.throughput)}[/bold {color}]")
    table.add_row("Data Transferred", f"{result.bytes_total / 1_000_000:.1f} MB")
    table.add_row("Duration", f"{result.duration:.1f} s")
    if result.ttfb is not None:
        table.add_row("TTFB", format_latency(result.ttfb))
    if result.speed_variance is not None:
        table.add_row("Variation", f"{result.coefficient_of_variation:.1f}%")
    console.print(table)

    if result.speed_samples:
        summary = summarize(result.speed_samples)
        console.print(
            Panel(
                f"[{color}]{create_histogram(smooth_samples(result.speed_samples))}[/{color}]\n"
                f"[dim]Min: {summary.min:.1f} Mbps  Median: {summary.median:.1f} Mbps  "
                f"Max: {summary.max:.1f} Mbps[/dim]",
                title="Speed Over Time",
            )
        )


def print_quality(quality: QualityResult) -> None:
    color = _score_color(quality.stability_score)
    verdict = "[green]stable[/green]" if quality.is_stable else "[red]unstable[/red]"
    lines = [
        f"[bold]Stability score:[/bold] [bold {color}]{quality.stability_score}/100"
        f"[/bold {color}]  ({verdict})",
        "",
    ]
    lines.extend(f"  - {advice}" for advice in quality.recommendations)
    console.print(Panel("\n".join(lines), title="[bold]Connection Quality[/bold]", border_style=color))


def print_scenarios(report: SessionReport) -> None:
    table = Table(title="Real-World Scenarios", box=box.ROUNDED)
    table.add_column("Scenario", style="bold")
    table.add_column("Suitable", justify="center")
    table.add_column("Score", justify="right")
    table.add_column("Verdict")

    scenarios: Sequence[ScenarioResult] = (report.streaming, report.gaming, report.video_call)
    for scenario in scenarios:
        color = _score_color(scenario.overall_score)
        table.add_row(
            scenario.scenario,
            "[green]yes[/green]" if scenario.suitable else "[red]no[/red]",
            f"[{color}]{scenario.overall_score}[/{color}]",
            scenario.message,
        )
    console.print(table)
    console.print(f"  Recommended streaming quality: [bold]{report.streaming.recommended_quality}[/bold]")


def print_final_results(report: SessionReport) -> None:
    console.print()
    console.print(
        Panel.fit(
            f"[bold white]   Ping:[/bold white]  [bold yellow]{report.latency.latency:.1f} ms"
            f"[/bold yellow]  [dim](jitter: {report.latency.jitter:.2f} ms)[/dim]\n"
            f"[bold white]   Download:[/bold white]  [bold green]"
            f"{format_speed(report.download.throughput)}[/bold green]\n"
            f"[bold white]   Upload:[/bold white]  [bold blue]"
            f"{format_speed(report.upload.throughput)}[/bold blue]",
            title="[bold]Results[/bold]",
            border_style="cyan",
        )
    )
    console.print()


# ---------------------------------------------------------------------------
# Progress display
# ---------------------------------------------------------------------------

class ProgressDisplay:
    """Live spinner fed by the engine's progress events."""

    def __init__(self) -> None:
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold]{task.description}"),
            TextColumn("[bold cyan]{task.fields[reading]}[/bold cyan]"),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        )
        self._task_id = None
        self._phase = ""
        self._probes = 0
        self._last_value = 0.0

    def start(self) -> None:
        self.progress.start()

    def update(self, event: ProgressEvent) -> None:
        if event.phase != self._phase:
            self._switch(event.phase)

        if event.phase == PHASE_PING:
            self._probes += 1
            reading = f"{self._probes} probes"
        else:
            # Debounce: only redraw when the value changes noticeably
            if abs(event.value - self._last_value) < 1.0:
                return
            self._last_value = event.value
            reading = format_speed(event.value)

        self.progress.update(self._task_id, reading=reading)

    def _switch(self, phase: str) -> None:
        if self._task_id is not None:
            self.progress.remove_task(self._task_id)
        self._phase = phase
        self._probes = 0
        self._last_value = 0.0
        self._task_id = self.progress.add_task(f"Testing {phase}", reading="...")

    def stop(self) -> None:
        self.progress.stop()
