"""Live cluster view."""

from __future__ import annotations

from typing import Optional

import anyio
import sparklines
import typer
from rich.console import Console, Group
from rich.live import Live
from rich.table import Table
from rich.text import Text

from clusterops.cli._utils import get_client, handle_error
from clusterops.console import Activity, ClusterConsole, Level, Sample

console = Console()

REDRAW_INTERVAL = 0.25
SPARK_WIDTH = 40
_AMPLITUDE_RANGE = (-0.5, 2.0)

_LEVEL_STYLES = {
    Level.INFO: "dim",
    Level.SUCCESS: "green",
    Level.WARNING: "yellow",
    Level.ERROR: "red",
}


def sparkline(samples: tuple[Sample, ...], width: int = SPARK_WIDTH) -> str:
    """Render the newest ``width`` samples as block characters."""
    if len(samples) < 2:
        return "─"
    low, high = _AMPLITUDE_RANGE
    recent = sorted(samples)[-width:]
    return sparklines.sparklines([s.amplitude for s in recent], minimum=low, maximum=high)[0]


def render(cluster: ClusterConsole) -> Group:
    """Build the live table for the current view."""
    view = cluster.view
    table = Table(title="Cluster", show_header=True, header_style="bold")
    table.add_column("ID")
    table.add_column("Health")
    table.add_column("CPU")
    table.add_column("Pods")
    table.add_column("Heartbeats")
    table.add_column("Liveness")
    table.add_column("Pulse")

    for node in sorted(view.nodes.values(), key=lambda n: n.id):
        waveform = cluster.heartbeats.waveform(node.id)
        activity = cluster.heartbeats.activity(node.id)
        style = "green" if activity is Activity.ACTIVE else "red"
        table.add_row(
            node.id[:8],
            str(node.health_status),
            f"{node.available_cpu}/{node.cpu_cores}",
            str(len(node.pods)),
            str(node.heartbeat_count),
            Text(activity.value, style=style),
            sparkline(waveform.samples() if waveform else ()),
        )

    footer = Text()
    if cluster.notifications.stale is not None:
        footer.append(cluster.notifications.stale.message, style="yellow")
    elif view.fetched_at is not None:
        footer.append(f"Updated {view.fetched_at:%H:%M:%S}", style="dim")
    else:
        footer.append("Waiting for first poll...", style="dim")

    last = cluster.notifications.last
    if last is not None and last is not cluster.notifications.stale:
        footer.append("\n")
        footer.append(last.message, style=_LEVEL_STYLES.get(last.level, ""))

    return Group(table, footer)


def watch(
    interval: Optional[float] = typer.Option(
        None,
        "--interval",
        "-i",
        min=0.1,
        help="Seconds between polls (defaults to the configured poll_interval)",
    ),
) -> None:
    """Watch nodes and their heartbeats live. Press Ctrl+C to stop."""

    async def _watch() -> None:
        async with get_client() as client:
            cluster = ClusterConsole(client, poll_interval=interval)
            with Live(render(cluster), console=console, refresh_per_second=4) as live:
                async with cluster.running():
                    while True:
                        await anyio.sleep(REDRAW_INTERVAL)
                        live.update(render(cluster))

    try:
        anyio.run(_watch)
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")
    except Exception as e:
        handle_error(e)
