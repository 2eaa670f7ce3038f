"""Cluster-wide CLI commands."""

from __future__ import annotations

import typer
from rich.console import Console

from clusterops.cli._utils import (
    get_json_flag,
    handle_error,
    output_json,
    report_outcome,
    run_console,
)
from clusterops.console import ActionOutcome, ClusterConsole
from clusterops.models import ClusterStats
from clusterops.resources import SchedulingAlgorithm

app = typer.Typer(help="Cluster-wide commands.")
console = Console()


@app.command("stats")
def stats(ctx: typer.Context) -> None:
    """Show node, CPU and pod totals."""
    try:

        async def _stats(cluster: ClusterConsole) -> ClusterStats:
            return cluster.view.stats()

        result = run_console(_stats, include_pods=True)

        if get_json_flag(ctx):
            output_json(result)
            return

        console.print("[bold]Cluster Statistics[/bold]\n")
        console.print(
            f"  Nodes: {result.total_nodes} "
            f"([green]{result.healthy_nodes} healthy[/green], "
            f"[red]{result.failed_nodes} failed[/red], "
            f"{result.stopped_nodes} stopped, "
            f"{result.starting_nodes} starting)"
        )
        console.print(
            f"  CPU: {result.used_cpu}/{result.total_cpu} used "
            f"({result.cpu_usage_percent:.1f}%), {result.available_cpu} available"
        )
        console.print(
            f"  Pods: {result.total_pods} "
            f"({result.running_pods} running, {result.failed_pods} failed)"
        )

    except Exception as e:
        handle_error(e)


@app.command("scheduler")
def scheduler(
    ctx: typer.Context,
    algorithm: SchedulingAlgorithm = typer.Argument(..., help="Placement algorithm"),
) -> None:
    """Set the pod scheduling algorithm.

    Example:
        clusterops cluster scheduler best-fit
    """
    try:

        async def _schedule(cluster: ClusterConsole) -> ActionOutcome:
            return await cluster.actions.set_scheduler(algorithm.value)

        report_outcome(ctx, run_console(_schedule, sync=False))

    except Exception as e:
        handle_error(e)
