"""Node CLI commands."""

from __future__ import annotations

import typer
from rich.console import Console

from clusterops.cli._utils import (
    get_json_flag,
    handle_error,
    output_json,
    output_table,
    report_outcome,
    run_console,
)
from clusterops.console import ActionOutcome, ClusterConsole, ClusterView

app = typer.Typer(help="Node management commands.")
console = Console()

NODE_COLUMNS = [
    ("id", "ID"),
    ("health_status", "Health"),
    ("cpu_cores", "CPU"),
    ("available_cpu", "Available"),
    ("pods", "Pods"),
    ("heartbeat_count", "Heartbeats"),
    ("last_heartbeat", "Last Heartbeat"),
]


@app.command("list")
def list_nodes(ctx: typer.Context) -> None:
    """List nodes in the cluster."""
    try:

        async def _list(cluster: ClusterConsole) -> ClusterView:
            return cluster.view

        view = run_console(_list)
        nodes = sorted(view.nodes.values(), key=lambda n: n.id)

        if get_json_flag(ctx):
            output_json(nodes)
        elif not nodes:
            console.print("[dim]No nodes found.[/dim]")
        else:
            output_table(nodes, NODE_COLUMNS, title="Nodes")

    except Exception as e:
        handle_error(e)


@app.command("add")
def add(
    ctx: typer.Context,
    cpu_cores: int = typer.Argument(..., help="Number of CPU cores"),
) -> None:
    """Add a node.

    Example:
        clusterops node add 4
    """
    try:

        async def _add(cluster: ClusterConsole) -> ActionOutcome:
            return await cluster.actions.add_node(cpu_cores)

        report_outcome(ctx, run_console(_add, sync=False))

    except Exception as e:
        handle_error(e)


@app.command("stop")
def stop(
    ctx: typer.Context,
    node_id: str = typer.Argument(..., help="Node ID"),
) -> None:
    """Stop an empty node."""
    try:

        async def _stop(cluster: ClusterConsole) -> ActionOutcome:
            return await cluster.actions.stop_node(node_id)

        report_outcome(ctx, run_console(_stop))

    except Exception as e:
        handle_error(e)


@app.command("restart")
def restart(
    ctx: typer.Context,
    node_id: str = typer.Argument(..., help="Node ID"),
) -> None:
    """Restart an empty node."""
    try:

        async def _restart(cluster: ClusterConsole) -> ActionOutcome:
            return await cluster.actions.restart_node(node_id)

        report_outcome(ctx, run_console(_restart))

    except Exception as e:
        handle_error(e)


@app.command("delete")
def delete(
    ctx: typer.Context,
    node_id: str = typer.Argument(..., help="Node ID"),
) -> None:
    """Delete a failed node that has no pods."""
    try:

        async def _delete(cluster: ClusterConsole) -> ActionOutcome:
            return await cluster.actions.delete_node(node_id)

        report_outcome(ctx, run_console(_delete))

    except Exception as e:
        handle_error(e)
