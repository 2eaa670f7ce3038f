"""Pod CLI commands."""

from __future__ import annotations

from typing import Optional

import anyio.to_thread
import typer
from rich.console import Console

from clusterops.cli._utils import (
    confirm_action,
    get_json_flag,
    handle_error,
    output_json,
    output_table,
    report_outcome,
    run_console,
)
from clusterops.console import ActionOutcome, ActionPhase, ClusterConsole, ClusterView, PendingAction

app = typer.Typer(help="Pod management commands.")
console = Console()

POD_COLUMNS = [
    ("id", "ID"),
    ("status", "Status"),
    ("cpu_required", "CPU"),
    ("node_id", "Node"),
    ("created_at", "Created"),
]


@app.command("list")
def list_pods(
    ctx: typer.Context,
    node_id: Optional[str] = typer.Option(
        None,
        "--node",
        "-n",
        help="Only show pods on this node",
    ),
) -> None:
    """List pods in the cluster."""
    try:

        async def _list(cluster: ClusterConsole) -> ClusterView:
            return cluster.view

        view = run_console(_list, include_pods=True)
        pods = view.pods_on(node_id) if node_id else list(view.pods.values())
        pods.sort(key=lambda p: (p.node_id or "", p.id))

        if get_json_flag(ctx):
            output_json(pods)
        elif not pods:
            console.print("[dim]No pods found.[/dim]")
        else:
            output_table(pods, POD_COLUMNS, title="Pods")

    except Exception as e:
        handle_error(e)


@app.command("launch")
def launch(
    ctx: typer.Context,
    cpu_required: int = typer.Argument(..., help="CPU cores the pod requires"),
) -> None:
    """Launch a pod; the scheduler picks the node.

    Example:
        clusterops pod launch 2
    """
    try:

        async def _launch(cluster: ClusterConsole) -> ActionOutcome:
            return await cluster.actions.launch_pod(cpu_required)

        report_outcome(ctx, run_console(_launch, sync=False))

    except Exception as e:
        handle_error(e)


@app.command("delete")
def delete(
    ctx: typer.Context,
    pod_id: str = typer.Argument(..., help="Pod ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a pod."""
    try:

        async def _delete(cluster: ClusterConsole) -> ActionOutcome | None:
            pending = cluster.actions.delete_pod(pod_id)
            return await _confirm_and_run(cluster, pending, f"Delete pod {pod_id}?", yes)

        outcome = run_console(_delete, include_pods=True)
        if outcome is None:
            console.print("[dim]Cancelled.[/dim]")
            return
        report_outcome(ctx, outcome)

    except Exception as e:
        handle_error(e)


@app.command("restart")
def restart(
    ctx: typer.Context,
    pod_id: str = typer.Argument(..., help="Pod ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Restart a pod."""
    try:

        async def _restart(cluster: ClusterConsole) -> ActionOutcome | None:
            pending = cluster.actions.restart_pod(pod_id)
            return await _confirm_and_run(cluster, pending, f"Restart pod {pod_id}?", yes)

        outcome = run_console(_restart, include_pods=True)
        if outcome is None:
            console.print("[dim]Cancelled.[/dim]")
            return
        report_outcome(ctx, outcome)

    except Exception as e:
        handle_error(e)


async def _confirm_and_run(
    cluster: ClusterConsole,
    pending: PendingAction,
    prompt: str,
    yes: bool,
) -> ActionOutcome | None:
    """Ask the operator, then run or discard a held action.

    Returns None when the operator declines.
    """
    if pending.phase is ActionPhase.REJECTED:
        message = pending.error.message if pending.error else "Rejected"
        return ActionOutcome(pending, message)

    if not yes and not await anyio.to_thread.run_sync(confirm_action, prompt):
        cluster.actions.cancel(pending)
        return None

    return await cluster.actions.confirm(pending)
