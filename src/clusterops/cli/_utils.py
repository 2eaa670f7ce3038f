"""CLI utilities."""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import anyio
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from clusterops._config import ConsoleConfig
from clusterops.client import ClusterClient
from clusterops.console import ActionOutcome, ClusterConsole
from clusterops.exceptions import ClusterError

T = TypeVar("T")

console = Console()
error_console = Console(stderr=True)


def setup_logging(debug: bool) -> None:
    """Route library logs through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=error_console, rich_tracebacks=debug, show_path=False)],
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)


def get_client() -> ClusterClient:
    """Build a client from environment variables and the config file."""
    return ClusterClient(config=ConsoleConfig.load())


def run_console(
    operation: Callable[[ClusterConsole], Awaitable[T]],
    *,
    include_pods: bool = False,
    sync: bool = True,
) -> T:
    """Run ``operation`` against a fresh console on its own event loop.

    The view is synced first so local guards see current cluster state.
    """

    async def _main() -> T:
        async with get_client() as client:
            cluster = ClusterConsole(client, include_pods=include_pods)
            if sync:
                await cluster.sync()
            return await operation(cluster)

    return anyio.run(_main)


def output_json(data: Any) -> None:
    """Output data as JSON."""
    if hasattr(data, "model_dump"):
        data = data.model_dump(mode="json")
    elif isinstance(data, list) and data and hasattr(data[0], "model_dump"):
        data = [item.model_dump(mode="json") for item in data]

    console.print_json(json.dumps(data, default=str))


def output_table(
    data: list[Any],
    columns: list[tuple[str, str]],
    title: str | None = None,
) -> None:
    """Output data as a Rich table.

    Args:
        data: List of objects
        columns: List of (field_name, header) tuples
        title: Optional table title
    """
    console.print(build_table(data, columns, title=title))


def build_table(
    data: list[Any],
    columns: list[tuple[str, str]],
    title: str | None = None,
) -> Table:
    table = Table(title=title, show_header=True, header_style="bold")

    for _, header in columns:
        table.add_column(header)

    for item in data:
        row = []
        for field, _ in columns:
            if isinstance(item, dict):
                value = item.get(field, "")
            elif hasattr(item, field):
                value = getattr(item, field)
            else:
                value = ""

            if value is None:
                value = "-"
            elif isinstance(value, bool):
                value = "Yes" if value else "No"
            elif isinstance(value, list):
                value = ", ".join(str(v)[:8] for v in value) or "-"
            elif hasattr(value, "isoformat"):
                value = value.strftime("%Y-%m-%d %H:%M:%S")

            row.append(str(value))

        table.add_row(*row)

    return table


def report_outcome(ctx: typer.Context, outcome: ActionOutcome) -> None:
    """Print an action outcome; exit 1 if it did not succeed."""
    if get_json_flag(ctx):
        output_json(
            {
                "ok": outcome.ok,
                "action_id": outcome.action.id,
                "phase": outcome.action.phase.value,
                "message": outcome.message,
                "result": outcome.result,
            }
        )
    elif outcome.ok:
        console.print(f"[green]{outcome.message}[/green]")
    else:
        error_console.print(f"[red]Error:[/red] {outcome.message}")

    if not outcome.ok:
        raise typer.Exit(1)


def handle_error(e: Exception) -> None:
    """Handle and display an error."""
    if isinstance(e, typer.Exit):
        raise e
    if isinstance(e, ClusterError):
        error_console.print(f"[red]Error:[/red] {e.message}")
    else:
        error_console.print(f"[red]Error:[/red] {e}")

    raise typer.Exit(1)


def confirm_action(message: str, default: bool = False) -> bool:
    """Prompt user for confirmation."""
    return typer.confirm(message, default=default)


def get_json_flag(ctx: typer.Context) -> bool:
    """Get JSON output flag from context."""
    return ctx.obj.get("json", False) if ctx.obj else False
