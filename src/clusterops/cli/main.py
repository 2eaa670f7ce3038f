"""Main CLI entry point."""

from __future__ import annotations

import typer
from rich.console import Console

from clusterops._config import ConsoleConfig
from clusterops._version import __version__
from clusterops.cli import cluster, config, node, pod, watch
from clusterops.cli._utils import setup_logging

app = typer.Typer(
    name="clusterops",
    help="Cluster operations console.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

# Register sub-commands
app.add_typer(node.app, name="node", help="Node management")
app.add_typer(pod.app, name="pod", help="Pod management")
app.add_typer(cluster.app, name="cluster", help="Cluster statistics and scheduling")
app.add_typer(config.app, name="config", help="Configuration management")
app.command("watch")(watch.watch)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"clusterops version {__version__}")


@app.callback()
def main(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Output in JSON format",
        is_eager=True,
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Log requests and retries",
    ),
) -> None:
    """Cluster operations console."""
    ctx.ensure_object(dict)
    ctx.obj["json"] = json_output
    setup_logging(debug or ConsoleConfig.load().debug)


if __name__ == "__main__":
    app()
