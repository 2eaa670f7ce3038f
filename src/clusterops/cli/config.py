"""Configuration CLI commands."""

from __future__ import annotations

from dataclasses import fields

import typer
from rich.console import Console

from clusterops._config import (
    CONFIG_FILE,
    ConsoleConfig,
    get_config_value,
    set_config_value,
)

app = typer.Typer(help="Configuration management.")
console = Console()


@app.command("get")
def get(
    key: str = typer.Argument(..., help="Configuration key"),
) -> None:
    """Get a configuration value.

    Example:
        clusterops config get api_url
    """
    value = get_config_value(key)

    if value is None:
        console.print(f"[dim]No value set for '{key}'[/dim]")
    else:
        console.print(value)


@app.command("set")
def set_value(
    key: str = typer.Argument(..., help="Configuration key"),
    value: str = typer.Argument(..., help="Configuration value"),
) -> None:
    """Set a configuration value.

    Example:
        clusterops config set api_url http://cluster.local:8080
        clusterops config set poll_interval 2.5
    """
    if value.lower() in ("true", "false"):
        typed_value: str | bool | int | float = value.lower() == "true"
    elif value.isdigit():
        typed_value = int(value)
    elif value.replace(".", "", 1).isdigit():
        typed_value = float(value)
    else:
        typed_value = value

    set_config_value(key, typed_value)
    console.print(f"[green]Set {key} = {value}[/green]")


@app.command("list")
def list_config() -> None:
    """List all configuration values."""
    config = ConsoleConfig.load()

    console.print("[bold]Current Configuration[/bold]\n")
    for field in fields(config):
        name = "api_url" if field.name == "base_url" else field.name
        console.print(f"  {name}: {getattr(config, field.name)}")

    console.print(f"\n[dim]Config file: {CONFIG_FILE}[/dim]")


@app.command("path")
def show_path() -> None:
    """Show configuration file path."""
    console.print(str(CONFIG_FILE))
