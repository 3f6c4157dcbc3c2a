"""switchboard providers -- list the configured AI providers."""

from __future__ import annotations

import typer
import yaml
from rich import box
from rich.console import Console
from rich.table import Table

from switchboard.cli.common import fail
from switchboard.models.config import find_project_root, load_config


def providers() -> None:
    """List all configured AI providers."""
    try:
        config = load_config(find_project_root())
    except (OSError, ValueError, yaml.YAMLError) as exc:
        fail(f"Invalid configuration: {exc}")
    console = Console()

    table = Table(title="Available AI Providers", box=box.SIMPLE)
    table.add_column("Provider", style="bold")
    table.add_column("Adapter")
    table.add_column("Default")
    table.add_column("Enabled")

    for name, entry in config.providers.items():
        enabled = bool(entry.adapter) and entry.enabled
        table.add_row(
            name,
            entry.adapter or "-",
            "Yes" if name == config.default_provider else "No",
            "Yes" if enabled else "No",
        )

    console.print(table)
    typer.echo(f"Default provider: {config.default_provider}")
    typer.echo(f"Total providers: {len(config.providers)}")
