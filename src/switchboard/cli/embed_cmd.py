"""switchboard embed -- embed one or more texts."""

from __future__ import annotations

import json
from typing import Optional

import typer

from switchboard.adapters.base import GenerationOptions
from switchboard.cli.common import check_rate_limit, load_switchboard, run_call


def embed(
    texts: list[str] = typer.Argument(..., help="Texts to embed"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="Provider name (default: configured default)"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Override the embedding model"),
    format_json: bool = typer.Option(False, "--json", help="Print the embedding vectors as JSON"),
) -> None:
    """Embed texts and print vector dimensions (or the vectors with --json)."""
    switchboard = load_switchboard()
    check_rate_limit(switchboard, provider)

    entries = run_call(
        switchboard.embeddings(texts, GenerationOptions(model=model), provider=provider)
    )
    if format_json:
        typer.echo(json.dumps([entry.to_dict() for entry in entries], indent=2))
        return
    for entry in entries:
        typer.echo(f"[{entry.index}] {len(entry.embedding)} dimensions")
