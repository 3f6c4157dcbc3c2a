"""switchboard generate -- complete a single prompt."""

from __future__ import annotations

from typing import Optional

import typer

from switchboard.adapters.base import GenerationOptions
from switchboard.cli.common import check_rate_limit, load_switchboard, run_call


def generate(
    prompt: str = typer.Argument(..., help="Prompt text"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="Provider name (default: configured default)"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Override the provider's model"),
    max_tokens: Optional[int] = typer.Option(None, "--max-tokens", min=1, help="Maximum output tokens"),
    temperature: Optional[float] = typer.Option(None, "--temperature", min=0.0, max=2.0, help="Sampling temperature"),
) -> None:
    """Generate text for a prompt and print it."""
    switchboard = load_switchboard()
    check_rate_limit(switchboard, provider)

    options = GenerationOptions(model=model, max_tokens=max_tokens, temperature=temperature)
    text = run_call(switchboard.generate(prompt, options, provider=provider))
    typer.echo(text)
