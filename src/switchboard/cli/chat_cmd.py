"""switchboard chat -- send one user turn, optionally with a system prompt."""

from __future__ import annotations

import json
from typing import Optional

import typer

from switchboard.adapters.base import GenerationOptions, Message
from switchboard.cli.common import check_rate_limit, load_switchboard, run_call


def chat(
    message: str = typer.Argument(..., help="User message"),
    system: Optional[str] = typer.Option(None, "--system", "-s", help="System prompt"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="Provider name (default: configured default)"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Override the provider's model"),
    format_json: bool = typer.Option(False, "--json", help="Print the full chat result as JSON"),
) -> None:
    """Chat with a provider and print the reply."""
    switchboard = load_switchboard()
    check_rate_limit(switchboard, provider)

    messages: list[Message] = []
    if system:
        messages.append(Message(role="system", content=system))
    messages.append(Message(role="user", content=message))

    result = run_call(
        switchboard.chat(messages, GenerationOptions(model=model), provider=provider)
    )
    if format_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        typer.echo(result.message.content)
