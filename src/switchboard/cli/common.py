"""Helpers shared by the switchboard CLI commands.

Loads the project configuration, builds the Switchboard with its
default collaborators, applies the rate limiter and turns classified
errors into a one-line stderr message with exit code 1.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Coroutine
from pathlib import Path
from typing import Any, NoReturn, TypeVar

import typer
import yaml
from rich.console import Console
from rich.markup import escape

from switchboard.dispatch import Switchboard
from switchboard.errors import SwitchboardError, UnsupportedCapabilityError
from switchboard.models.config import SwitchboardConfig, find_project_root, load_config
from switchboard.observability import configure_logging
from switchboard.ratelimit import FileRateLimiter

T = TypeVar("T")

console = Console(stderr=True)

RATE_LIMIT_FILENAME = "ratelimit.json"


def caller_identity() -> str:
    """Identity used for rate limiting and audit records."""
    return os.environ.get("SWITCHBOARD_USER") or os.environ.get("USER") or "cli"


def fail(message: str) -> NoReturn:
    """Print an error to stderr and exit with code 1."""
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    raise typer.Exit(code=1)


def load_switchboard() -> Switchboard:
    """Load configuration and build a Switchboard for the current project."""
    project_root = find_project_root()
    try:
        config = load_config(project_root)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        fail(f"Invalid configuration: {exc}")
    configure_logging(config.logging.level, config.logging.json_output)
    return Switchboard.from_config(config, project_root, user_id=caller_identity())


def get_limiter(config: SwitchboardConfig, project_root: Path) -> FileRateLimiter:
    """Limiter whose window is shared by every CLI invocation in the project."""
    settings = config.rate_limiting
    return FileRateLimiter(
        project_root / config.logging.storage_dir / RATE_LIMIT_FILENAME,
        max_requests=settings.max_requests,
        decay_minutes=settings.decay_minutes,
    )


def check_rate_limit(switchboard: Switchboard, provider: str | None) -> None:
    """Refuse the call when the caller is over its per-provider limit."""
    config = switchboard.config
    if not config.rate_limiting.enabled:
        return
    provider_name = provider or config.default_provider
    caller = switchboard.user_id or caller_identity()
    limiter = get_limiter(config, find_project_root())
    if not limiter.hit(caller, provider_name):
        retry_after = limiter.available_in(caller, provider_name)
        fail(f"Too many AI requests. Please try again in {retry_after}s.")


def run_call(coro: Coroutine[Any, Any, T]) -> T:
    """Run one facade call, mapping classified failures to a clean exit."""
    try:
        return asyncio.run(coro)
    except SwitchboardError as exc:
        fail(exc.message)
    except UnsupportedCapabilityError as exc:
        fail(str(exc))
    except ValueError as exc:
        fail(str(exc))
