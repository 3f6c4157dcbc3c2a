"""switchboard CLI entry point."""

import typer

from switchboard import __version__
from switchboard.cli.chat_cmd import chat
from switchboard.cli.embed_cmd import embed
from switchboard.cli.generate_cmd import generate
from switchboard.cli.providers_cmd import providers

app = typer.Typer(
    name="switchboard",
    help="One interface for generate, chat and embeddings across LLM providers",
    no_args_is_help=True,
)

# Register subcommands
app.command()(chat)
app.command()(embed)
app.command()(generate)
app.command()(providers)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"switchboard {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """One interface for generate, chat and embeddings across LLM providers."""
