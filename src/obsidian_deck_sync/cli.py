"""Command-line interface for obsidian-deck-sync."""

from __future__ import annotations

import typer

from .cli_commands import sync_commands

app = typer.Typer(
    name="obsidian-deck-sync",
    help="Incrementally sync Obsidian vault decks to Anki through AnkiConnect.",
    no_args_is_help=True,
)

sync_commands.register(app)


def cli() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    cli()
