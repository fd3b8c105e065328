"""CLI commands: sync, status, reset-state, check."""

from __future__ import annotations

import time
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from ..sync.state_store import FingerprintStore
from ..utils.preflight import run_preflight_checks
from .shared import console, get_config_and_logger
from .sync_handler import run_sync

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to config.yaml", exists=True, dir_okay=False),
]
LogLevelOption = Annotated[
    str | None,
    typer.Option("--log-level", help="Log level (DEBUG, INFO, WARN, ERROR)"),
]
VerboseOption = Annotated[
    bool,
    typer.Option(
        "--verbose",
        "-v",
        help="Show all log messages on terminal (for debugging)",
    ),
]


def _format_timestamp(value: float | None) -> str:
    if not value:
        return "never"
    return datetime.fromtimestamp(value).strftime("%Y-%m-%d %H:%M:%S")


def register(app: typer.Typer) -> None:
    """Register sync commands on the given Typer app."""

    @app.command()
    def sync(
        full: Annotated[
            bool,
            typer.Option(
                "--full",
                help="Ignore the saved state and resync every deck",
            ),
        ] = False,
        config_path: ConfigOption = None,
        log_level: LogLevelOption = None,
        verbose: VerboseOption = False,
    ) -> None:
        """Synchronize Obsidian decks to Anki."""
        start_time = time.time()
        config, logger = get_config_and_logger(config_path, log_level, verbose=verbose)

        logger.debug(
            "cli_command_started",
            command="sync",
            full=full,
            config_path=str(config_path) if config_path else None,
        )

        run_sync(config=config, logger=logger, full=full)

        logger.debug(
            "cli_command_completed",
            command="sync",
            duration=round(time.time() - start_time, 2),
        )

    @app.command()
    def status(
        config_path: ConfigOption = None,
        log_level: LogLevelOption = None,
    ) -> None:
        """Show the state saved by the last sync."""
        config, _logger = get_config_and_logger(config_path, log_level)
        fingerprint = FingerprintStore(config.get_state_path()).load()

        if fingerprint is None:
            console.print("[yellow]No sync state found: the next sync is a full sync.[/yellow]")
            return

        console.print(
            f"Last sync: [bold]{_format_timestamp(fingerprint.last_synced_at)}[/bold]"
        )
        console.print(f"[dim]Vault structure hash: {fingerprint.structural_hash[:12]}[/dim]")

        table = Table(title="Decks", show_header=True, header_style="bold magenta")
        table.add_column("Deck", style="cyan")
        table.add_column("Documents", style="green", justify="right")
        table.add_column("Synced at", style="yellow")

        for name, deck in sorted(fingerprint.decks.items()):
            table.add_row(name, str(len(deck.sources)), _format_timestamp(deck.synced_at))

        console.print(table)

    @app.command(name="reset-state")
    def reset_state(
        yes: Annotated[
            bool,
            typer.Option("--yes", "-y", help="Do not ask for confirmation"),
        ] = False,
        config_path: ConfigOption = None,
        log_level: LogLevelOption = None,
    ) -> None:
        """Forget the saved state so the next sync is a full sync."""
        config, _logger = get_config_and_logger(config_path, log_level)
        store = FingerprintStore(config.get_state_path())

        if not yes and not typer.confirm("Forget the saved sync state?"):
            raise typer.Abort()

        if store.reset():
            console.print("[green]Sync state removed.[/green]")
        else:
            console.print("[dim]No sync state to remove.[/dim]")

    @app.command()
    def check(
        skip_anki: Annotated[
            bool,
            typer.Option("--skip-anki", help="Skip the AnkiConnect checks"),
        ] = False,
        config_path: ConfigOption = None,
        log_level: LogLevelOption = None,
    ) -> None:
        """Run pre-flight checks (vault, state directory, AnkiConnect)."""
        config, logger = get_config_and_logger(config_path, log_level)

        console.print("\n[bold cyan]Running pre-flight checks...[/bold cyan]\n")
        passed, results = run_preflight_checks(config, check_anki_connection=not skip_anki)

        for result in results:
            if result.passed:
                icon = "[green]PASS[/green]"
            elif result.severity == "warning":
                icon = "[yellow]WARN[/yellow]"
            else:
                icon = "[red]FAIL[/red]"

            console.print(f"{icon} [bold]{result.name}[/bold]: {result.message}")
            if not result.passed and result.fix_suggestion:
                console.print(f"  [dim]TIP: {result.fix_suggestion}[/dim]")

        console.print()
        if not passed:
            console.print("[bold red]ERROR: Setup validation failed![/bold red]")
            logger.error("check_setup_failed")
            raise typer.Exit(code=1)

        console.print("[bold green]SUCCESS: All checks passed![/bold green]")
