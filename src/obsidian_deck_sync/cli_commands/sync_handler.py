"""Sync command implementation logic."""

import asyncio
from typing import Any

import typer
from rich.table import Table

from ..anki.deck_store import AnkiDeckStore
from ..anki.formatter import MarkdownHtmlFormatter, PlainFormatter
from ..anki.http_client import AnkiHttpClient
from ..config import Config
from ..domain.entities.fingerprint import Fingerprint, SyncResult
from ..domain.interfaces.reporter import ISyncReporter
from ..domain.services.slug_service import SlugService
from ..exceptions import DeckSyncError
from ..obsidian.deck_extractor import VaultDeckExtractor
from ..obsidian.markdown_parser import MarkdownNoteParser
from ..obsidian.vault import ObsidianVault
from ..sync.state_store import FingerprintStore
from ..sync.synchronizer import Synchronizer
from .console_reporter import RichConsoleReporter
from .shared import console


def build_deck_store(config: Config) -> AnkiDeckStore:
    """Wire the Anki side of a run from configuration."""
    client = AnkiHttpClient(
        config.anki_connect_url,
        timeout=config.anki_timeout,
        api_key=config.anki_api_key,
    )
    formatter = MarkdownHtmlFormatter() if config.render_markdown else PlainFormatter()
    return AnkiDeckStore(
        client,
        slugs=SlugService(),
        formatter=formatter,
        quarantine_deck=config.orphans_deck_name,
        model_name=config.note_model_name,
        front_field=config.front_field,
        back_field=config.back_field,
        source_tag_prefix=config.source_tag_prefix,
    )


def build_synchronizer(
    config: Config, store: AnkiDeckStore, reporter: ISyncReporter
) -> Synchronizer:
    """Wire the vault side of a run and the synchronizer itself."""
    vault = ObsidianVault(config.vault_path, ignored_folders=config.ignored_folders)
    parser = MarkdownNoteParser(
        notes_section_delimiter=config.notes_section_delimiter,
        notes_delimiter=config.notes_delimiter,
    )
    return Synchronizer(VaultDeckExtractor(vault, parser), store, reporter)


async def _run(config: Config, previous: Fingerprint | None) -> SyncResult:
    store = build_deck_store(config)
    try:
        synchronizer = build_synchronizer(config, store, RichConsoleReporter(console))
        return await synchronizer.run(previous)
    finally:
        await store.close()


def run_sync(config: Config, logger: Any, full: bool = False) -> SyncResult:
    """Execute the sync operation.

    The fingerprint is persisted after every completed run, including runs in
    which some decks failed. A fatal error leaves the previous one in place.

    Args:
        config: Configuration object
        logger: Logger instance
        full: Ignore the persisted fingerprint and resync every deck

    Raises:
        typer.Exit: On fatal failure, or with code 1 if any deck failed
    """
    state = FingerprintStore(config.get_state_path())
    previous = None if full else state.load()

    logger.info("sync_started", vault=str(config.vault_path), full=full)

    try:
        result = asyncio.run(_run(config, previous))
        state.save(result.fingerprint)
    except DeckSyncError as e:
        logger.error("sync_failed", error=e.message, error_code=e.error_code)
        console.print(f"\n[bold red]Error:[/bold red] {e.message}", highlight=False)
        if e.suggestion:
            console.print(f"[dim]{e.suggestion}[/dim]", highlight=False)
        raise typer.Exit(code=1)

    _display_sync_results(result)

    if result.failed_decks:
        raise typer.Exit(code=1)
    return result


def _display_sync_results(result: SyncResult) -> None:
    """Display the run summary."""
    table = Table(title="Sync Summary", show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Decks synced", str(result.decks_count))
    table.add_row("Notes pushed", str(result.notes_count))
    table.add_row("Failed decks", ", ".join(result.failed_decks) or "-")
    table.add_row("Duration", f"{result.duration:.2f}s")

    console.print()
    console.print(table)
