"""Shared utilities for CLI commands."""

from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from obsidian_deck_sync.config import Config, load_config, set_config
from obsidian_deck_sync.exceptions import ConfigurationError
from obsidian_deck_sync.utils.logging import configure_logging, get_logger

# Shared console for all commands
console = Console()


def get_config_and_logger(
    config_path: Path | None = None,
    log_level: str | None = None,
    verbose: bool = False,
) -> tuple[Config, Any]:
    """Load configuration and configure logging for one command.

    Args:
        config_path: Optional path to config file
        log_level: Console log level, defaults to the configured one
        verbose: Show all log messages on terminal (for debugging)

    Returns:
        Tuple of (Config, Logger)

    Raises:
        typer.Exit: With code 2 if the configuration is invalid
    """
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e.message}", highlight=False)
        if e.suggestion:
            console.print(f"[dim]{e.suggestion}[/dim]", highlight=False)
        raise typer.Exit(code=2) from e
    set_config(config)

    configure_logging(
        log_level or config.log_level,
        log_dir=config.get_log_dir(),
        verbose=verbose,
    )
    return config, get_logger("cli")
