"""Structured logging for the sync tool.

Everything goes through structlog, bridged onto the standard library so that
third-party loggers (httpx, typer) share the same handlers. The terminal gets
short one-line messages for a handful of lifecycle events; rotating JSON
files under the data directory get everything.
"""

import logging
import sys
from collections.abc import Callable, MutableMapping
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.dev import ConsoleRenderer
from structlog.processors import JSONRenderer
from structlog.stdlib import LoggerFactory, ProcessorFormatter

_LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Events shown on the terminal without --verbose, plus all ERROR/CRITICAL
USER_FACING_EVENTS: set[str] = {
    "sync_started",
    "sync_completed",
    "sync_skipped_no_changes",
    "sync_failed",
    "deck_sync_failed",
    "orphans_quarantined",
    "state_unreadable",
    "config_file_not_found",
}

LOG_FILE_NAME = "obsidian-deck-sync.log"
ERROR_LOG_FILE_NAME = "errors.log"

# Keys that the context summary never repeats
_RESERVED_KEYS = frozenset(
    {"logger", "level", "event", "timestamp", "exception", "context_summary"}
)
_LEADING_KEYS = ("deck", "source", "note_id")

_configured = False
_handlers: list[logging.Handler] = []


def level_from_name(level_name: str) -> int:
    return _LOG_LEVELS.get(level_name.upper(), logging.INFO)


class TerminalEventFilter(logging.Filter):
    """Keep the terminal quiet unless verbose output was asked for."""

    def __init__(self, verbose: bool = False) -> None:
        super().__init__()
        self.verbose = verbose

    def filter(self, record: logging.LogRecord) -> bool:
        if self.verbose or record.levelno >= logging.ERROR:
            return True
        # structlog hands the event dict over as the record message
        if isinstance(record.msg, dict):
            return record.msg.get("event") in USER_FACING_EVENTS
        text = record.getMessage()
        return any(name in text for name in USER_FACING_EVENTS)


def _sync_started(event: MutableMapping[str, Any]) -> str:
    line = "Starting sync"
    if event.get("vault"):
        line += f" for vault: {event['vault']}"
    if event.get("full"):
        line += " (full resync)"
    return line


def _sync_completed(event: MutableMapping[str, Any]) -> str:
    line = (
        f"Synced {event.get('decks_count', 0)} decks "
        f"({event.get('notes_count', 0)} notes) in {event.get('duration', 0.0):.2f}s"
    )
    failed = event.get("failed_decks") or []
    if failed:
        line += f" | {len(failed)} failed: {', '.join(failed)}"
    return line


_EVENT_LINES: dict[str, Callable[[MutableMapping[str, Any]], str]] = {
    "sync_started": _sync_started,
    "sync_completed": _sync_completed,
    "sync_skipped_no_changes": lambda e: (
        "Nothing to sync: no deck changed since the last run"
    ),
    "orphans_quarantined": lambda e: (
        f"Moved {e.get('count', 0)} orphaned notes to '{e.get('quarantine_deck', '')}'"
    ),
    "deck_sync_failed": lambda e: (
        f"ERROR: deck '{e.get('deck', '')}' failed: {e.get('error', '')}"
    ),
    "sync_failed": lambda e: f"Sync failed: {e.get('error', 'Unknown error')}",
}


class TerminalRenderer:
    """One-line messages for known events, structlog's console output otherwise."""

    def __init__(self) -> None:
        self._fallback = ConsoleRenderer(
            colors=True, exception_formatter=structlog.dev.plain_traceback
        )

    def __call__(
        self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> str:
        name = event_dict.get("event", "")
        line = _EVENT_LINES.get(name)
        if line is not None:
            return line(event_dict)

        level = str(event_dict.get("level", "info")).upper()
        if level in ("ERROR", "CRITICAL"):
            return f"ERROR: {event_dict.get('error', name)}"
        if level == "WARNING" and name in USER_FACING_EVENTS:
            return f"WARNING: {name}"
        return str(self._fallback(logger, method_name, event_dict))


def add_context_summary(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Attach ``context_summary``: the extra fields as ``key=value`` pairs.

    Deck, source and note id come first when set, so grepping the JSON
    files for a deck finds every line about it.
    """
    leading = [
        f"{key}={event_dict[key]}" for key in _LEADING_KEYS if event_dict.get(key)
    ]
    rest = [
        f"{key}={value}"
        for key, value in event_dict.items()
        if key not in _RESERVED_KEYS
        and key not in _LEADING_KEYS
        and value is not None
        and value != ""
    ]
    pairs = leading + rest
    event_dict["context_summary"] = " | " + " ".join(pairs) if pairs else ""
    return event_dict


def _shared_processors() -> list[structlog.typing.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _rotating_handler(
    path: Path, level: int, max_bytes: int, backups: int, formatter: logging.Formatter
) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=str(path), maxBytes=max_bytes, backupCount=backups, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _install(handler: logging.Handler) -> None:
    logging.getLogger().addHandler(handler)
    _handlers.append(handler)


def configure_logging(
    log_level: str = "INFO",
    log_dir: Path | None = None,
    log_file: Path | None = None,
    verbose: bool = False,
) -> None:
    """Configure structlog logging with console and optional file output.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        log_level: Minimum console log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for rotating JSON log files (no file logging if None)
        log_file: Specific log file path (overrides log_dir)
        verbose: If True, show all log messages on terminal
    """
    global _configured

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    structlog.configure(
        processors=[
            *_shared_processors(),
            add_context_summary,
            ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    while _handlers:
        handler = _handlers.pop()
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level_from_name(log_level))
    console.addFilter(TerminalEventFilter(verbose=verbose))
    console.setFormatter(
        ProcessorFormatter(
            processor=(
                ConsoleRenderer(
                    colors=True, exception_formatter=structlog.dev.plain_traceback
                )
                if verbose
                else TerminalRenderer()
            ),
            foreign_pre_chain=_shared_processors(),
        )
    )
    _install(console)

    log_path = log_file or (log_dir / LOG_FILE_NAME if log_dir else None)
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        json_formatter = ProcessorFormatter(
            processor=JSONRenderer(),
            foreign_pre_chain=[*_shared_processors(), add_context_summary],
        )
        _install(
            _rotating_handler(
                log_path, logging.DEBUG, 10 * 1024 * 1024, 5, json_formatter
            )
        )
        _install(
            _rotating_handler(
                log_path.parent / ERROR_LOG_FILE_NAME,
                logging.ERROR,
                5 * 1024 * 1024,
                10,
                json_formatter,
            )
        )

    _configured = True
    get_logger(__name__).debug(
        "logging_configured",
        console_level=log_level,
        log_file=str(log_path) if log_path else None,
        verbose=verbose,
    )


def get_logger(name: str) -> Any:
    """Return a structlog logger, configuring defaults on first use."""
    if not _configured:
        configure_logging()
    return structlog.get_logger(name)
