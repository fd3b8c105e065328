"""Centralized exception hierarchy for obsidian-deck-sync.

All custom exceptions inherit from DeckSyncError, making it easy to catch
every sync-related error with a single except clause.

Exception Hierarchy:
    DeckSyncError (base)
     ConfigurationError - Configuration loading/validation errors
     SyncError - Synchronization run errors
        AlreadyRunningError - A run is already in progress
        StateError - Persisted fingerprint read/write errors
     VaultError - Vault document access errors
        ParserError - Notes section parsing errors
        DocumentChangedError - Document modified while its deck was syncing
     AnkiError - Anki-related errors
        AnkiConnectError - AnkiConnect action returned an error
        AnkiConnectionError - AnkiConnect unreachable or handshake refused
           AnkiPermissionError - Permission request denied

Usage Examples:
    # A run-level failure (handshake) versus a deck-level one
    try:
        result = await synchronizer.run(previous)
    except AnkiConnectionError as e:
        console.print(f"Cannot reach Anki: {e}")
    except AlreadyRunningError:
        console.print("A sync is already running")
"""

from typing import Any


class DeckSyncError(Exception):
    """Base exception for all sync-related errors.

    Attributes:
        message: Human-readable error message
        suggestion: Optional suggestion for resolving the error
        error_code: Structured error code for machine-readable handling
        context: Additional context for debugging (e.g., deck names, params)
    """

    def __init__(
        self,
        message: str,
        suggestion: str | None = None,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            suggestion: Optional suggestion for resolving the error
            error_code: Structured error code (e.g., "ANK-CONN-001")
            context: Additional context for debugging
        """
        self.message = message
        self.suggestion = suggestion
        self.error_code = error_code
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with error code and suggestion if available."""
        parts = []
        if self.error_code:
            parts.append(f"[{self.error_code}] {self.message}")
        else:
            parts.append(self.message)
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for structured logging.

        Returns:
            Dictionary with error details
        """
        return {
            "message": self.message,
            "error_code": self.error_code,
            "suggestion": self.suggestion,
            "context": self.context,
            "type": type(self).__name__,
        }


# Configuration Errors


class ConfigurationError(DeckSyncError):
    """Configuration loading or validation errors.

    Raised when:
    - Config file is missing or malformed
    - Configuration values fail validation
    """


# Sync Errors


class SyncError(DeckSyncError):
    """Synchronization run errors."""


class AlreadyRunningError(SyncError):
    """Raised when a run is requested while another one is in progress.

    Nothing has been mutated when this is raised.
    """


class StateError(SyncError):
    """Persisted fingerprint errors.

    Raised when:
    - The state file cannot be written
    """


# Vault Errors


class VaultError(DeckSyncError):
    """Vault document access errors."""


class ParserError(VaultError):
    """Notes section parsing errors.

    Raised when:
    - A notes section holds an unbalanced number of front/back parts
    """


class DocumentChangedError(VaultError):
    """A document was modified on disk between parsing and write-back.

    The deck is reported as failed and its documents are re-parsed on the
    next run.
    """


# Anki Errors


class AnkiError(DeckSyncError):
    """Base class for Anki-related errors."""


class AnkiConnectError(AnkiError):
    """AnkiConnect action errors.

    Raised when an action returns a non-null ``error`` or an invalid response.
    ``context`` carries the action name and the echoed params.
    """

    @property
    def action(self) -> str | None:
        return self.context.get("action")

    @property
    def params(self) -> Any:
        return self.context.get("params")


class AnkiConnectionError(AnkiError):
    """AnkiConnect is unreachable or refused the permission handshake.

    Fatal for the whole run: no deck is processed and the previous
    fingerprint stays valid.
    """


class AnkiPermissionError(AnkiConnectionError):
    """AnkiConnect denied the permission request."""
