"""Structured error codes for machine-readable error handling.

Error codes follow the format: {DOMAIN}-{CATEGORY}-{NUMBER}

Error Domains:
    ANK - Anki errors (connection, permission, actions)
    VLT - Vault errors (parsing, write-back)
    STA - State errors (persisted fingerprint)
    SYN - Synchronization run errors
    CFG - Configuration errors

Usage:
    from obsidian_deck_sync.error_codes import ErrorCode

    logger.error(
        "deck_sync_failed",
        error_code=ErrorCode.SYN_DECK_FAILED.value,
        deck="Languages",
    )
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Structured error codes for machine-readable handling.

    All error codes inherit from str for JSON serialization compatibility.
    """

    # =========================================================================
    # Anki Errors (ANK-xxx-xxx)
    # =========================================================================
    ANK_CONNECTION_FAILED = "ANK-CONN-001"
    """AnkiConnect could not be reached."""

    ANK_PERMISSION_DENIED = "ANK-PERM-001"
    """AnkiConnect denied the permission request."""

    ANK_API_KEY_REQUIRED = "ANK-PERM-002"
    """AnkiConnect requires an API key and none was configured."""

    ANK_ACTION_FAILED = "ANK-ACTION-001"
    """An AnkiConnect action returned an error."""

    ANK_INVALID_RESPONSE = "ANK-RESP-001"
    """AnkiConnect returned a malformed response."""

    # =========================================================================
    # Vault Errors (VLT-xxx-xxx)
    # =========================================================================
    VLT_PARSE_FAILED = "VLT-PARSE-001"
    """A notes section could not be parsed."""

    VLT_DOCUMENT_CHANGED = "VLT-WRITE-001"
    """A document changed between parsing and write-back."""

    VLT_READ_FAILED = "VLT-READ-001"
    """A vault document could not be read."""

    # =========================================================================
    # State Errors (STA-xxx-xxx)
    # =========================================================================
    STA_WRITE_FAILED = "STA-FILE-001"
    """The fingerprint state file could not be written."""

    STA_READ_FAILED = "STA-FILE-002"
    """The fingerprint state file could not be read."""

    # =========================================================================
    # Sync Errors (SYN-xxx-xxx)
    # =========================================================================
    SYN_ALREADY_RUNNING = "SYN-RUN-001"
    """A sync run is already in progress."""

    SYN_DECK_FAILED = "SYN-DECK-001"
    """A single deck failed; the run continued."""

    # =========================================================================
    # Configuration Errors (CFG-xxx-xxx)
    # =========================================================================
    CFG_INVALID = "CFG-INVALID-001"
    """Configuration value is invalid."""

    CFG_PATH_INVALID = "CFG-PATH-001"
    """Configured path does not exist or is not accessible."""


def is_run_fatal_error_code(code: ErrorCode) -> bool:
    """Check if an error code aborts a whole run rather than a single deck."""
    fatal_codes = {
        ErrorCode.ANK_CONNECTION_FAILED,
        ErrorCode.ANK_PERMISSION_DENIED,
        ErrorCode.ANK_API_KEY_REQUIRED,
        ErrorCode.SYN_ALREADY_RUNNING,
        ErrorCode.CFG_INVALID,
        ErrorCode.CFG_PATH_INVALID,
    }
    return code in fatal_codes
