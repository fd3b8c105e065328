"""Individual preflight checks split by concern."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

from obsidian_deck_sync.anki.http_client import AnkiHttpClient
from obsidian_deck_sync.exceptions import AnkiConnectionError, AnkiError
from obsidian_deck_sync.utils.logging import get_logger

from .models import CheckResult

if TYPE_CHECKING:
    from obsidian_deck_sync.config import Config

logger = get_logger(__name__)


# ------------------------------------------------------------------------------
# Path checks
# ------------------------------------------------------------------------------
def check_vault_path(config: Config) -> CheckResult:
    """Check if vault path exists and is accessible."""
    vault_path = config.vault_path

    if vault_path == Path():
        return CheckResult(
            name="Vault Path",
            passed=False,
            message="VAULT_PATH is not configured",
            fix_suggestion="Set VAULT_PATH in your .env file or vault_path in config.yaml",
        )

    if not vault_path.is_dir():
        return CheckResult(
            name="Vault Path",
            passed=False,
            message=f"Vault path is not a directory: {vault_path}",
            fix_suggestion="Update vault_path to an existing vault directory",
        )

    documents = sum(1 for _ in vault_path.rglob("*.md"))
    return CheckResult(
        name="Vault Path",
        passed=True,
        message=f"Vault found at {vault_path} ({documents} markdown files)",
        severity="info",
    )


def check_state_dir(config: Config) -> CheckResult:
    """Check that the sync state can be written."""
    state_dir = config.get_state_path().parent

    existing = state_dir
    while not existing.exists() and existing != existing.parent:
        existing = existing.parent

    if not os.access(existing, os.W_OK):
        return CheckResult(
            name="State Directory",
            passed=False,
            message=f"Sync state directory is not writable: {state_dir}",
            fix_suggestion=f"Check directory permissions or change data_dir ({existing})",
        )

    return CheckResult(
        name="State Directory",
        passed=True,
        message=f"Sync state stored in {config.get_state_path()}",
        severity="info",
    )


# ------------------------------------------------------------------------------
# Anki checks
# ------------------------------------------------------------------------------
async def _probe_anki(config: Config) -> dict[str, Any]:
    async with AnkiHttpClient(
        config.anki_connect_url,
        timeout=config.anki_timeout,
        api_key=config.anki_api_key,
    ) as client:
        await client.request_permission()
        models = await client.invoke("modelNames")
        fields: list[str] = []
        if config.note_model_name in models:
            fields = await client.invoke(
                "modelFieldNames", {"modelName": config.note_model_name}
            )
        return {"version": client.version, "models": models, "fields": fields}


def check_anki(config: Config) -> list[CheckResult]:
    """Check AnkiConnect connectivity and the configured note model."""
    try:
        probe = asyncio.run(_probe_anki(config))
    except AnkiConnectionError as e:
        logger.debug("preflight_anki_unreachable", error=str(e))
        return [
            CheckResult(
                name="Anki Connectivity",
                passed=False,
                message=e.message,
                fix_suggestion=e.suggestion
                or "1. Start Anki\n2. Install AnkiConnect add-on (2055492159)\n3. Restart Anki",
            )
        ]
    except AnkiError as e:
        return [
            CheckResult(
                name="Anki Connectivity",
                passed=False,
                message=f"Anki connectivity check failed: {e.message}",
                fix_suggestion="Ensure Anki is running and AnkiConnect is installed",
            )
        ]

    results = [
        CheckResult(
            name="Anki Connectivity",
            passed=True,
            message=f"Connected to AnkiConnect (protocol version {probe['version']})",
            severity="info",
        )
    ]

    if config.note_model_name not in probe["models"]:
        results.append(
            CheckResult(
                name="Note Model",
                passed=False,
                message=f"Note model not found in Anki: {config.note_model_name}",
                fix_suggestion="Set note_model_name to an existing note type",
            )
        )
        return results

    missing = [
        name
        for name in (config.front_field, config.back_field)
        if name not in probe["fields"]
    ]
    if missing:
        results.append(
            CheckResult(
                name="Note Model",
                passed=False,
                message=f"{config.note_model_name} lacks fields: {', '.join(missing)}",
                fix_suggestion="Set front_field and back_field to fields of the note model",
            )
        )
    else:
        results.append(
            CheckResult(
                name="Note Model",
                passed=True,
                message=f"{config.note_model_name} has fields "
                f"{config.front_field}/{config.back_field}",
                severity="info",
            )
        )
    return results
