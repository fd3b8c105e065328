"""Pre-flight checks for validating the environment before syncing."""

from __future__ import annotations

from typing import TYPE_CHECKING

from obsidian_deck_sync.utils.logging import get_logger

from .checks import check_anki, check_state_dir, check_vault_path
from .models import CheckResult

if TYPE_CHECKING:
    from obsidian_deck_sync.config import Config

logger = get_logger(__name__)


def run_preflight_checks(
    config: Config, check_anki_connection: bool = True
) -> tuple[bool, list[CheckResult]]:
    """Run all pre-flight checks.

    Returns:
        Tuple of (all errors absent, results)
    """
    logger.info("preflight_checks_started", check_anki=check_anki_connection)

    results = [check_vault_path(config), check_state_dir(config)]
    if check_anki_connection:
        results.extend(check_anki(config))

    errors = [r for r in results if not r.passed and r.severity == "error"]
    logger.info(
        "preflight_checks_completed",
        passed=len(results) - len(errors),
        errors=len(errors),
    )
    return not errors, results


__all__ = ["CheckResult", "run_preflight_checks"]
