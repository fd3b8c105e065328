"""Persistence of the fingerprint between runs."""

from pathlib import Path

from pydantic import ValidationError

from obsidian_deck_sync.domain.entities.fingerprint import Fingerprint
from obsidian_deck_sync.error_codes import ErrorCode
from obsidian_deck_sync.exceptions import StateError
from obsidian_deck_sync.utils.io import atomic_write
from obsidian_deck_sync.utils.logging import get_logger

logger = get_logger(__name__)


class FingerprintStore:
    """Read and write the fingerprint as a JSON file.

    A missing or unreadable file yields None, which makes the next run a full
    resync; a corrupt state file never blocks syncing.
    """

    def __init__(self, path: Path):
        self.path = path

    def load(self) -> Fingerprint | None:
        if not self.path.exists():
            logger.debug("state_not_found", path=str(self.path))
            return None

        try:
            fingerprint = Fingerprint.model_validate_json(
                self.path.read_text(encoding="utf-8")
            )
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            logger.warning(
                "state_unreadable",
                path=str(self.path),
                error=str(e),
                error_code=ErrorCode.STA_READ_FAILED.value,
            )
            return None

        logger.debug("state_loaded", path=str(self.path), decks=len(fingerprint.decks))
        return fingerprint

    def save(self, fingerprint: Fingerprint) -> None:
        """Atomically replace the state file.

        Raises:
            StateError: If the file cannot be written
        """
        try:
            with atomic_write(self.path) as f:
                f.write(fingerprint.model_dump_json(indent=2))
        except OSError as e:
            raise StateError(
                f"Cannot write sync state to {self.path}: {e}",
                suggestion="Check that the data directory is writable",
                error_code=ErrorCode.STA_WRITE_FAILED.value,
                context={"path": str(self.path)},
            ) from e

        logger.debug("state_saved", path=str(self.path), decks=len(fingerprint.decks))

    def reset(self) -> bool:
        """Delete the state file. Returns whether there was one."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StateError(
                f"Cannot delete sync state {self.path}: {e}",
                error_code=ErrorCode.STA_WRITE_FAILED.value,
                context={"path": str(self.path)},
            ) from e

        logger.info("state_reset", path=str(self.path))
        return True
