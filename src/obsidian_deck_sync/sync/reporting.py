"""Reporters that turn sync progress into log events."""

from obsidian_deck_sync.domain.interfaces.reporter import ISyncReporter
from obsidian_deck_sync.utils.logging import get_logger

logger = get_logger(__name__)


class LoggingReporter(ISyncReporter):
    """Forward reporter calls to structlog."""

    def status(self, message: str) -> None:
        logger.debug("sync_status", message=message)

    def info(self, message: str) -> None:
        logger.debug("sync_info", message=message)

    def error(self, error: BaseException) -> None:
        logger.debug("sync_error_reported", error=str(error), error_type=type(error).__name__)

    def progress(self, current: int, total: int) -> None:
        logger.debug("sync_progress", current=current, total=total)
