"""Interface for user-facing progress and notifications."""

from abc import ABC, abstractmethod


class ISyncReporter(ABC):
    """Fire-and-forget sink for status messages. Implementations never raise."""

    @abstractmethod
    def status(self, message: str) -> None:
        """Transient status line (e.g. current deck)."""

    @abstractmethod
    def info(self, message: str) -> None:
        """One-off notification."""

    @abstractmethod
    def error(self, error: BaseException) -> None:
        """Report a failure."""

    @abstractmethod
    def progress(self, current: int, total: int) -> None:
        """Report deck progress."""
