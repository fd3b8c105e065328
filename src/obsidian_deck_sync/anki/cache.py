"""Caching for Anki metadata."""

import time
from typing import Any

from obsidian_deck_sync.utils.logging import get_logger

logger = get_logger(__name__)


class AnkiCache:
    """TTL cache for Anki metadata that changes rarely during a run.

    The deck store keeps the ``deckNamesAndIds`` listing here so that deck
    existence checks do not hit AnkiConnect for every deck.
    """

    def __init__(self, ttl_seconds: float = 300.0):
        """
        Initialize cache.

        Args:
            ttl_seconds: Time-to-live for cached entries in seconds
        """
        self._cache: dict[str, Any] = {}
        self._cache_times: dict[str, float] = {}
        self._ttl = ttl_seconds

    def get(self, key: str) -> Any | None:
        """Get cached value if still valid, None otherwise."""
        if key not in self._cache:
            return None

        if time.monotonic() - self._cache_times.get(key, 0.0) > self._ttl:
            self.invalidate(key)
            return None

        return self._cache[key]

    def set(self, key: str, value: Any) -> None:
        self._cache[key] = value
        self._cache_times[key] = time.monotonic()

    def invalidate(self, key: str) -> None:
        self._cache.pop(key, None)
        self._cache_times.pop(key, None)

    def invalidate_all(self) -> None:
        """Invalidate all cached entries."""
        self._cache.clear()
        self._cache_times.clear()
        logger.debug("anki_cache_invalidated_all")
