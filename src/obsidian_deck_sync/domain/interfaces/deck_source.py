"""Interfaces for the side that emits decks (the vault)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ..entities.fingerprint import DeckFingerprint, Fingerprint
from ..entities.note import Deck


class DeckHeader(ABC):
    """A deck that may need processing, opened in two phases.

    ``materialize()`` parses the updated sources into a Deck. Once the remote
    side accepted the deck, ``commit(deck)`` writes assigned note ids back into
    the documents. A caller that fails between the two phases simply does not
    commit.
    """

    def __init__(
        self,
        name: str,
        sources: frozenset[str],
        unchanged: frozenset[str],
        removed: frozenset[str],
        synced_at: float | None,
    ) -> None:
        self.name = name
        self.sources = sources
        self.unchanged = unchanged
        self.removed = removed
        self.synced_at = synced_at

    @property
    def updated(self) -> frozenset[str]:
        return self.sources - self.unchanged

    @property
    def has_been_modified(self) -> bool:
        return bool(self.updated or self.removed)

    @abstractmethod
    def materialize(self) -> Deck:
        """Parse updated sources and return the deck to reconcile."""

    @abstractmethod
    def commit(self, deck: Deck) -> int:
        """Write note ids back into the updated documents.

        Returns:
            Number of documents rewritten
        """

    def synced(self, at: float) -> DeckFingerprint:
        """Fingerprint entry once the deck went through successfully."""
        return DeckFingerprint(synced_at=at, sources=sorted(self.sources))

    def failed(self) -> DeckFingerprint:
        """Fingerprint entry after a failure.

        Only sources known to be unchanged count as synced, so updated content
        is retried next run. Removed sources stay listed so their notes are
        quarantined on the retry.
        """
        return DeckFingerprint(
            synced_at=self.synced_at or 0.0,
            sources=sorted(self.unchanged | self.removed),
        )


@dataclass
class DecksDiff:
    """Decks modified since the previous run, and the draft next fingerprint."""

    decks: list[DeckHeader]
    fingerprint: Fingerprint
    unmodified: list[str] = field(default_factory=list)


class IDeckSource(ABC):
    """Something decks can be extracted from."""

    @abstractmethod
    def get_decks(self, previous: Fingerprint | None = None) -> DecksDiff:
        """Compute the decks to sync given the previous run's fingerprint."""
