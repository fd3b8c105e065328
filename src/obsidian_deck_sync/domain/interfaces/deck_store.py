"""Interface for the remote flashcard store."""

from abc import ABC, abstractmethod

from ..entities.note import Note


class IDeckStore(ABC):
    """Remote operations the reconciler and synchronizer rely on.

    Implementations perform their handshake in ``connect()``; every other
    call assumes it succeeded. Calls are never retried.
    """

    quarantine_deck: str

    @abstractmethod
    async def connect(self) -> None:
        """Handshake with the remote store and cache the deck listing.

        Raises:
            AnkiConnectionError: If the store is unreachable or refuses access
        """

    @abstractmethod
    async def deck_exists(self, deck_name: str) -> bool:
        """Check the cached deck listing."""

    @abstractmethod
    async def create_deck(self, deck_name: str) -> None:
        """Create a deck remotely."""

    @abstractmethod
    async def find_deck_note_ids(
        self, deck_name: str, excluded_sources: frozenset[str] = frozenset()
    ) -> set[int]:
        """Note ids in a deck, minus notes tagged with any excluded source."""

    @abstractmethod
    async def note_exists(self, note_id: int) -> bool:
        """Whether a note id still exists remotely."""

    @abstractmethod
    async def add_note(self, note: Note, deck_name: str) -> int:
        """Create a note and return its new id."""

    @abstractmethod
    async def update_note(self, note: Note, deck_name: str) -> None:
        """Update an existing note's fields and tags."""

    @abstractmethod
    async def move_notes(self, note_ids: list[int], deck_name: str) -> None:
        """Move notes (all of their cards) to a deck."""

    @abstractmethod
    async def quarantine_note_ids(self) -> set[int]:
        """Note ids currently sitting in the quarantine deck."""

    @abstractmethod
    async def reset_quarantine(self, previous_orphans: set[int]) -> int:
        """Delete previous-run orphans still in quarantine.

        Returns:
            Number of notes deleted
        """

    @abstractmethod
    async def close(self) -> None:
        """Release transport resources."""
