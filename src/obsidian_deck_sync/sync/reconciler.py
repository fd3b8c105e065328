"""Bring one remote deck in line with a materialized deck."""

from obsidian_deck_sync.domain.entities.note import Deck, Note
from obsidian_deck_sync.domain.interfaces.deck_store import IDeckStore
from obsidian_deck_sync.utils.logging import get_logger

logger = get_logger(__name__)


class NoteReconciler:
    """Upsert a deck's notes and quarantine the ones no document claims anymore.

    Notes keep their ids across moves between decks: an id found outside the
    deck is moved back in rather than recreated. Ids whose remote note is gone
    are dropped so the note is created again.
    """

    def __init__(self, store: IDeckStore):
        self._store = store

    async def reconcile(self, deck: Deck) -> int:
        """Apply a deck to the remote store.

        Args:
            deck: Deck whose notes were parsed from its updated documents

        Returns:
            Number of notes upserted
        """
        await self._ensure_deck(deck)

        remaining = await self._store.find_deck_note_ids(deck.name, deck.unchanged)

        for note in deck.notes:
            if note.id is not None and note.id not in remaining:
                await self._relocate(note, note.id, deck.name)

            if note.id is not None:
                await self._store.update_note(note, deck.name)
            else:
                note.id = await self._store.add_note(note, deck.name)

            remaining.discard(note.id)

        if remaining:
            orphans = sorted(remaining)
            await self._store.move_notes(orphans, self._store.quarantine_deck)
            logger.info(
                "orphans_quarantined",
                deck=deck.name,
                count=len(orphans),
                quarantine_deck=self._store.quarantine_deck,
            )

        logger.debug("deck_reconciled", deck=deck.name, notes=len(deck.notes))
        return len(deck.notes)

    async def _ensure_deck(self, deck: Deck) -> None:
        if not deck.notes or await self._store.deck_exists(deck.name):
            return
        await self._store.create_deck(deck.name)

    async def _relocate(self, note: Note, note_id: int, deck_name: str) -> None:
        if await self._store.note_exists(note_id):
            await self._store.move_notes([note_id], deck_name)
            logger.debug("note_moved", deck=deck_name, note_id=note_id)
            return

        logger.debug("stale_note_id_dropped", deck=deck_name, note_id=note_id)
        note.id = None
