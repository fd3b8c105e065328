"""Tests for NoteReconciler against the in-memory deck store."""

import pytest

from obsidian_deck_sync.domain.entities.note import Deck, Note
from obsidian_deck_sync.sync.reconciler import NoteReconciler
from tests.fixtures import MockDeckStore, RemoteNote


@pytest.fixture
def store() -> MockDeckStore:
    return MockDeckStore()


@pytest.fixture
def reconciler(store: MockDeckStore) -> NoteReconciler:
    return NoteReconciler(store)


class TestUpsert:
    """Test creating and updating notes."""

    @pytest.mark.asyncio
    async def test_new_notes_are_added_and_get_ids(self, store, reconciler) -> None:
        deck = Deck(
            name="Lang",
            notes=[
                Note(front="one", back="1", source="Lang/A"),
                Note(front="two", back="2", source="Lang/A"),
            ],
        )

        applied = await reconciler.reconcile(deck)

        assert applied == 2
        assert [note.id for note in deck.notes] == [1000, 1001]
        assert ("create_deck", "Lang") in store.calls
        assert {n.front for n in store.deck_notes("Lang").values()} == {"one", "two"}

    @pytest.mark.asyncio
    async def test_existing_deck_is_not_recreated(self, store, reconciler) -> None:
        store.decks.add("Lang")

        await reconciler.reconcile(Deck(name="Lang", notes=[Note(front="q", back="a")]))

        assert ("create_deck", "Lang") not in store.calls

    @pytest.mark.asyncio
    async def test_known_note_is_updated_in_place(self, store, reconciler) -> None:
        store.decks.add("Lang")
        store.notes[42] = RemoteNote("Lang", "old", "old", source="Lang/A")

        note = Note(front="new", back="new", id=42, source="Lang/A")
        await reconciler.reconcile(Deck(name="Lang", notes=[note]))

        assert note.id == 42
        assert store.notes[42].front == "new"
        assert [call[0] for call in store.writes] == ["update_note"]


class TestRelocation:
    """Test notes whose id is not in the deck."""

    @pytest.mark.asyncio
    async def test_note_from_another_deck_is_moved(self, store, reconciler) -> None:
        store.decks.update({"Lang", "Other"})
        store.notes[7] = RemoteNote("Other", "q", "a", source="Other/X")

        note = Note(front="q", back="a", id=7, source="Lang/A")
        await reconciler.reconcile(Deck(name="Lang", notes=[note]))

        assert note.id == 7
        assert store.notes[7].deck == "Lang"
        assert ("move_notes", (7,), "Lang") in store.calls

    @pytest.mark.asyncio
    async def test_deleted_remote_note_is_recreated(self, store, reconciler) -> None:
        note = Note(front="q", back="a", id=99, source="Lang/A")

        await reconciler.reconcile(Deck(name="Lang", notes=[note]))

        assert note.id == 1000
        assert 99 not in store.notes
        assert store.notes[1000].front == "q"


class TestOrphans:
    """Test quarantining notes no document claims."""

    @pytest.mark.asyncio
    async def test_unclaimed_notes_are_quarantined(self, store, reconciler) -> None:
        store.decks.add("Lang")
        store.notes[1] = RemoteNote("Lang", "kept", "a", source="Lang/A")
        store.notes[2] = RemoteNote("Lang", "dropped", "b", source="Lang/A")

        await reconciler.reconcile(
            Deck(name="Lang", notes=[Note(front="kept", back="a", id=1, source="Lang/A")])
        )

        assert store.notes[1].deck == "Lang"
        assert store.notes[2].deck == "obsidian-orphans"

    @pytest.mark.asyncio
    async def test_notes_of_unchanged_sources_are_left_alone(
        self, store, reconciler
    ) -> None:
        store.decks.add("Lang")
        store.notes[1] = RemoteNote("Lang", "untouched", "a", source="Lang/Skipped")
        store.notes[2] = RemoteNote("Lang", "gone", "b", source="Lang/Removed")

        await reconciler.reconcile(
            Deck(name="Lang", notes=[], unchanged=frozenset({"Lang/Skipped"}))
        )

        assert store.notes[1].deck == "Lang"
        assert store.notes[2].deck == "obsidian-orphans"
        assert ("move_notes", (2,), "obsidian-orphans") in store.calls

    @pytest.mark.asyncio
    async def test_empty_deck_is_not_created(self, store, reconciler) -> None:
        applied = await reconciler.reconcile(Deck(name="Gone"))

        assert applied == 0
        assert store.writes == []
