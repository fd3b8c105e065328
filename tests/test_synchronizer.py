"""End-to-end tests for the synchronizer over a real vault and a mock store."""

import asyncio
import shutil
import time

import pytest

from obsidian_deck_sync.domain.interfaces.reporter import ISyncReporter
from obsidian_deck_sync.error_codes import ErrorCode
from obsidian_deck_sync.exceptions import (
    AlreadyRunningError,
    AnkiConnectionError,
    ParserError,
)
from obsidian_deck_sync.sync.synchronizer import Synchronizer
from tests.fixtures import PAST, write_document

QUARANTINE = "obsidian-orphans"


def card(*pairs: tuple[str, str]) -> str:
    body = "\n---\n".join(f"\n{front}\n\n---\n\n{back}\n" for front, back in pairs)
    return "#cards\n" + body


class RecordingReporter(ISyncReporter):
    """Reporter keeping every call for assertions."""

    def __init__(self):
        self.statuses: list[str] = []
        self.infos: list[str] = []
        self.errors: list[BaseException] = []
        self.progress_calls: list[tuple[int, int]] = []

    def status(self, message: str) -> None:
        self.statuses.append(message)

    def info(self, message: str) -> None:
        self.infos.append(message)

    def error(self, error: BaseException) -> None:
        self.errors.append(error)

    def progress(self, current: int, total: int) -> None:
        self.progress_calls.append((current, total))


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def sync(extractor, mock_deck_store, reporter) -> Synchronizer:
    return Synchronizer(extractor, mock_deck_store, reporter)


@pytest.fixture
def three_decks(vault_dir):
    write_document(vault_dir, "A/one.md", card(("a1", "x")), PAST)
    write_document(vault_dir, "B/two.md", card(("b1", "x"), ("b2", "y")), PAST)
    write_document(vault_dir, "C.md", card(("c1", "x")), PAST)
    return vault_dir


def _fronts(store, deck: str) -> set[str]:
    return {note.front for note in store.deck_notes(deck).values()}


class TestFullRun:
    """Test the first run over a fresh vault."""

    @pytest.mark.asyncio
    async def test_all_decks_are_pushed(self, three_decks, sync, mock_deck_store) -> None:
        result = await sync.run(None)

        assert result.decks_count == 3
        assert result.notes_count == 4
        assert result.failed_decks == ()
        assert _fronts(mock_deck_store, "A") == {"a1"}
        assert _fronts(mock_deck_store, "B") == {"b1", "b2"}
        assert _fronts(mock_deck_store, "C") == {"c1"}

    @pytest.mark.asyncio
    async def test_ids_are_written_back(self, three_decks, sync, mock_deck_store) -> None:
        await sync.run(None)

        content = (three_decks / "B" / "two.md").read_text(encoding="utf-8")
        for note_id, note in mock_deck_store.deck_notes("B").items():
            assert f"<!-- id:{note_id} -->\n{note.front}\n" in content

    @pytest.mark.asyncio
    async def test_fingerprint_records_every_deck(self, three_decks, sync) -> None:
        before = time.time()

        result = await sync.run(None)

        fingerprint = result.fingerprint
        assert fingerprint.last_synced_at >= before
        assert fingerprint.decks["B"].sources == ["B/two"]
        assert fingerprint.decks["C"].sources == ["C"]
        assert all(deck.synced_at >= before for deck in fingerprint.decks.values())

    @pytest.mark.asyncio
    async def test_notes_are_tagged_with_their_path(
        self, three_decks, sync, mock_deck_store
    ) -> None:
        await sync.run(None)

        [note] = mock_deck_store.deck_notes("A").values()
        assert note.tags == ["A", "one"]
        assert note.source == "A/one"

    @pytest.mark.asyncio
    async def test_progress_and_status(self, three_decks, sync, reporter) -> None:
        await sync.run(None)

        assert reporter.progress_calls == [(0, 3), (1, 3), (2, 3), (3, 3)]
        assert reporter.statuses == ["Syncing A", "Syncing B", "Syncing C"]

    @pytest.mark.asyncio
    async def test_empty_vault_never_contacts_the_store(
        self, vault_dir, sync, mock_deck_store, reporter
    ) -> None:
        result = await sync.run(None)

        assert result.decks_count == 0
        assert mock_deck_store.calls == []
        assert reporter.infos == ["Nothing to sync"]


class TestIncrementalRun:
    """Test runs that start from a previous fingerprint."""

    @pytest.mark.asyncio
    async def test_rerun_without_changes_is_a_no_op(
        self, three_decks, sync, mock_deck_store
    ) -> None:
        first = await sync.run(None)
        mock_deck_store.calls.clear()
        before = time.time()

        second = await sync.run(first.fingerprint)

        assert mock_deck_store.calls == []
        assert second.decks_count == 0
        assert second.fingerprint.decks == first.fingerprint.decks
        assert second.fingerprint.last_synced_at >= before

    @pytest.mark.asyncio
    async def test_only_the_edited_deck_is_synced(
        self, three_decks, sync, mock_deck_store
    ) -> None:
        first = await sync.run(None)
        [(b2_id, _)] = [
            (nid, note)
            for nid, note in mock_deck_store.deck_notes("B").items()
            if note.front == "b2"
        ]
        content = (three_decks / "B" / "two.md").read_text(encoding="utf-8")
        write_document(
            three_decks, "B/two.md", content.replace("\ny\n", "\nchanged\n"), time.time() + 60
        )
        mock_deck_store.calls.clear()

        result = await sync.run(first.fingerprint)

        assert result.decks_count == 1
        upserts = [call for call in mock_deck_store.writes if call[0] != "reset_quarantine"]
        assert [call[:2] for call in upserts] == [("update_note", "B"), ("update_note", "B")]
        assert mock_deck_store.notes[b2_id].back == "changed"

    @pytest.mark.asyncio
    async def test_deleted_document_notes_are_quarantined(
        self, three_decks, sync, mock_deck_store
    ) -> None:
        write_document(three_decks, "A/two.md", card(("a2", "x")), PAST)
        first = await sync.run(None)
        (three_decks / "A" / "two.md").unlink()

        result = await sync.run(first.fingerprint)

        assert _fronts(mock_deck_store, "A") == {"a1"}
        assert _fronts(mock_deck_store, QUARANTINE) == {"a2"}
        assert result.fingerprint.decks["A"].sources == ["A/one"]

    @pytest.mark.asyncio
    async def test_vanished_deck_is_quarantined_and_forgotten(
        self, three_decks, sync, mock_deck_store
    ) -> None:
        first = await sync.run(None)
        shutil.rmtree(three_decks / "B")

        result = await sync.run(first.fingerprint)

        assert _fronts(mock_deck_store, "B") == set()
        assert _fronts(mock_deck_store, QUARANTINE) == {"b1", "b2"}
        assert "B" not in result.fingerprint.decks
        assert result.decks_count == 3

    @pytest.mark.asyncio
    async def test_quarantine_is_emptied_on_the_next_run(
        self, three_decks, sync, mock_deck_store
    ) -> None:
        first = await sync.run(None)
        (three_decks / "C.md").unlink()
        second = await sync.run(first.fingerprint)
        assert _fronts(mock_deck_store, QUARANTINE) == {"c1"}

        content = (three_decks / "A" / "one.md").read_text(encoding="utf-8")
        write_document(
            three_decks, "A/one.md", content.replace("\nx\n", "\nedited\n"), time.time() + 60
        )
        await sync.run(second.fingerprint)

        assert _fronts(mock_deck_store, QUARANTINE) == set()
        assert QUARANTINE not in mock_deck_store.decks
        assert {note.front for note in mock_deck_store.notes.values()} == {"a1", "b1", "b2"}

    @pytest.mark.asyncio
    async def test_renamed_document_resyncs_everything_once(
        self, three_decks, sync, mock_deck_store
    ) -> None:
        first = await sync.run(None)
        [a1_id] = mock_deck_store.deck_notes("A")
        (three_decks / "A" / "one.md").rename(three_decks / "A" / "uno.md")

        second = await sync.run(first.fingerprint)

        assert second.decks_count == 3
        assert {call[1] for call in mock_deck_store.writes if call[0] == "update_note"} == {
            "A",
            "B",
            "C",
        }
        assert list(mock_deck_store.deck_notes("A")) == [a1_id]
        assert mock_deck_store.notes[a1_id].source == "A/uno"
        assert _fronts(mock_deck_store, QUARANTINE) == set()
        assert second.fingerprint.decks["A"].sources == ["A/uno"]

        mock_deck_store.calls.clear()
        third = await sync.run(second.fingerprint)

        assert third.decks_count == 0
        assert mock_deck_store.writes == []

    @pytest.mark.asyncio
    async def test_note_moved_between_decks_keeps_its_id(
        self, three_decks, sync, mock_deck_store
    ) -> None:
        first = await sync.run(None)
        [c1_id] = mock_deck_store.deck_notes("C")
        content = (three_decks / "C.md").read_text(encoding="utf-8")
        (three_decks / "C.md").unlink()
        write_document(three_decks, "A/moved.md", content, time.time() + 60)

        await sync.run(first.fingerprint)

        assert mock_deck_store.notes[c1_id].deck == "A"
        assert _fronts(mock_deck_store, "A") == {"a1", "c1"}


class TestFailureIsolation:
    """Test that one failing deck does not stop the others."""

    @pytest.mark.asyncio
    async def test_store_failure_skips_only_that_deck(
        self, three_decks, sync, mock_deck_store, reporter
    ) -> None:
        mock_deck_store.failing_decks.add("B")

        result = await sync.run(None)

        assert result.failed_decks == ("B",)
        assert result.decks_count == 2
        assert _fronts(mock_deck_store, "A") == {"a1"}
        assert _fronts(mock_deck_store, "C") == {"c1"}
        assert len(reporter.errors) == 1
        # Nothing was committed for the failed deck
        assert "id:" not in (three_decks / "B" / "two.md").read_text(encoding="utf-8")
        assert "B" not in result.fingerprint.decks

    @pytest.mark.asyncio
    async def test_failed_deck_is_retried_next_run(
        self, three_decks, sync, mock_deck_store
    ) -> None:
        mock_deck_store.failing_decks.add("B")
        first = await sync.run(None)
        mock_deck_store.failing_decks.clear()
        mock_deck_store.calls.clear()

        result = await sync.run(first.fingerprint)

        assert result.decks_count == 1
        assert _fronts(mock_deck_store, "B") == {"b1", "b2"}
        assert result.fingerprint.decks["B"].sources == ["B/two"]

    @pytest.mark.asyncio
    async def test_parse_error_skips_only_that_deck(
        self, three_decks, sync, mock_deck_store, reporter
    ) -> None:
        write_document(three_decks, "B/broken.md", "#cards\nfront without back\n", PAST)

        result = await sync.run(None)

        assert result.failed_decks == ("B",)
        assert _fronts(mock_deck_store, "B") == set()
        assert _fronts(mock_deck_store, "C") == {"c1"}
        assert isinstance(reporter.errors[0], ParserError)

    @pytest.mark.asyncio
    async def test_connection_lost_mid_run_aborts_the_run(
        self, three_decks, sync, mock_deck_store, reporter
    ) -> None:
        mock_deck_store.deck_errors["B"] = AnkiConnectionError(
            "Connection refused", error_code=ErrorCode.ANK_CONNECTION_FAILED.value
        )

        with pytest.raises(AnkiConnectionError):
            await sync.run(None)

        assert not sync.is_running
        assert reporter.errors == []
        assert _fronts(mock_deck_store, "A") == {"a1"}
        assert [call for call in mock_deck_store.calls if "C" in call] == []
        assert "reset_quarantine" not in [call[0] for call in mock_deck_store.calls]

    @pytest.mark.asyncio
    async def test_handshake_failure_aborts_the_run(
        self, three_decks, sync, mock_deck_store
    ) -> None:
        mock_deck_store.connect_error = AnkiConnectionError("Anki is not running")

        with pytest.raises(AnkiConnectionError):
            await sync.run(None)

        assert not sync.is_running
        assert mock_deck_store.writes == []


class TestSingleFlight:
    """Test that concurrent runs are refused."""

    @pytest.mark.asyncio
    async def test_concurrent_run_is_rejected(self, three_decks, sync) -> None:
        results = await asyncio.gather(sync.run(None), sync.run(None), return_exceptions=True)

        errors = [r for r in results if isinstance(r, BaseException)]
        assert len(errors) == 1
        assert isinstance(errors[0], AlreadyRunningError)
        assert errors[0].error_code == ErrorCode.SYN_ALREADY_RUNNING.value
        assert not sync.is_running

    @pytest.mark.asyncio
    async def test_runs_in_sequence_are_allowed(self, three_decks, sync) -> None:
        first = await sync.run(None)
        second = await sync.run(first.fingerprint)

        assert second.decks_count == 0
        assert not sync.is_running


@pytest.mark.asyncio
async def test_default_reporter_writes_to_the_log(three_decks, synchronizer) -> None:
    """Test a synchronizer built without a reporter."""
    first = await synchronizer.run(None)
    second = await synchronizer.run(first.fingerprint)

    assert first.decks_count == 3
    assert second.decks_count == 0
