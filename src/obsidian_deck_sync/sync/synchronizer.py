"""Single-flight orchestration of a sync run."""

import time

from obsidian_deck_sync.domain.entities.fingerprint import Fingerprint, SyncResult
from obsidian_deck_sync.domain.interfaces.deck_source import DeckHeader, IDeckSource
from obsidian_deck_sync.domain.interfaces.deck_store import IDeckStore
from obsidian_deck_sync.domain.interfaces.reporter import ISyncReporter
from obsidian_deck_sync.error_codes import ErrorCode, is_run_fatal_error_code
from obsidian_deck_sync.exceptions import AlreadyRunningError, AnkiConnectionError
from obsidian_deck_sync.sync.reconciler import NoteReconciler
from obsidian_deck_sync.sync.reporting import LoggingReporter
from obsidian_deck_sync.utils.logging import get_logger

logger = get_logger(__name__)


class Synchronizer:
    """Run the vault-to-Anki pipeline, one run at a time.

    Each modified deck goes through ``materialize -> reconcile -> commit``.
    A deck that fails is reported and skipped; its fingerprint entry falls
    back to the sources known to be unchanged so it is retried next run. Losing
    the connection to Anki, at the handshake or later, aborts the whole run.

    Vault reads and document writes are plain blocking file I/O on the event
    loop thread. Runs are single-flight and remote calls are awaited one at a
    time, so nothing else is waiting on the loop meanwhile.
    """

    def __init__(
        self,
        source: IDeckSource,
        store: IDeckStore,
        reporter: ISyncReporter | None = None,
        reconciler: NoteReconciler | None = None,
        clock=time.time,
    ):
        self._source = source
        self._store = store
        self._reporter = reporter or LoggingReporter()
        self._reconciler = reconciler or NoteReconciler(store)
        self._clock = clock
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def run(self, previous: Fingerprint | None = None) -> SyncResult:
        """Synchronize every deck modified since ``previous``.

        Args:
            previous: Fingerprint persisted by the last run, None for a full sync

        Returns:
            Outcome of the run, holding the fingerprint to persist

        Raises:
            AlreadyRunningError: If another run is in progress
            AnkiConnectionError: If Anki cannot be reached during the run
        """
        if self._running:
            raise AlreadyRunningError(
                "A sync is already running",
                error_code=ErrorCode.SYN_ALREADY_RUNNING.value,
            )

        self._running = True
        try:
            return await self._run(previous)
        finally:
            self._running = False

    async def _run(self, previous: Fingerprint | None) -> SyncResult:
        started = time.perf_counter()

        diff = self._source.get_decks(previous)
        fingerprint = diff.fingerprint

        if not diff.decks:
            fingerprint.last_synced_at = self._clock()
            logger.info("sync_skipped_no_changes", unmodified=len(diff.unmodified))
            self._reporter.info("Nothing to sync")
            return SyncResult(
                duration=time.perf_counter() - started,
                decks_count=0,
                fingerprint=fingerprint,
            )

        await self._store.connect()
        previous_orphans = await self._store.quarantine_note_ids()

        synced = 0
        notes_count = 0
        failed: list[str] = []
        total = len(diff.decks)

        for index, header in enumerate(diff.decks, start=1):
            self._reporter.progress(index - 1, total)
            self._reporter.status(f"Syncing {header.name}")
            try:
                notes_count += await self._sync_deck(header)
            except Exception as e:
                if _aborts_run(e):
                    logger.error(
                        "sync_aborted",
                        deck=header.name,
                        error=str(e),
                        error_code=getattr(e, "error_code", None),
                    )
                    raise
                failed.append(header.name)
                fingerprint.decks[header.name] = header.failed()
                logger.error(
                    "deck_sync_failed",
                    deck=header.name,
                    error=str(e),
                    error_type=type(e).__name__,
                    error_code=getattr(e, "error_code", None)
                    or ErrorCode.SYN_DECK_FAILED.value,
                )
                self._reporter.error(e)
                continue

            synced += 1
            fingerprint.decks[header.name] = header.synced(self._clock())

        self._reporter.progress(total, total)

        deleted = await self._store.reset_quarantine(previous_orphans)

        # Decks that no longer hold any source are forgotten once synced
        for name in [name for name, deck in fingerprint.decks.items() if not deck.sources]:
            del fingerprint.decks[name]

        fingerprint.last_synced_at = self._clock()
        duration = time.perf_counter() - started
        result = SyncResult(
            duration=duration,
            decks_count=synced,
            notes_count=notes_count,
            failed_decks=tuple(failed),
            fingerprint=fingerprint,
        )

        logger.info(
            "sync_completed",
            duration=duration,
            decks_count=synced,
            notes_count=notes_count,
            failed_decks=failed,
            orphans_deleted=deleted,
        )
        self._reporter.info(
            f"Synced {synced} decks ({notes_count} notes) in {duration:.2f}s"
        )
        return result

    async def _sync_deck(self, header: DeckHeader) -> int:
        logger.debug(
            "deck_sync_started",
            deck=header.name,
            updated=len(header.updated),
            unchanged=len(header.unchanged),
            removed=len(header.removed),
        )
        deck = header.materialize()
        applied = await self._reconciler.reconcile(deck)
        header.commit(deck)
        return applied


def _aborts_run(error: Exception) -> bool:
    """Tell whether a deck failure means no later deck can succeed either."""
    if isinstance(error, AnkiConnectionError):
        return True
    code = getattr(error, "error_code", None)
    try:
        return is_run_fatal_error_code(ErrorCode(code))
    except ValueError:
        return False
