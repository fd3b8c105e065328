"""Deck extraction from the vault tree.

Every top-level folder (and every top-level markdown file) of the vault is a
deck. Walking a deck classifies each document as *unchanged* (skipped this
run) or *updated* (re-parsed), based on the previous run's fingerprint.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from obsidian_deck_sync.domain.entities.document import (
    VaultDocument,
    VaultEntry,
    VaultFolder,
)
from obsidian_deck_sync.domain.entities.fingerprint import DeckFingerprint, Fingerprint
from obsidian_deck_sync.domain.entities.note import Deck
from obsidian_deck_sync.domain.interfaces.deck_source import (
    DeckHeader,
    DecksDiff,
    IDeckSource,
)
from obsidian_deck_sync.domain.interfaces.note_parser import INoteParser, ParseResult
from obsidian_deck_sync.domain.services.fingerprint_builder import build_structural_hash
from obsidian_deck_sync.obsidian.vault import ObsidianVault
from obsidian_deck_sync.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SourceDocument:
    """A document to parse, with the tags its notes inherit."""

    document: VaultDocument
    tags: tuple[str, ...]

    @property
    def source(self) -> str:
        return self.document.source


@dataclass(frozen=True)
class SubtreeScan:
    """Classification of the documents under one subtree."""

    updated: tuple[SourceDocument, ...] = ()
    unchanged: frozenset[str] = frozenset()

    @property
    def sources(self) -> frozenset[str]:
        return self.unchanged | {doc.source for doc in self.updated}

    def merge(self, other: SubtreeScan) -> SubtreeScan:
        return SubtreeScan(
            updated=self.updated + other.updated,
            unchanged=self.unchanged | other.unchanged,
        )


def scan_subtree(
    entry: VaultEntry,
    parent_tags: tuple[str, ...],
    previous_sources: frozenset[str],
    cutoff: float | None,
) -> SubtreeScan:
    """Classify the documents under ``entry``.

    A document is unchanged only if a cutoff exists, it was synced last time
    and it was not modified after the cutoff.
    """
    if isinstance(entry, VaultDocument):
        if (
            cutoff is not None
            and entry.source in previous_sources
            and entry.modified <= cutoff
        ):
            return SubtreeScan(unchanged=frozenset({entry.source}))
        return SubtreeScan(
            updated=(SourceDocument(entry, (*parent_tags, entry.stem)),)
        )

    tags = (*parent_tags, entry.name)
    scan = SubtreeScan()
    for child in entry.children:
        scan = scan.merge(scan_subtree(child, tags, previous_sources, cutoff))
    return scan


def deck_name_for(entry: VaultEntry) -> str:
    return entry.stem if isinstance(entry, VaultDocument) else entry.name


@dataclass
class _ParsedDocument:
    source_document: SourceDocument
    content: str
    result: ParseResult | None
    original_ids: list[int | None] = field(default_factory=list)

    def ids_changed(self) -> bool:
        if self.result is None:
            return False
        return [note.id for note in self.result.notes] != self.original_ids


class VaultDeckHeader(DeckHeader):
    """A deck backed by vault documents."""

    def __init__(
        self,
        name: str,
        vault: ObsidianVault,
        parser: INoteParser,
        documents: tuple[SourceDocument, ...],
        unchanged: frozenset[str],
        removed: frozenset[str],
        synced_at: float | None,
    ) -> None:
        super().__init__(
            name=name,
            sources=unchanged | {doc.source for doc in documents},
            unchanged=unchanged,
            removed=removed,
            synced_at=synced_at,
        )
        self._vault = vault
        self._parser = parser
        self._documents = documents
        self._parsed: list[_ParsedDocument] | None = None

    def materialize(self) -> Deck:
        parsed: list[_ParsedDocument] = []
        notes = []

        for source_document in self._documents:
            content = self._vault.read(source_document.document)
            result = self._parser.parse(content)
            entry = _ParsedDocument(source_document, content, result)

            if result is not None:
                for note in result.notes:
                    note.tags = list(dict.fromkeys([*note.tags, *source_document.tags]))
                    note.source = source_document.source
                entry.original_ids = [note.id for note in result.notes]
                notes.extend(result.notes)

            parsed.append(entry)

        self._parsed = parsed
        logger.debug(
            "deck_materialized",
            deck=self.name,
            documents=len(parsed),
            notes=len(notes),
            unchanged=len(self.unchanged),
        )
        return Deck(name=self.name, notes=notes, unchanged=self.unchanged)

    def commit(self, deck: Deck) -> int:
        if self._parsed is None:
            msg = f"Deck {self.name} must be materialized before it is committed"
            raise RuntimeError(msg)

        written = 0
        for entry in self._parsed:
            if entry.result is None or not entry.ids_changed():
                continue

            self._vault.replace_span(
                entry.source_document.document,
                entry.result.start,
                entry.result.end,
                self._parser.stringify(entry.result.notes),
                expected=entry.content,
            )
            written += 1

        logger.debug("deck_committed", deck=self.name, documents_written=written)
        return written


class VaultDeckExtractor(IDeckSource):
    """Build the set of deck headers for a run."""

    def __init__(self, vault: ObsidianVault, parser: INoteParser) -> None:
        self._vault = vault
        self._parser = parser

    def get_decks(self, previous: Fingerprint | None = None) -> DecksDiff:
        root = self._vault.get_root()
        structural_hash = build_structural_hash(root)
        same_shape = previous is not None and previous.structural_hash == structural_hash
        previous_decks = previous.decks if previous is not None else {}

        logger.info(
            "decks_extraction_started",
            vault=str(self._vault.root),
            structural_hash=structural_hash[:12],
            full_rescan=not same_shape,
        )

        fingerprint = Fingerprint(
            structural_hash=structural_hash,
            last_synced_at=previous.last_synced_at if previous is not None else None,
        )
        diff = DecksDiff(decks=[], fingerprint=fingerprint)

        for name, entries in self._group_entries(root).items():
            header = self._build_header(name, entries, previous_decks.get(name), same_shape)
            self._register(diff, header, previous_decks.get(name))

        # Decks whose top-level entry disappeared: quarantine what they held
        for name, previous_deck in previous_decks.items():
            if name in diff.fingerprint.decks or not previous_deck.sources:
                continue
            header = VaultDeckHeader(
                name=name,
                vault=self._vault,
                parser=self._parser,
                documents=(),
                unchanged=frozenset(),
                removed=frozenset(previous_deck.sources),
                synced_at=previous_deck.synced_at,
            )
            self._register(diff, header, previous_deck)

        logger.info(
            "decks_extracted",
            modified=[header.name for header in diff.decks],
            unmodified=len(diff.unmodified),
        )
        return diff

    @staticmethod
    def _group_entries(root: VaultFolder) -> dict[str, list[VaultEntry]]:
        # A folder and a top-level file sharing a name feed the same deck
        groups: dict[str, list[VaultEntry]] = {}
        for entry in root.children:
            groups.setdefault(deck_name_for(entry), []).append(entry)
        return groups

    def _build_header(
        self,
        name: str,
        entries: list[VaultEntry],
        previous_deck: DeckFingerprint | None,
        same_shape: bool,
    ) -> VaultDeckHeader:
        cutoff = previous_deck.synced_at if same_shape and previous_deck else None
        previous_sources = (
            frozenset(previous_deck.sources) if previous_deck else frozenset()
        )

        scan = SubtreeScan()
        for entry in entries:
            scan = scan.merge(scan_subtree(entry, (), previous_sources, cutoff))

        return VaultDeckHeader(
            name=name,
            vault=self._vault,
            parser=self._parser,
            documents=scan.updated,
            unchanged=scan.unchanged,
            removed=previous_sources - scan.sources,
            synced_at=previous_deck.synced_at if previous_deck else None,
        )

    @staticmethod
    def _register(
        diff: DecksDiff,
        header: VaultDeckHeader,
        previous_deck: DeckFingerprint | None,
    ) -> None:
        if header.has_been_modified:
            # Assume failure until the synchronizer reports success
            diff.fingerprint.decks[header.name] = header.failed()
            diff.decks.append(header)
            return

        diff.fingerprint.decks[header.name] = DeckFingerprint(
            synced_at=previous_deck.synced_at if previous_deck else 0.0,
            sources=sorted(header.sources),
        )
        diff.unmodified.append(header.name)
