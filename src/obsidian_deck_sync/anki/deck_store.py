"""Anki implementation of the remote deck store."""

from typing import Any, cast

from obsidian_deck_sync.anki.cache import AnkiCache
from obsidian_deck_sync.anki.http_client import AnkiHttpClient
from obsidian_deck_sync.domain.entities.note import Note
from obsidian_deck_sync.domain.interfaces.deck_store import IDeckStore
from obsidian_deck_sync.domain.interfaces.formatter import IFormatter
from obsidian_deck_sync.domain.services.slug_service import SlugService
from obsidian_deck_sync.error_codes import ErrorCode
from obsidian_deck_sync.exceptions import AnkiConnectError
from obsidian_deck_sync.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_QUARANTINE_DECK = "obsidian-orphans"
_DECKS_CACHE_KEY = "deck_names_and_ids"


# Anki search treats `_` and `*` as wildcards, even inside quotes
_SEARCH_ESCAPES = str.maketrans({"\\": "\\\\", '"': '\\"', "_": "\\_", "*": "\\*"})


def _deck_term(deck_name: str) -> str:
    return 'deck:"' + deck_name.translate(_SEARCH_ESCAPES) + '"'


class AnkiDeckStore(IDeckStore):
    """Deck and note operations over AnkiConnect.

    Notes are tagged with their source document (``obsidian:<slug>``) so that a
    deck's notes can be queried without the documents that were not re-parsed.
    """

    def __init__(
        self,
        client: AnkiHttpClient,
        slugs: SlugService | None = None,
        formatter: IFormatter | None = None,
        cache: AnkiCache | None = None,
        quarantine_deck: str = DEFAULT_QUARANTINE_DECK,
        model_name: str = "Basic",
        front_field: str = "Front",
        back_field: str = "Back",
        source_tag_prefix: str = "obsidian",
    ):
        self._client = client
        self._slugs = slugs or SlugService()
        self._formatter = formatter
        self._cache = cache or AnkiCache()
        self.quarantine_deck = quarantine_deck
        self.model_name = model_name
        self.front_field = front_field
        self.back_field = back_field
        self.source_tag_prefix = source_tag_prefix

    async def connect(self) -> None:
        await self._client.request_permission()
        self._cache.invalidate_all()
        decks = await self._deck_names_and_ids()
        logger.debug("anki_decks_listed", count=len(decks))

    async def _deck_names_and_ids(self) -> dict[str, int]:
        cached = self._cache.get(_DECKS_CACHE_KEY)
        if cached is not None:
            return cast("dict[str, int]", cached)

        result = cast("dict[str, int]", await self._client.invoke("deckNamesAndIds"))
        self._cache.set(_DECKS_CACHE_KEY, dict(result))
        return cast("dict[str, int]", self._cache.get(_DECKS_CACHE_KEY))

    async def deck_exists(self, deck_name: str) -> bool:
        return deck_name in await self._deck_names_and_ids()

    async def create_deck(self, deck_name: str) -> None:
        deck_id = await self._client.invoke("createDeck", {"deck": deck_name})
        decks = await self._deck_names_and_ids()
        decks[deck_name] = deck_id
        logger.info("anki_deck_created", deck=deck_name, deck_id=deck_id)

    async def delete_decks(self, deck_names: list[str]) -> None:
        """Delete decks together with their cards."""
        if not deck_names:
            return

        await self._client.invoke("deleteDecks", {"decks": deck_names, "cardsToo": True})
        decks = await self._deck_names_and_ids()
        for name in deck_names:
            decks.pop(name, None)
        logger.info("anki_decks_deleted", decks=deck_names)

    def source_tag(self, source: str) -> str:
        return f"{self.source_tag_prefix}:{self._slugs.slugify(source)}"

    def note_tags(self, note: Note) -> list[str]:
        tags = self._slugs.slugify_many(note.tags)
        if note.source:
            tags.append(self.source_tag(note.source))
        return list(dict.fromkeys(tag for tag in tags if tag))

    def _fields(self, note: Note) -> dict[str, str]:
        return {
            self.front_field: self._format(note.front),
            self.back_field: self._format(note.back),
        }

    def _format(self, content: str) -> str:
        if self._formatter is None:
            return content
        return self._formatter.format(content)

    async def find_notes(self, query: str) -> list[int]:
        return cast("list[int]", await self._client.invoke("findNotes", {"query": query}))

    async def find_deck_note_ids(
        self, deck_name: str, excluded_sources: frozenset[str] = frozenset()
    ) -> set[int]:
        terms = [_deck_term(deck_name)]
        terms.extend(
            f"-tag:{self.source_tag(source)}" for source in sorted(excluded_sources)
        )
        return set(await self.find_notes(" ".join(terms)))

    async def note_exists(self, note_id: int) -> bool:
        result = await self._client.invoke("notesInfo", {"notes": [note_id]})
        # Unknown ids come back as empty objects
        return bool(result) and bool(result[0])

    async def add_note(self, note: Note, deck_name: str) -> int:
        params: dict[str, Any] = {
            "note": {
                "deckName": deck_name,
                "modelName": self.model_name,
                "fields": self._fields(note),
                "options": {"allowDuplicate": True},
                "tags": self.note_tags(note),
            }
        }
        note_id = await self._client.invoke("addNote", params)
        if not isinstance(note_id, int):
            raise AnkiConnectError(
                f"addNote returned no note id for deck {deck_name}",
                error_code=ErrorCode.ANK_INVALID_RESPONSE.value,
                context={"action": "addNote", "params": params},
            )

        logger.debug("anki_note_added", deck=deck_name, note_id=note_id, source=note.source)
        return note_id

    async def update_note(self, note: Note, deck_name: str) -> None:
        if note.id is None:
            msg = "Cannot update a note without an id"
            raise ValueError(msg)

        await self._client.invoke(
            "updateNote",
            {
                "note": {
                    "id": note.id,
                    "deckName": deck_name,
                    "modelName": self.model_name,
                    "fields": self._fields(note),
                    "tags": self.note_tags(note),
                }
            },
        )
        logger.debug("anki_note_updated", deck=deck_name, note_id=note.id)

    async def move_notes(self, note_ids: list[int], deck_name: str) -> None:
        if not note_ids:
            return

        query = "nid:" + ",".join(str(note_id) for note_id in note_ids)
        card_ids = await self._client.invoke("findCards", {"query": query})
        if not card_ids:
            return

        if not await self.deck_exists(deck_name):
            await self.create_deck(deck_name)
        await self._client.invoke("changeDeck", {"cards": card_ids, "deck": deck_name})
        logger.debug(
            "anki_notes_moved", deck=deck_name, notes=len(note_ids), cards=len(card_ids)
        )

    async def delete_notes(self, note_ids: list[int]) -> None:
        if not note_ids:
            return
        await self._client.invoke("deleteNotes", {"notes": note_ids})

    async def quarantine_note_ids(self) -> set[int]:
        if not await self.deck_exists(self.quarantine_deck):
            return set()
        return await self.find_deck_note_ids(self.quarantine_deck)

    async def reset_quarantine(self, previous_orphans: set[int]) -> int:
        current = await self.quarantine_note_ids()
        stale = sorted(current & previous_orphans)
        await self.delete_notes(stale)

        if not current - set(stale) and await self.deck_exists(self.quarantine_deck):
            await self.delete_decks([self.quarantine_deck])

        if stale:
            logger.info(
                "quarantine_reset",
                quarantine_deck=self.quarantine_deck,
                deleted=len(stale),
                kept=len(current) - len(stale),
            )
        return len(stale)

    async def close(self) -> None:
        await self._client.aclose()
