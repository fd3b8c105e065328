"""Stateful AnkiConnect emulation for respx-mocked HTTP tests."""

import json
import re
from typing import Any

import httpx

_DECK_TERM = re.compile(r'deck:"((?:[^"\\]|\\.)*)"')
_EXCLUDED_TAG_TERM = re.compile(r"-tag:(\S+)")


class MockAnkiConnect:
    """Answer AnkiConnect requests from in-memory decks and notes.

    Use as a respx side effect::

        anki = MockAnkiConnect()
        respx.post(ANKI_URL).mock(side_effect=anki.handle)

    Every request payload is kept in ``requests``. Each note has one card
    whose id is ``note_id * 10``.
    """

    def __init__(self, permission: str = "granted", version: int = 6):
        self.permission = permission
        self.version = version
        self.require_api_key = False
        self.decks: dict[str, int] = {"Default": 1}
        self.notes: dict[int, dict[str, Any]] = {}
        self.models: dict[str, list[str]] = {"Basic": ["Front", "Back"]}
        self.requests: list[dict[str, Any]] = []
        self.errors: dict[str, str] = {}
        self._next_id = 1_700_000_000_000

    @property
    def actions(self) -> list[str]:
        return [request["action"] for request in self.requests]

    def handle(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.requests.append(payload)
        action = payload["action"]

        if action in self.errors:
            return httpx.Response(200, json={"result": None, "error": self.errors[action]})

        handler = getattr(self, f"_{action}", None)
        if handler is None:
            return httpx.Response(
                200, json={"result": None, "error": "unsupported action"}
            )
        return httpx.Response(
            200, json={"result": handler(payload.get("params") or {}), "error": None}
        )

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def _requestPermission(self, params: dict[str, Any]) -> dict[str, Any]:
        if self.permission != "granted":
            return {"permission": self.permission}
        return {
            "permission": "granted",
            "requireApikey": self.require_api_key,
            "version": self.version,
        }

    def _version(self, params: dict[str, Any]) -> int:
        return self.version

    def _modelNames(self, params: dict[str, Any]) -> list[str]:
        return list(self.models)

    def _modelFieldNames(self, params: dict[str, Any]) -> list[str]:
        return self.models.get(params["modelName"], [])

    def _deckNamesAndIds(self, params: dict[str, Any]) -> dict[str, int]:
        return dict(self.decks)

    def _createDeck(self, params: dict[str, Any]) -> int:
        name = params["deck"]
        if name not in self.decks:
            self.decks[name] = self._new_id()
        return self.decks[name]

    def _deleteDecks(self, params: dict[str, Any]) -> None:
        for name in params["decks"]:
            self.decks.pop(name, None)
            if params.get("cardsToo"):
                for note_id in [n for n, note in self.notes.items() if note["deck"] == name]:
                    del self.notes[note_id]

    def _findNotes(self, params: dict[str, Any]) -> list[int]:
        query = params["query"]
        deck_match = _DECK_TERM.search(query)
        excluded = set(_EXCLUDED_TAG_TERM.findall(query))
        deck = re.sub(r"\\(.)", r"\1", deck_match.group(1)) if deck_match else None
        return sorted(
            note_id
            for note_id, note in self.notes.items()
            if (deck is None or note["deck"] == deck)
            and not excluded & set(note["tags"])
        )

    def _notesInfo(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        result = []
        for note_id in params["notes"]:
            note = self.notes.get(note_id)
            if note is None:
                result.append({})
                continue
            result.append(
                {
                    "noteId": note_id,
                    "fields": {k: {"value": v} for k, v in note["fields"].items()},
                    "tags": note["tags"],
                    "cards": [note_id * 10],
                }
            )
        return result

    def _addNote(self, params: dict[str, Any]) -> int:
        data = params["note"]
        self._createDeck({"deck": data["deckName"]})
        note_id = self._new_id()
        self.notes[note_id] = {
            "deck": data["deckName"],
            "model": data["modelName"],
            "fields": dict(data["fields"]),
            "tags": list(data.get("tags", [])),
        }
        return note_id

    def _updateNote(self, params: dict[str, Any]) -> None:
        data = params["note"]
        note = self.notes[data["id"]]
        note["fields"].update(data.get("fields", {}))
        if "tags" in data:
            note["tags"] = list(data["tags"])

    def _findCards(self, params: dict[str, Any]) -> list[int]:
        match = re.fullmatch(r"nid:([\d,]+)", params["query"])
        if match is None:
            return []
        ids = [int(value) for value in match.group(1).split(",")]
        return [note_id * 10 for note_id in ids if note_id in self.notes]

    def _changeDeck(self, params: dict[str, Any]) -> None:
        self._createDeck({"deck": params["deck"]})
        for card_id in params["cards"]:
            self.notes[card_id // 10]["deck"] = params["deck"]

    def _deleteNotes(self, params: dict[str, Any]) -> None:
        for note_id in params["notes"]:
            self.notes.pop(note_id, None)
