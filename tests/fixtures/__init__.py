"""Test fixtures package."""

from .mock_anki_connect import MockAnkiConnect
from .mock_deck_store import MockDeckStore, RemoteNote
from .vault_builder import PAST, write_document

__all__ = [
    "PAST",
    "MockAnkiConnect",
    "MockDeckStore",
    "RemoteNote",
    "write_document",
]
