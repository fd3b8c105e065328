"""Domain entities."""

from .document import VaultDocument, VaultEntry, VaultFolder
from .fingerprint import DeckFingerprint, Fingerprint, SyncResult
from .note import Deck, Note

__all__ = [
    "Deck",
    "DeckFingerprint",
    "Fingerprint",
    "Note",
    "SyncResult",
    "VaultDocument",
    "VaultEntry",
    "VaultFolder",
]
