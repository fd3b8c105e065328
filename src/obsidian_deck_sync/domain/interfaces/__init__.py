"""Domain interfaces (ports) implemented by the vault, Anki and CLI layers."""

from .deck_source import DeckHeader, DecksDiff, IDeckSource
from .deck_store import IDeckStore
from .formatter import IFormatter
from .note_parser import INoteParser, ParseResult
from .reporter import ISyncReporter

__all__ = [
    "DeckHeader",
    "DecksDiff",
    "IDeckSource",
    "IDeckStore",
    "IFormatter",
    "INoteParser",
    "ISyncReporter",
    "ParseResult",
]
