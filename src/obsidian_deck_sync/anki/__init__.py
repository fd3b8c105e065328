"""AnkiConnect client and the Anki deck store."""

from .cache import AnkiCache
from .deck_store import AnkiDeckStore
from .formatter import MarkdownHtmlFormatter, PlainFormatter
from .http_client import AnkiHttpClient

__all__ = [
    "AnkiCache",
    "AnkiDeckStore",
    "AnkiHttpClient",
    "MarkdownHtmlFormatter",
    "PlainFormatter",
]
