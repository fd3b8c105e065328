"""Domain service for slug generation."""

import re
import unicodedata
from collections.abc import Iterable

_COMBINING_MARKS = re.compile(r"[\u0300-\u036f]")
_SLASHES = re.compile(r"/+|\\+")
_INVALID_CHARS = re.compile(r"[^a-z0-9 -]")
_WHITESPACE = re.compile(r"\s+")
_DASHES = re.compile(r"-+")


class SlugService:
    """Converts strings to Anki-safe tag slugs, caching results per instance.

    Anki tags cannot contain spaces and are matched case-insensitively, so
    every tag and every source name goes through here before reaching Anki.
    """

    def __init__(self) -> None:
        self._cache: dict[str, str] = {}

    def slugify(self, value: str) -> str:
        """Slugify a single value.

        Args:
            value: Raw string, e.g. a folder name or a vault-relative path

        Returns:
            Lowercase ASCII slug made of ``[a-z0-9-]``
        """
        cached = self._cache.get(value)
        if cached is not None:
            return cached

        slug = unicodedata.normalize("NFKD", value)
        slug = _COMBINING_MARKS.sub("", slug)
        slug = slug.strip().lower()
        slug = _SLASHES.sub("-", slug)
        slug = _INVALID_CHARS.sub("", slug)
        slug = _WHITESPACE.sub("-", slug)
        slug = _DASHES.sub("-", slug)

        self._cache[value] = slug
        return slug

    def slugify_many(self, values: Iterable[str]) -> list[str]:
        """Slugify each value, preserving order."""
        return [self.slugify(value) for value in values]
