"""Interface for notes-section parsing."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ..entities.note import Note


@dataclass(frozen=True)
class ParseResult:
    """Notes found in a document and the span of text they came from.

    Splicing ``stringify(notes)`` into ``text[start:end]`` must leave every
    character outside the span untouched.
    """

    start: int
    end: int
    notes: list[Note] = field(default_factory=list)


class INoteParser(ABC):
    """Turns raw document text into notes and back."""

    @abstractmethod
    def parse(self, content: str) -> ParseResult | None:
        """Parse the notes section of a document.

        Args:
            content: Raw document text

        Returns:
            ParseResult, or None when the document has no notes section

        Raises:
            ParserError: If the notes section is malformed
        """

    @abstractmethod
    def stringify(self, notes: list[Note]) -> str:
        """Render notes as the text to splice back at ``ParseResult.start``."""
