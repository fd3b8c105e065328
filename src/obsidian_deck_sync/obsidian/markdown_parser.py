"""Markdown notes-section grammar.

A document holds at most one notes section, starting at a line equal to the
section delimiter (``#cards`` by default) and running to the end of the file.
Inside it, parts separated by the note delimiter (a ``---`` line surrounded
by blank lines by default) alternate front, back, front, back...

    #cards

    <!-- id:1700000000000 -->
    What is the capital of France?

    ---

    Paris

The id comment may sit anywhere in the front; it is added once Anki assigned
an id to the note.
"""

import re

from obsidian_deck_sync.domain.entities.note import Note
from obsidian_deck_sync.domain.interfaces.note_parser import INoteParser, ParseResult
from obsidian_deck_sync.error_codes import ErrorCode
from obsidian_deck_sync.exceptions import ParserError

DEFAULT_NOTES_SECTION_DELIMITER = "#cards\n"
DEFAULT_NOTES_DELIMITER = "\n---\n"

_ID_PATTERN = re.compile(r"^<!--\s*id:(\d+)\s*-->", re.MULTILINE)


class MarkdownNoteParser(INoteParser):
    """Parse and render notes sections using configurable delimiters."""

    def __init__(
        self,
        notes_section_delimiter: str = DEFAULT_NOTES_SECTION_DELIMITER,
        notes_delimiter: str = DEFAULT_NOTES_DELIMITER,
    ) -> None:
        self.notes_section_delimiter = notes_section_delimiter
        self.notes_delimiter = notes_delimiter
        self._section_pattern = re.compile(
            "^" + re.escape(notes_section_delimiter), re.MULTILINE
        )
        self._notes_pattern = re.compile("^" + re.escape(notes_delimiter), re.MULTILINE)

    def parse(self, content: str) -> ParseResult | None:
        match = self._section_pattern.search(content)
        if match is None:
            return None

        return ParseResult(
            start=match.start(),
            end=len(content),
            notes=self._parse_notes(content[match.end() :]),
        )

    def stringify(self, notes: list[Note]) -> str:
        if not notes:
            return ""

        return self.notes_section_delimiter + self.notes_delimiter.join(
            self._stringify_note(note) for note in notes
        )

    def _stringify_note(self, note: Note) -> str:
        id_line = f"<!-- id:{note.id} -->\n" if note.id is not None else ""
        return f"\n{id_line}{note.front}\n{self.notes_delimiter}\n{note.back}\n"

    def _parse_notes(self, section: str) -> list[Note]:
        if not section.strip():
            return []

        parts = self._notes_pattern.split(section)
        if len(parts) % 2 != 0:
            msg = (
                f"Notes section has {len(parts)} parts; "
                "every front needs a matching back"
            )
            raise ParserError(
                msg,
                suggestion="Check for a missing or extra note delimiter",
                error_code=ErrorCode.VLT_PARSE_FAILED.value,
            )

        notes = []
        for i in range(0, len(parts), 2):
            front, note_id = self._parse_front(parts[i])
            notes.append(Note(front=front, back=parts[i + 1].strip(), id=note_id))
        return notes

    @staticmethod
    def _parse_front(content: str) -> tuple[str, int | None]:
        match = _ID_PATTERN.search(content)
        if match is None:
            return content.strip(), None

        front = content[: match.start()] + content[match.end() :]
        return front.strip(), int(match.group(1))
