"""Domain entities for notes and the decks that group them."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(eq=False)
class Note:
    """A flashcard extracted from a vault document.

    ``id`` is the Anki note id once the note has been created remotely. The
    reconciler assigns it in place, and the deck handle that produced the
    note writes it back into the source document on commit.
    """

    front: str
    back: str
    id: int | None = None
    tags: list[str] = field(default_factory=list)
    source: str | None = None

    def __post_init__(self) -> None:
        # Tags behave as a set but keep their first-seen order
        self.tags = list(dict.fromkeys(self.tags))

    def same_content(self, other: Note) -> bool:
        """Compare the fields a user can author (ignoring the source)."""
        return (
            self.id == other.id
            and self.front == other.front
            and self.back == other.back
            and set(self.tags) == set(other.tags)
        )


@dataclass
class Deck:
    """A named set of notes materialized for one sync run.

    ``unchanged`` lists the sources that were not re-parsed; their notes are
    in Anki already and must not be considered for orphaning.
    """

    name: str
    notes: list[Note] = field(default_factory=list)
    unchanged: frozenset[str] = frozenset()
