"""Interface for rendering note fields before they are sent to Anki."""

from abc import ABC, abstractmethod


class IFormatter(ABC):
    """Converts authored note text into the remote field format."""

    @abstractmethod
    def format(self, content: str) -> str:
        """Render one field."""
