"""Rich console reporter for interactive runs."""

from rich.console import Console
from rich.markup import escape

from obsidian_deck_sync.domain.interfaces.reporter import ISyncReporter
from obsidian_deck_sync.exceptions import DeckSyncError


class RichConsoleReporter(ISyncReporter):
    """Print sync progress to the terminal."""

    def __init__(self, console: Console):
        self._console = console
        self._position = ""

    def status(self, message: str) -> None:
        self._console.print(
            f"[dim]{escape(self._position)}[/dim] {escape(message)}", highlight=False
        )

    def info(self, message: str) -> None:
        self._console.print(f"[cyan]{escape(message)}[/cyan]", highlight=False)

    def error(self, error: BaseException) -> None:
        message = error.message if isinstance(error, DeckSyncError) else str(error)
        self._console.print(f"  [red]FAIL[/red] {escape(message)}", highlight=False)
        if isinstance(error, DeckSyncError) and error.suggestion:
            self._console.print(f"  [dim]TIP: {escape(error.suggestion)}[/dim]", highlight=False)

    def progress(self, current: int, total: int) -> None:
        self._position = f"[{min(current + 1, total)}/{total}]"
