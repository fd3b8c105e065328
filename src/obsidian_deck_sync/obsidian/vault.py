"""File-system access to an Obsidian vault."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from obsidian_deck_sync.domain.entities.document import (
    VaultDocument,
    VaultEntry,
    VaultFolder,
)
from obsidian_deck_sync.error_codes import ErrorCode
from obsidian_deck_sync.exceptions import DocumentChangedError, VaultError
from obsidian_deck_sync.utils.io import read_text, write_text_atomic
from obsidian_deck_sync.utils.logging import get_logger

logger = get_logger(__name__)

MARKDOWN_SUFFIX = ".md"


class ObsidianVault:
    """Markdown documents and folders under a vault root.

    Hidden entries (``.obsidian``, ``.trash``, dotfiles) and configured
    folder names are skipped. Non-markdown files do not take part in the tree.
    """

    def __init__(self, root: Path, ignored_folders: Iterable[str] = ()) -> None:
        self.root = Path(root)
        self.ignored_folders = frozenset(ignored_folders)

    def get_root(self) -> VaultFolder:
        """Scan the vault and return its tree."""
        if not self.root.is_dir():
            msg = f"Vault path is not a directory: {self.root}"
            raise VaultError(
                msg,
                suggestion="Set vault_path in config.yaml to an existing Obsidian vault",
                error_code=ErrorCode.VLT_READ_FAILED.value,
            )
        return VaultFolder(
            name=self.root.name,
            path=self.root,
            children=self._scan_children(self.root),
        )

    def _scan_children(self, folder: Path) -> tuple[VaultEntry, ...]:
        entries: list[VaultEntry] = []
        for child in sorted(folder.iterdir(), key=lambda p: p.name):
            if child.name.startswith("."):
                continue
            if child.is_dir():
                if child.name in self.ignored_folders:
                    continue
                entries.append(
                    VaultFolder(
                        name=child.name,
                        path=child,
                        children=self._scan_children(child),
                    )
                )
            elif child.suffix == MARKDOWN_SUFFIX and child.is_file():
                entries.append(self._document(child))
        return tuple(entries)

    def _document(self, path: Path) -> VaultDocument:
        relative = path.relative_to(self.root).with_suffix("")
        return VaultDocument(
            name=path.name,
            path=path,
            source=relative.as_posix(),
            modified=path.stat().st_mtime,
        )

    def read(self, document: VaultDocument) -> str:
        try:
            return read_text(document.path)
        except (OSError, UnicodeDecodeError) as e:
            msg = f"Cannot read {document.source}: {e}"
            raise VaultError(
                msg,
                error_code=ErrorCode.VLT_READ_FAILED.value,
                context={"source": document.source},
            ) from e

    def replace_span(
        self,
        document: VaultDocument,
        start: int,
        end: int,
        text: str,
        expected: str,
    ) -> None:
        """Replace ``content[start:end]`` with ``text``.

        Args:
            document: Document to rewrite
            start: Span start in the document text
            end: Span end in the document text
            text: Replacement text
            expected: Document content the span was computed from

        Raises:
            DocumentChangedError: If the document no longer holds ``expected``
        """
        current = self.read(document)
        if current != expected:
            msg = f"{document.source} changed while its deck was syncing"
            raise DocumentChangedError(
                msg,
                suggestion="Run the sync again to pick up the new content",
                error_code=ErrorCode.VLT_DOCUMENT_CHANGED.value,
                context={"source": document.source},
            )

        write_text_atomic(document.path, current[:start] + text + current[end:])
        logger.debug(
            "document_written",
            source=document.source,
            span_start=start,
            span_end=end,
        )
