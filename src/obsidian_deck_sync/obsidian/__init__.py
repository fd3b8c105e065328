"""Vault side: file-system tree, notes-section parser and deck extraction."""

from .deck_extractor import VaultDeckExtractor, VaultDeckHeader
from .markdown_parser import MarkdownNoteParser
from .vault import ObsidianVault

__all__ = [
    "MarkdownNoteParser",
    "ObsidianVault",
    "VaultDeckExtractor",
    "VaultDeckHeader",
]
