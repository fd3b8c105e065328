"""Pytest configuration and fixtures for the test suite."""

from pathlib import Path

import pytest

from obsidian_deck_sync.obsidian.deck_extractor import VaultDeckExtractor
from obsidian_deck_sync.obsidian.markdown_parser import MarkdownNoteParser
from obsidian_deck_sync.obsidian.vault import ObsidianVault
from obsidian_deck_sync.sync.synchronizer import Synchronizer
from tests.fixtures import MockDeckStore


@pytest.fixture
def vault_dir(tmp_path: Path) -> Path:
    """Provide an empty vault directory."""
    path = tmp_path / "vault"
    path.mkdir()
    return path


@pytest.fixture
def note_parser() -> MarkdownNoteParser:
    """Provide a parser with the default grammar."""
    return MarkdownNoteParser()


@pytest.fixture
def extractor(vault_dir: Path, note_parser: MarkdownNoteParser) -> VaultDeckExtractor:
    """Provide a deck extractor over the test vault."""
    return VaultDeckExtractor(ObsidianVault(vault_dir), note_parser)


@pytest.fixture
def mock_deck_store() -> MockDeckStore:
    """Provide an in-memory deck store."""
    return MockDeckStore()


@pytest.fixture
def synchronizer(
    extractor: VaultDeckExtractor, mock_deck_store: MockDeckStore
) -> Synchronizer:
    """Provide a synchronizer that reports through the log."""
    return Synchronizer(extractor, mock_deck_store)
