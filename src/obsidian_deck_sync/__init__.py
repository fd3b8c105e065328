"""Incremental Obsidian vault to Anki deck synchronization."""

__version__ = "0.3.0"
