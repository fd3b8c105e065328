"""Snapshot of the vault tree: folders and markdown documents."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Union


@dataclass(frozen=True)
class VaultDocument:
    """A markdown document, as seen when the tree was scanned."""

    name: str  # file name with extension
    path: Path  # absolute path
    source: str  # vault-relative path without extension, posix separators
    modified: float  # mtime, unix timestamp

    @property
    def stem(self) -> str:
        return Path(self.name).stem


@dataclass(frozen=True)
class VaultFolder:
    """A folder and its (already filtered) children."""

    name: str
    path: Path
    children: tuple[VaultEntry, ...] = field(default_factory=tuple)


VaultEntry = Union[VaultDocument, VaultFolder]
