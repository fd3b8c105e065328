"""Structural hashing of the vault tree.

The hash covers names and nesting only. Content edits are detected through
modification times instead; structural changes (add, remove, rename, move)
cannot be attributed to a single document by timestamps, so they invalidate
the incremental shortcut for the whole run.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from ..entities.document import VaultDocument, VaultEntry, VaultFolder


def _sort_key(entry: VaultEntry) -> tuple[int, str]:
    # Folders first, then documents, each by name
    return (0 if isinstance(entry, VaultFolder) else 1, entry.name)


def canonical_tree(entry: VaultEntry) -> Any:
    """Return a JSON-serializable, order-stable representation of a subtree."""
    if isinstance(entry, VaultDocument):
        return entry.name
    return [entry.name, [canonical_tree(child) for child in sorted(entry.children, key=_sort_key)]]


def build_structural_hash(root: VaultFolder) -> str:
    """Hash the shape of the tree under ``root``.

    The root's own name is excluded so moving the vault directory does not
    force a full resync.
    """
    shape = [canonical_tree(child) for child in sorted(root.children, key=_sort_key)]
    payload = json.dumps(shape, ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
