"""Domain services."""

from .fingerprint_builder import build_structural_hash, canonical_tree
from .slug_service import SlugService

__all__ = ["SlugService", "build_structural_hash", "canonical_tree"]
