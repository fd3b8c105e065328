"""Sync orchestration: reconciliation, single-flight runs and persisted state."""

from .reconciler import NoteReconciler
from .reporting import LoggingReporter
from .state_store import FingerprintStore
from .synchronizer import Synchronizer

__all__ = [
    "FingerprintStore",
    "LoggingReporter",
    "NoteReconciler",
    "Synchronizer",
]
