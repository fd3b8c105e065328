"""Persisted summary of the last run, enabling incremental scans."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class DeckFingerprint(BaseModel):
    """Per-deck bookkeeping: when the deck was last synced and from which sources."""

    synced_at: float = Field(default=0.0, ge=0.0, description="Unix timestamp")
    sources: list[str] = Field(default_factory=list, description="Source names")


class Fingerprint(BaseModel):
    """State of the vault as of the last run.

    A ``structural_hash`` that differs from the current one invalidates every
    timestamp shortcut: renames and moves cannot be detected by mtime alone.
    """

    structural_hash: str = Field(description="Hash of the vault tree shape")
    last_synced_at: float | None = Field(
        default=None, description="End of the run that produced this fingerprint"
    )
    decks: dict[str, DeckFingerprint] = Field(default_factory=dict)


class SyncResult(BaseModel):
    """Outcome of one synchronizer run."""

    model_config = ConfigDict(frozen=True)

    duration: float = Field(ge=0.0, description="Run duration in seconds")
    decks_count: int = Field(ge=0, description="Decks synced successfully")
    notes_count: int = Field(default=0, ge=0, description="Notes pushed to Anki")
    failed_decks: tuple[str, ...] = Field(default=())
    fingerprint: Fingerprint
