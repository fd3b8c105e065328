"""Models for preflight checks."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Severity = Literal["error", "warning", "info"]


class CheckResult(BaseModel):
    """Outcome of one environment check run before syncing.

    Only failed checks with ``error`` severity make ``check`` exit non-zero.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    passed: bool
    message: str = Field(min_length=1)
    severity: Severity = "error"
    fix_suggestion: str | None = Field(
        default=None, description="Shown under a failed check"
    )


__all__ = ["CheckResult", "Severity"]
