"""
ProvisionState — the record of the last convergence run.

Serialized to .devsetup/state.json inside the target directory. It is
disposable: delete it and the next run regenerates it, since the real
state lives in the machine and the project files.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class FactState(BaseModel):
    """Last known outcome of a single fact."""

    name: str
    kind: str = ""
    outcome: str = ""               # satisfied, converged, failed, blocked
    last_run_at: str | None = None
    error: str | None = None


class RunRecord(BaseModel):
    """Summary of the last convergence run."""

    run_id: str = ""
    started_at: str = ""
    ended_at: str = ""
    status: str = ""                # ok, partial, failed
    facts_total: int = 0
    facts_satisfied: int = 0
    facts_converged: int = 0
    facts_failed: int = 0
    exit_code: int = 0


class ProvisionState(BaseModel):
    """Root state model — serialized to .devsetup/state.json."""

    # ── Schema ───────────────────────────────────────────────────
    schema_version: int = 1

    # ── Identity ─────────────────────────────────────────────────
    target: str = ""

    # ── Timestamps ───────────────────────────────────────────────
    created_at: str = Field(default_factory=_now_iso)
    updated_at: str = Field(default_factory=_now_iso)

    # ── Component state ──────────────────────────────────────────
    facts: dict[str, FactState] = Field(default_factory=dict)

    # ── Last run ─────────────────────────────────────────────────
    last_run: RunRecord = Field(default_factory=RunRecord)

    metadata: dict[str, Any] = Field(default_factory=dict)

    def touch(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = _now_iso()

    def set_fact_state(self, name: str, **kwargs: Any) -> None:
        """Update or create a fact state entry."""
        if name in self.facts:
            for key, value in kwargs.items():
                setattr(self.facts[name], key, value)
        else:
            self.facts[name] = FactState(name=name, **kwargs)
