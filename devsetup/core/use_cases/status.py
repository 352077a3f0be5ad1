"""
Status use case — what did the last convergence run do?

Reads the persisted state and the audit ledger of a target directory.
Never touches the machine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from devsetup.core.models.state import ProvisionState
from devsetup.core.persistence.audit import AuditEntry, AuditLog
from devsetup.core.persistence.state_file import default_state_path, load_state


@dataclass
class StatusResult:
    """Last-run summary for a target directory."""

    target: Path | None = None
    state: ProvisionState | None = None
    history: list[AuditEntry] = field(default_factory=list)

    @property
    def has_run(self) -> bool:
        return bool(self.state and self.state.last_run.run_id)

    def to_dict(self) -> dict:
        result: dict = {"target": str(self.target), "has_run": self.has_run}
        if self.state and self.has_run:
            result["last_run"] = self.state.last_run.model_dump(mode="json")
            result["facts"] = {
                name: fs.model_dump(mode="json") for name, fs in self.state.facts.items()
            }
        result["history"] = [
            {"run_id": e.run_id, "timestamp": e.timestamp, "status": e.status}
            for e in self.history
        ]
        return result


def get_status(target: Path | None = None, history: int = 5) -> StatusResult:
    """Load the persisted state of ``target`` (default: cwd)."""
    target = (target or Path.cwd()).resolve()
    state_path = default_state_path(target)
    state = load_state(state_path) if state_path.is_file() else None
    return StatusResult(
        target=target,
        state=state,
        history=AuditLog(target=target).recent(history),
    )
