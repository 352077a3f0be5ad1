"""
Audit log — one NDJSON line per convergence run.

Lives next to the state file in ``<target>/.devsetup/audit.ndjson``.
Lines are only ever appended; a corrupt line is skipped on read.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

AUDIT_FILE = Path(".devsetup") / "audit.ndjson"


class AuditEntry(BaseModel):
    """Summary of one convergence run."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    run_id: str = ""
    target: str = ""

    status: str = ""               # ok, partial, failed
    exit_code: int = 0
    facts_total: int = 0
    facts_satisfied: int = 0
    facts_converged: int = 0
    facts_failed: int = 0
    converged: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    context: dict[str, Any] = Field(default_factory=dict)


class AuditLog:
    """Append-only run history of one target directory."""

    def __init__(self, target: Path | None = None, path: Path | None = None):
        self.path = path or (target or Path.cwd()) / AUDIT_FILE

    def append(self, entry: AuditEntry) -> None:
        """Add ``entry`` as a new line. Write errors are logged, not raised."""
        line = json.dumps(entry.model_dump(mode="json"), ensure_ascii=False)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as e:
            logger.error("Cannot append to audit log %s: %s", self.path, e)
            return
        logger.debug("Audit entry for %s appended", entry.run_id)

    def entries(self) -> list[AuditEntry]:
        """Every readable entry, oldest first."""
        try:
            lines = self.path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.error("Cannot read audit log %s: %s", self.path, e)
            return []

        entries = []
        for number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                entries.append(AuditEntry.model_validate_json(line))
            except ValidationError as e:
                logger.warning("Skipping corrupt audit line %d in %s: %s", number, self.path, e)
        return entries

    def recent(self, n: int = 20) -> list[AuditEntry]:
        """The last ``n`` entries, oldest first."""
        return self.entries()[-n:] if n > 0 else []
