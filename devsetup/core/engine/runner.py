"""
Convergence runner — the central loop.

Takes an ordered list of EnvironmentFacts and, for each one, checks
the current state, converges only when the fact does not hold, then
re-checks. One fact failing never stops the run.

Flow per fact:
    dependencies ok? → check → (holds: satisfied) → converge → re-check
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

from devsetup.core.models.action import Receipt
from devsetup.core.models.fact import (
    EnvironmentFact,
    FactKind,
    FactOutcome,
    InstallPolicy,
)

logger = logging.getLogger(__name__)

_MARKERS = {
    FactOutcome.SATISFIED: "✓",
    FactOutcome.CONVERGED: "↻",
    FactOutcome.FAILED: "✗",
    FactOutcome.BLOCKED: "⊘",
    FactOutcome.PENDING: "…",
}


@dataclass
class FactResult:
    """Outcome of one fact in one run."""

    name: str
    kind: FactKind
    outcome: FactOutcome
    required: bool = True
    receipt: Receipt | None = None
    error: str | None = None
    duration_ms: int = 0

    @property
    def failed(self) -> bool:
        return self.outcome in (FactOutcome.FAILED, FactOutcome.BLOCKED)

    @property
    def fatal(self) -> bool:
        """A required fact that did not end up holding."""
        return self.failed and self.required

    @property
    def classification(self) -> str:
        """skip / converged / failed-recoverable / failed-fatal / pending."""
        if self.outcome == FactOutcome.SATISFIED:
            return "skip"
        if self.outcome == FactOutcome.CONVERGED:
            return "converged"
        if self.outcome == FactOutcome.PENDING:
            return "pending"
        return "failed-fatal" if self.required else "failed-recoverable"

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "outcome": self.outcome.value,
            "classification": self.classification,
            "required": self.required,
            "error": self.error,
            "duration_ms": self.duration_ms,
            "receipt": self.receipt.model_dump(mode="json") if self.receipt else None,
        }


@dataclass
class ConvergenceReport:
    """Aggregated result of a convergence run.

    The process exit status is a pure function of this object.
    """

    run_id: str = ""
    dry_run: bool = False
    started_at: str = ""
    ended_at: str = ""
    results: list[FactResult] = field(default_factory=list)

    def _count(self, outcome: FactOutcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def satisfied(self) -> int:
        return self._count(FactOutcome.SATISFIED)

    @property
    def converged(self) -> int:
        return self._count(FactOutcome.CONVERGED)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.failed)

    @property
    def pending(self) -> int:
        return self._count(FactOutcome.PENDING)

    @property
    def fatal(self) -> bool:
        return any(r.fatal for r in self.results)

    @property
    def all_ok(self) -> bool:
        return self.failed == 0

    @property
    def status(self) -> str:
        if self.failed == 0:
            return "ok"
        if self.satisfied + self.converged > 0:
            return "partial"
        return "failed"

    def get(self, name: str) -> FactResult | None:
        """Look up a fact result by name."""
        for result in self.results:
            if result.name == name:
                return result
        return None

    def exit_code(self, lenient: bool = False) -> int:
        """Process exit status: 1 when any required fact failed.

        ``lenient`` keeps the historical always-zero behaviour.
        """
        if lenient:
            return 0
        return 1 if self.fatal else 0

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "dry_run": self.dry_run,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "status": self.status,
            "fatal": self.fatal,
            "total": self.total,
            "satisfied": self.satisfied,
            "converged": self.converged,
            "failed": self.failed,
            "pending": self.pending,
            "results": [r.to_dict() for r in self.results],
        }


class ConvergenceRunner:
    """Evaluate facts in order and converge the ones that do not hold.

    Args:
        dry_run: Check only; facts that would converge are reported
            as ``pending`` and converge is never called.
    """

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run

    def run(self, facts: list[EnvironmentFact], run_id: str | None = None) -> ConvergenceReport:
        """Process every fact and return the aggregated report."""
        report = ConvergenceReport(
            run_id=run_id or generate_run_id(),
            dry_run=self.dry_run,
            started_at=_now_iso(),
        )

        seen: dict[str, FactResult] = {}
        for fact in facts:
            result = self._process(fact, seen)
            seen[fact.name] = result
            report.results.append(result)

            logger.info(
                "%s %s → %s",
                _MARKERS.get(result.outcome, "?"),
                fact.name,
                result.outcome.value,
            )
            if result.failed and result.error:
                logger.warning("%s: %s", fact.name, result.error)

        report.ended_at = _now_iso()
        return report

    def _process(self, fact: EnvironmentFact, seen: dict[str, FactResult]) -> FactResult:
        start = time.monotonic()

        def finish(outcome: FactOutcome, **kwargs) -> FactResult:
            return FactResult(
                name=fact.name,
                kind=fact.kind,
                outcome=outcome,
                required=fact.required,
                duration_ms=int((time.monotonic() - start) * 1000),
                **kwargs,
            )

        # ── Dependencies ─────────────────────────────────────────
        broken = [
            dep for dep in fact.depends_on
            if dep in seen and seen[dep].failed
        ]
        if broken:
            return finish(
                FactOutcome.BLOCKED,
                error=f"Blocked by failed fact(s): {', '.join(broken)}",
            )

        # ── Check ────────────────────────────────────────────────
        holds = self._check(fact)
        if holds and fact.policy == InstallPolicy.SKIP_IF_PRESENT:
            return finish(FactOutcome.SATISFIED)

        if self.dry_run:
            return finish(FactOutcome.PENDING)

        # ── Converge ─────────────────────────────────────────────
        try:
            receipt = fact.converge()
        except Exception as e:
            logger.error("Converge for %s raised: %s", fact.name, e)
            receipt = Receipt.failure(
                adapter="runner",
                action_id=fact.name,
                error=f"Unexpected error: {e}",
            )

        # ── Re-check ─────────────────────────────────────────────
        if receipt.failed:
            return finish(FactOutcome.FAILED, receipt=receipt, error=receipt.error)

        if self._check(fact):
            return finish(FactOutcome.CONVERGED, receipt=receipt)

        return finish(
            FactOutcome.FAILED,
            receipt=receipt,
            error="Converge reported success but the fact still does not hold",
        )

    def _check(self, fact: EnvironmentFact) -> bool:
        try:
            return bool(fact.check())
        except Exception as e:
            logger.warning("Check for %s raised, treating as not holding: %s", fact.name, e)
            return False


def generate_run_id() -> str:
    """Generate a unique run ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"run-{now}-{short}"


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()
