"""
Action and Receipt — what a converge step asks for and what it got.

A converge step builds an Action and dispatches it through the adapter
registry; the adapter answers with a Receipt. Failures travel inside
the Receipt, so nothing between a fact and the runner needs try/except.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

ReceiptStatus = Literal["ok", "failed"]


class Action(BaseModel):
    """One side effect requested on behalf of a fact."""

    id: str                         # "<run id>:<fact slug>"
    adapter: str                    # registry key of the adapter to use
    name: str = ""
    params: dict[str, Any] = Field(default_factory=dict)
    for_fact: str | None = None


class Receipt(BaseModel):
    """Outcome of one Action.

    ``output`` carries stdout (or a short description), ``error`` the
    reason for a failure, ``metadata`` the command line, exit code and
    anything else worth auditing.
    """

    adapter: str
    action_id: str
    status: ReceiptStatus = "ok"
    at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    duration_ms: int = 0
    output: str = ""
    error: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def command(self) -> str | None:
        """The command line that produced this receipt, if any."""
        return self.metadata.get("command")

    @classmethod
    def success(cls, adapter: str, action_id: str, output: str = "", **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, output=output, **kwargs)

    @classmethod
    def failure(cls, adapter: str, action_id: str, error: str, **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="failed", error=error, **kwargs)
