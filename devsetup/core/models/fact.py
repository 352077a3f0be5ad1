"""
EnvironmentFact — a declarative unit of desired state.

A fact pairs a side-effect-free ``check`` with a ``converge`` action.
Facts are built once per run from the provisioning config, evaluated
in order by the convergence runner, then discarded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from devsetup.core.models.action import Receipt


class FactKind(str, Enum):
    """Category of desired state a fact describes."""

    TOOL = "tool-presence"
    PACKAGE = "package-presence"
    LAYOUT = "filesystem-layout"
    FILE = "file-content"
    MANIFEST = "manifest-field"
    COMMAND = "command"


class InstallPolicy(str, Enum):
    """Whether a converge action may be skipped when the check holds."""

    SKIP_IF_PRESENT = "skip-if-present"
    ALWAYS_REFRESH = "always-refresh"


class FactOutcome(str, Enum):
    """Per-fact result of a convergence run."""

    SATISFIED = "satisfied"     # check held, nothing done
    CONVERGED = "converged"     # converge ran and check now holds
    FAILED = "failed"           # converge ran, check still false
    BLOCKED = "blocked"         # a dependency failed, not attempted
    PENDING = "pending"         # dry-run: would converge


@dataclass
class EnvironmentFact:
    """A single piece of desired machine or project state.

    ``check`` must never mutate anything. ``converge`` returns a
    Receipt; it should not raise, but the runner tolerates it.
    """

    name: str
    kind: FactKind
    check: Callable[[], bool]
    converge: Callable[[], Receipt]
    policy: InstallPolicy = InstallPolicy.SKIP_IF_PRESENT
    required: bool = True
    depends_on: list[str] = field(default_factory=list)
    description: str = ""

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "policy": self.policy.value,
            "required": self.required,
            "depends_on": list(self.depends_on),
            "description": self.description,
        }
