"""
Adapter base — the contract between converge steps and external tools.

Facts never call apt, nvm, npm or the filesystem themselves. They build
an Action, the registry hands it to an Adapter, and the Adapter reports
back with a Receipt.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from devsetup.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """What an adapter sees when it runs: the action and where to run it."""

    action: Action
    target_root: str = "."
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def working_dir(self) -> str:
        """Directory commands run in (``cwd`` param, else the target)."""
        return self.params.get("cwd") or self.target_root


class Adapter(ABC):
    """One external tool behind a receipt-returning interface.

    ``execute`` must not raise: a non-zero exit, a timeout or a missing
    binary all come back as ``Receipt.failure``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry key ('apt', 'npm', 'node', 'shell', 'filesystem')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the underlying tool can be used. Cheap, never raises."""

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Reject malformed actions before anything runs.

        Returns:
            (is_valid, error_message). error_message is empty if valid.
        """

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Perform the action and describe the result."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
