"""
Package adapter base — the capability interface for package managers.

Every package-managing adapter (apt, npm, the nvm-backed Node runtime)
answers two questions:

    is_present(name) -> bool       read-only probe, never installs
    install(name)    -> Receipt    converge step, never raises

Facts are written against this interface only, so tests swap in
``FakePackageAdapter`` without touching a real package database.
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from typing import Any

from devsetup.adapters.base import Adapter, ExecutionContext
from devsetup.adapters.shell.process import ProcessResult, ProcessRunner, tail
from devsetup.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class PackageAdapter(Adapter):
    """Adapter with an ``is_present`` / ``install`` capability.

    Action params:
        operation (str): 'install' (default) or an adapter-specific extra.
        package (str): Package name.
        timeout (int): Timeout in seconds.
    """

    operations: frozenset[str] = frozenset({"install"})

    def __init__(self, runner: ProcessRunner | None = None, probe_timeout: int = 30):
        self._runner = runner or ProcessRunner()
        self._probe_timeout = probe_timeout

    @property
    def runner(self) -> ProcessRunner:
        return self._runner

    @abstractmethod
    def is_present(self, package: str, cwd: str | None = None) -> bool:
        """Whether ``package`` is already installed. Must not mutate."""

    @abstractmethod
    def _install(self, ctx: ExecutionContext, package: str) -> Receipt:
        """Install ``package``. Implementations return a Receipt."""

    def install(self, package: str, cwd: str = ".", **params: Any) -> Receipt:
        """Install a package outside the registry (direct capability call)."""
        action = Action(
            id=f"{self.name}:install:{package}",
            adapter=self.name,
            params={"operation": "install", "package": package, **params},
        )
        return self.execute(ExecutionContext(action=action, target_root=cwd))

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.action.params.get("operation", "install")
        if operation not in self.operations:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(self.operations))}"
        if operation == "install" and not context.action.params.get("package"):
            return False, "Missing required param: 'package'"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.action.params.get("operation", "install")
        try:
            if operation == "install":
                return self._install(context, context.action.params["package"])
            return self._extra_operation(context, operation)
        except Exception as e:
            logger.error("%s %s raised: %s", self.name, operation, e)
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"{self.name} error: {e}",
            )

    def _extra_operation(self, ctx: ExecutionContext, operation: str) -> Receipt:
        return Receipt.failure(
            adapter=self.name,
            action_id=ctx.action.id,
            error=f"Unknown operation: {operation}",
        )

    # ── Helpers ─────────────────────────────────────────────────

    def _receipt(
        self,
        ctx: ExecutionContext,
        result: ProcessResult,
        command: str,
        **metadata: Any,
    ) -> Receipt:
        """Turn a ProcessResult into a Receipt."""
        if result.ok:
            return Receipt.success(
                adapter=self.name,
                action_id=ctx.action.id,
                output=tail(result.stdout),
                duration_ms=result.elapsed_ms,
                metadata={"command": command, "return_code": 0, **metadata},
            )
        return Receipt.failure(
            adapter=self.name,
            action_id=ctx.action.id,
            error=tail(result.message),
            duration_ms=result.elapsed_ms,
            metadata={
                "command": command,
                "return_code": result.returncode,
                "timed_out": result.timed_out,
                **metadata,
            },
        )

    def _timeout(self, ctx: ExecutionContext, default: int | None = None) -> int | None:
        return ctx.action.params.get("timeout", default)
