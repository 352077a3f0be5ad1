"""
npm adapter — project dependencies and the package.json manifest.

All operations run in the target directory (the context's working dir).
"""

from __future__ import annotations

import logging

from devsetup.adapters.base import ExecutionContext
from devsetup.adapters.packages.base import PackageAdapter
from devsetup.core.models.action import Receipt

logger = logging.getLogger(__name__)


class NpmAdapter(PackageAdapter):
    """Node package manager adapter.

    Action params:
        operation (str): 'install' or 'init'.
        package (str): Package name (for 'install').
        dev (bool): Install as a dev dependency (``--save-dev``).
    """

    operations = frozenset({"install", "init"})

    @property
    def name(self) -> str:
        return "npm"

    def is_available(self) -> bool:
        return self._runner.which("npm") is not None

    def is_present(self, package: str, cwd: str | None = None) -> bool:
        if not self.is_available():
            return False
        result = self._runner.run(
            ["npm", "list", package],
            cwd=cwd,
            timeout=self._probe_timeout,
        )
        return result.ok

    def _install(self, ctx: ExecutionContext, package: str) -> Receipt:
        cmd = ["npm", "install"]
        if ctx.action.params.get("dev"):
            cmd.append("--save-dev")
        cmd.append(package)

        logger.info("Installing %s%s", package, " (dev)" if ctx.action.params.get("dev") else "")
        result = self._runner.run(cmd, cwd=ctx.working_dir, timeout=self._timeout(ctx))
        return self._receipt(ctx, result, " ".join(cmd), package=package)

    def _extra_operation(self, ctx: ExecutionContext, operation: str) -> Receipt:
        if operation == "init":
            cmd = ["npm", "init", "-y"]
            logger.info("Initializing package manifest in %s", ctx.working_dir)
            result = self._runner.run(cmd, cwd=ctx.working_dir, timeout=self._timeout(ctx))
            return self._receipt(ctx, result, " ".join(cmd))
        return super()._extra_operation(ctx, operation)
