"""
Apt adapter — system packages on Debian/Ubuntu.

Presence means "resolvable": the executable is on PATH or dpkg reports
the package installed. No version pinning. Installs never prompt
(debconf runs noninteractive, even under sudo).
"""

from __future__ import annotations

import logging

from devsetup.adapters.base import ExecutionContext
from devsetup.adapters.packages.base import PackageAdapter
from devsetup.core.models.action import Receipt

logger = logging.getLogger(__name__)


class AptAdapter(PackageAdapter):
    """System package manager adapter (apt-get + dpkg-query).

    ``apt-get update`` runs once per adapter instance, before the first
    install.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._index_updated = False

    @property
    def name(self) -> str:
        return "apt"

    def is_available(self) -> bool:
        return self._runner.which("apt-get") is not None

    def is_present(self, package: str, cwd: str | None = None) -> bool:
        if self._runner.which(package):
            return True
        return self._dpkg_installed(package)

    def _dpkg_installed(self, package: str) -> bool:
        result = self._runner.run(
            ["dpkg-query", "-W", "-f=${Status}", package],
            timeout=self._probe_timeout,
        )
        if result.timed_out:
            logger.warning("Timeout checking package %s", package)
        return result.ok and "install ok installed" in result.stdout

    def _install(self, ctx: ExecutionContext, package: str) -> Receipt:
        timeout = self._timeout(ctx)

        if not self._index_updated:
            update = self._runner.run(
                ["apt-get", "update"], needs_sudo=True, timeout=timeout,
            )
            if not update.ok:
                return self._receipt(ctx, update, "apt-get update", package=package)
            self._index_updated = True

        # On the argv, not in the environment: sudo's env_reset would drop it
        cmd = ["env", "DEBIAN_FRONTEND=noninteractive", "apt-get", "install", "-y", package]
        logger.info("Installing system package %s", package)
        result = self._runner.run(cmd, needs_sudo=True, timeout=timeout)
        return self._receipt(ctx, result, " ".join(cmd), package=package)
