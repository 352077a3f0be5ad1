"""
Node.js adapter — the runtime, provisioned through nvm.

Packages this adapter understands:

    nvm     the version manager itself (installer fetched over HTTPS)
    node    the Node.js runtime (``nvm install`` + ``nvm use`` + default alias)
    npm     npm refresh (``npm install -g npm``)

nvm is a shell function, not an executable, so every nvm call is a
``bash -c`` that sources ``$NVM_DIR/nvm.sh`` first. After a runtime
install the nvm bin dir is registered on the shared ProcessRunner so
npm calls made later in the same run resolve.
"""

from __future__ import annotations

import logging
import shlex
import shutil
from pathlib import Path

from devsetup.adapters.base import ExecutionContext
from devsetup.adapters.packages.base import PackageAdapter
from devsetup.adapters.shell.process import ProcessRunner
from devsetup.core.models.action import Receipt
from devsetup.core.models.config import RuntimeConfig

logger = logging.getLogger(__name__)


class NodeAdapter(PackageAdapter):
    """Node.js runtime adapter backed by nvm."""

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        runtime: RuntimeConfig | None = None,
        probe_timeout: int = 30,
    ):
        super().__init__(runner=runner, probe_timeout=probe_timeout)
        self._runtime = runtime or RuntimeConfig()

    @property
    def name(self) -> str:
        return "node"

    @property
    def nvm_dir(self) -> Path:
        return Path(self._runtime.nvm_dir).expanduser()

    @property
    def nvm_script(self) -> Path:
        return self.nvm_dir / "nvm.sh"

    def is_available(self) -> bool:
        return shutil.which("bash") is not None

    def is_present(self, package: str, cwd: str | None = None) -> bool:
        if package == "nvm":
            return self.nvm_script.is_file()
        return self._runner.which(package) is not None

    def discover(self) -> str | None:
        """Register an existing nvm default Node on the runner PATH.

        Called once before a run, so a runtime installed by an earlier
        run (invisible to a non-interactive shell) is found by the
        presence checks. Returns the bin dir, if any.
        """
        if self._runner.which("node") or not self.nvm_script.is_file():
            return None
        return self._register_bin_dir()

    # ── Install ─────────────────────────────────────────────────

    def _install(self, ctx: ExecutionContext, package: str) -> Receipt:
        if package == "nvm":
            return self._install_nvm(ctx)
        if package == "node":
            return self._install_node(ctx)
        if package == "npm":
            return self._refresh_npm(ctx)
        return Receipt.failure(
            adapter=self.name,
            action_id=ctx.action.id,
            error=f"Unknown runtime package: {package}",
        )

    def _install_nvm(self, ctx: ExecutionContext) -> Receipt:
        url = self._runtime.installer_url
        self.nvm_dir.mkdir(parents=True, exist_ok=True)
        # pipefail: a failed download fails the step
        script = f"curl -fsSL {shlex.quote(url)} | bash"
        logger.info("Installing nvm from %s", url)
        result = self._runner.run(
            ["bash", "-o", "pipefail", "-c", script],
            timeout=self._timeout(ctx),
            env_overrides={"NVM_DIR": str(self.nvm_dir)},
        )
        return self._receipt(ctx, result, script, url=url)

    def _install_node(self, ctx: ExecutionContext) -> Receipt:
        if not self.nvm_script.is_file():
            receipt = self._install_nvm(ctx)
            if receipt.failed:
                return receipt

        version = shlex.quote(self._runtime.node_version)
        script = (
            f"nvm install {version} && nvm use {version} && nvm alias default node"
        )
        logger.info("Installing Node.js (%s) with nvm", self._runtime.node_version)
        result = self._nvm(script, timeout=self._timeout(ctx))
        receipt = self._receipt(ctx, result, script, node_version=self._runtime.node_version)
        if receipt.ok:
            bin_dir = self._register_bin_dir()
            receipt.metadata["bin_dir"] = bin_dir
        return receipt

    def _refresh_npm(self, ctx: ExecutionContext) -> Receipt:
        cmd = ["npm", "install", "-g", "npm"]
        logger.info("Updating npm to the latest version")
        result = self._runner.run(cmd, timeout=self._timeout(ctx))
        return self._receipt(ctx, result, " ".join(cmd))

    # ── Helpers ─────────────────────────────────────────────────

    def _nvm(self, script: str, timeout: int | None = None):
        """Run ``script`` in bash with nvm loaded."""
        wrapped = f'. "$NVM_DIR/nvm.sh" && {script}'
        return self._runner.run(
            ["bash", "-c", wrapped],
            timeout=timeout or self._probe_timeout,
            env_overrides={"NVM_DIR": str(self.nvm_dir)},
        )

    def _register_bin_dir(self) -> str | None:
        result = self._nvm("nvm which default")
        if not result.ok or not result.stdout:
            logger.debug("nvm has no default Node: %s", result.message)
            return None
        node_path = Path(result.stdout.splitlines()[-1].strip())
        bin_dir = str(node_path.parent)
        self._runner.add_path(bin_dir)
        return bin_dir
