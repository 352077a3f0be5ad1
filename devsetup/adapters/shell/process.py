"""
Process runner — the single place where ``subprocess.run`` is called.

Every adapter that shells out goes through a shared ProcessRunner, so
sudo handling, timeouts, PATH extension and logging live here.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# Keep receipts readable; package managers can be very chatty
_OUTPUT_TAIL = 2000


def tail(text: str, limit: int = _OUTPUT_TAIL) -> str:
    """Last ``limit`` characters of a command output."""
    return text[-limit:] if text else ""


@dataclass
class ProcessResult:
    """Outcome of one external command."""

    ok: bool
    returncode: int | None = None
    stdout: str = ""
    stderr: str = ""
    elapsed_ms: int = 0
    error: str = ""
    timed_out: bool = False

    @property
    def message(self) -> str:
        """Best available error text."""
        if self.ok:
            return ""
        return self.error or self.stderr or f"Command exited with code {self.returncode}"


@dataclass
class ProcessRunner:
    """Run external commands with sudo, PATH and timeout support.

    ``extra_path`` entries are prepended to PATH for every command and
    for ``which()`` lookups. Runtime installers register their bin dir
    here so later steps see the freshly installed tools.
    """

    use_sudo: bool = True
    default_timeout: int = 600
    extra_path: list[str] = field(default_factory=list)

    def add_path(self, directory: str) -> None:
        """Prepend a directory to the PATH seen by later commands."""
        if directory and directory not in self.extra_path:
            self.extra_path.insert(0, directory)
            logger.debug("Added %s to command PATH", directory)

    def search_path(self) -> str:
        parts = [*self.extra_path, os.environ.get("PATH", "")]
        return os.pathsep.join(p for p in parts if p)

    def which(self, name: str) -> str | None:
        """Resolve an executable against the extended PATH."""
        return shutil.which(name, path=self.search_path())

    def env(self, overrides: dict[str, str] | None = None) -> dict[str, str]:
        env = os.environ.copy()
        env["PATH"] = self.search_path()
        if overrides:
            for key, value in overrides.items():
                env[key] = os.path.expandvars(value)
        return env

    def run(
        self,
        cmd: list[str] | str,
        *,
        cwd: str | None = None,
        timeout: int | None = None,
        needs_sudo: bool = False,
        shell: bool = False,
        env_overrides: dict[str, str] | None = None,
    ) -> ProcessResult:
        """Run a command and capture its output.

        Args:
            cmd: Argument list, or a string when ``shell`` is True.
            cwd: Working directory.
            timeout: Seconds before the command is killed.
            needs_sudo: Prefix with ``sudo`` unless already root.
            shell: Run through ``/bin/sh``.
            env_overrides: Extra environment variables.

        Returns:
            ProcessResult. Never raises for command failures.
        """
        timeout = timeout or self.default_timeout

        if needs_sudo and self.use_sudo and os.geteuid() != 0:
            if shell:
                cmd = f"sudo {cmd}"
            else:
                cmd = ["sudo", *cmd]

        printable = cmd if isinstance(cmd, str) else " ".join(cmd)
        logger.debug("Executing: %s (cwd=%s)", printable, cwd)

        start = time.monotonic()
        try:
            result = subprocess.run(
                cmd,
                shell=shell,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=timeout,
                env=self.env(env_overrides),
            )
        except subprocess.TimeoutExpired:
            logger.warning("Timed out after %ss: %s", timeout, printable)
            return ProcessResult(
                ok=False,
                error=f"Command timed out after {timeout}s",
                elapsed_ms=int((time.monotonic() - start) * 1000),
                timed_out=True,
            )
        except OSError as e:
            # Executable missing, cwd missing, permission denied
            return ProcessResult(
                ok=False,
                error=f"Command execution error: {e}",
                elapsed_ms=int((time.monotonic() - start) * 1000),
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        stdout = result.stdout or ""
        stderr = result.stderr or ""

        if result.returncode != 0:
            logger.debug("Exit %d: %s", result.returncode, printable)

        return ProcessResult(
            ok=result.returncode == 0,
            returncode=result.returncode,
            stdout=stdout.strip(),
            stderr=stderr.strip(),
            elapsed_ms=elapsed_ms,
        )
