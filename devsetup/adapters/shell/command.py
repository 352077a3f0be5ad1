"""
Shell command adapter — execute arbitrary commands.

Used for user-declared command facts and for the jq manifest filter.
Commands run through the shared ProcessRunner.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from devsetup.adapters.base import Adapter, ExecutionContext
from devsetup.adapters.shell.process import ProcessRunner
from devsetup.core.models.action import Receipt

logger = logging.getLogger(__name__)


class ShellCommandAdapter(Adapter):
    """Execute commands and capture output.

    Action params:
        command (str | list[str]): The command to execute. A list is
            passed as argv, a string goes through the shell.
        timeout (int): Timeout in seconds (default: runner default).
        cwd (str): Override working directory (default: context.working_dir).
        sudo (bool): Run with sudo when not root (default: False).
    """

    def __init__(self, runner: ProcessRunner | None = None):
        self._runner = runner or ProcessRunner()

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        command = context.action.params.get("command", "")
        if not command:
            return False, "Missing required param: 'command'"

        cwd = context.working_dir
        if cwd and not Path(cwd).is_dir():
            return False, f"Working directory does not exist: {cwd}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        command = context.action.params.get("command", "")
        timeout = context.action.params.get("timeout")
        cwd = context.working_dir
        use_shell = isinstance(command, str)
        printable = command if use_shell else " ".join(command)

        result = self._runner.run(
            command,
            cwd=cwd,
            timeout=timeout,
            shell=use_shell,
            needs_sudo=bool(context.action.params.get("sudo", False)),
        )

        if result.ok:
            return Receipt.success(
                adapter=self.name,
                action_id=context.action.id,
                output=result.stdout,
                duration_ms=result.elapsed_ms,
                metadata={
                    "command": printable,
                    "return_code": result.returncode,
                    "stderr": result.stderr,
                },
            )

        return Receipt.failure(
            adapter=self.name,
            action_id=context.action.id,
            error=result.message,
            duration_ms=result.elapsed_ms,
            metadata={
                "command": printable,
                "return_code": result.returncode,
                "stdout": result.stdout,
                "timed_out": result.timed_out,
            },
        )

    def succeeds(self, command: str, cwd: str | None = None, timeout: int | None = None) -> bool:
        """Probe: True when the command exits 0. Used by command fact checks."""
        return self._runner.run(command, cwd=cwd, timeout=timeout, shell=True).ok
