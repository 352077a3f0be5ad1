"""
Command facts — user-declared check/apply shell pairs from devsetup.yml.
"""

from __future__ import annotations

from devsetup.adapters.shell.command import ShellCommandAdapter
from devsetup.core.facts.base import FactContext
from devsetup.core.models.config import CommandFact
from devsetup.core.models.fact import EnvironmentFact, FactKind


def command_fact(ctx: FactContext, spec: CommandFact) -> EnvironmentFact:
    name = f"command {spec.name}"
    shell = ctx.registry.get("shell")
    if not isinstance(shell, ShellCommandAdapter):
        raise TypeError("Command facts need the 'shell' adapter registered")

    return EnvironmentFact(
        name=name,
        kind=FactKind.COMMAND,
        check=lambda: shell.succeeds(
            spec.check, cwd=str(ctx.target), timeout=ctx.config.timeouts.probe,
        ),
        converge=lambda: ctx.execute(
            "shell", name, command=spec.apply, timeout=ctx.config.timeouts.install,
        ),
        required=spec.required,
        description=spec.apply,
    )
