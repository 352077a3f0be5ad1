"""
Tool facts — the Node runtime, npm refresh and system packages.

Checks ask "is this executable/package resolvable", never pin versions.
"""

from __future__ import annotations

from devsetup.core.facts.base import NODE_RUNTIME, FactContext
from devsetup.core.models.config import SystemPackage
from devsetup.core.models.fact import EnvironmentFact, FactKind, InstallPolicy


def node_runtime_fact(ctx: FactContext) -> EnvironmentFact:
    node = ctx.packages("node")
    runtime = ctx.config.runtime
    return EnvironmentFact(
        name=NODE_RUNTIME,
        kind=FactKind.TOOL,
        check=lambda: node.is_present("node"),
        converge=lambda: ctx.execute(
            "node",
            NODE_RUNTIME,
            operation="install",
            package="node",
            timeout=ctx.config.timeouts.install,
        ),
        description=f"Node.js {runtime.node_version} via nvm {runtime.nvm_version}",
    )


def npm_refresh_fact(ctx: FactContext) -> EnvironmentFact:
    node = ctx.packages("node")
    return EnvironmentFact(
        name="npm",
        kind=FactKind.TOOL,
        check=lambda: node.is_present("npm"),
        converge=lambda: ctx.execute(
            "node",
            "npm",
            operation="install",
            package="npm",
            timeout=ctx.config.timeouts.install,
        ),
        policy=ctx.config.runtime.npm_policy,
        required=False,
        depends_on=[NODE_RUNTIME],
        description="npm updated to the latest release",
    )


def system_package_fact(ctx: FactContext, package: SystemPackage) -> EnvironmentFact:
    apt = ctx.packages("apt")
    return EnvironmentFact(
        name=package.name,
        kind=FactKind.TOOL,
        check=lambda: apt.is_present(package.probe_name),
        converge=lambda: ctx.execute(
            "apt",
            package.name,
            operation="install",
            package=package.name,
            timeout=ctx.config.timeouts.install,
        ),
        policy=package.policy,
        required=package.required,
        description=f"system package {package.name} (apt)",
    )


def build_tool_facts(ctx: FactContext) -> list[EnvironmentFact]:
    facts = [node_runtime_fact(ctx)]
    if ctx.config.runtime.update_npm:
        facts.append(npm_refresh_fact(ctx))
    for package in ctx.config.system_packages:
        facts.append(system_package_fact(ctx, package))
    return facts


def jq_fact(ctx: FactContext) -> EnvironmentFact:
    """The JSON filter used by the jq manifest patcher."""
    return system_package_fact(
        ctx,
        SystemPackage(name="jq", policy=InstallPolicy.SKIP_IF_PRESENT),
    )
