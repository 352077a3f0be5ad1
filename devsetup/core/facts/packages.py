"""
Package facts — npm dependencies and dev dependencies of the project.
"""

from __future__ import annotations

from devsetup.core.facts.base import NODE_RUNTIME, PACKAGE_MANIFEST, FactContext
from devsetup.core.models.fact import EnvironmentFact, FactKind


def dependency_fact(ctx: FactContext, package: str, dev: bool = False) -> EnvironmentFact:
    npm = ctx.packages("npm")
    label = "dev dependency" if dev else "dependency"
    name = f"{label} {package}"
    target = str(ctx.target)
    return EnvironmentFact(
        name=name,
        kind=FactKind.PACKAGE,
        check=lambda: npm.is_present(package, cwd=target),
        converge=lambda: ctx.execute(
            "npm",
            name,
            operation="install",
            package=package,
            dev=dev,
            timeout=ctx.config.timeouts.install,
        ),
        depends_on=[NODE_RUNTIME, PACKAGE_MANIFEST],
        description=f"npm {label} {package}",
    )


def build_package_facts(ctx: FactContext) -> list[EnvironmentFact]:
    facts = [dependency_fact(ctx, pkg) for pkg in ctx.config.dependencies]
    facts += [dependency_fact(ctx, pkg, dev=True) for pkg in ctx.config.dev_dependencies]
    return facts
