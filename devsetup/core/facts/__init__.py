"""
Fact builders — turn a ProvisionConfig into the ordered fact list.

Order matters: later facts assume earlier ones held (packages need the
runtime and the manifest, the scripts merge needs jq).

    runtime → npm → system packages → manifest → dependencies
            → directories → files → jq → scripts → custom commands
"""

from __future__ import annotations

import logging

from devsetup.core.facts.base import NODE_RUNTIME, PACKAGE_MANIFEST, FactContext
from devsetup.core.facts.commands import command_fact
from devsetup.core.facts.layout import build_layout_facts
from devsetup.core.facts.manifest import MANIFEST_SCRIPTS, manifest_fact, scripts_fact
from devsetup.core.facts.packages import build_package_facts
from devsetup.core.facts.tools import build_tool_facts, jq_fact
from devsetup.core.models.fact import EnvironmentFact

logger = logging.getLogger(__name__)

__all__ = [
    "MANIFEST_SCRIPTS",
    "NODE_RUNTIME",
    "PACKAGE_MANIFEST",
    "FactContext",
    "build_facts",
]


def build_facts(ctx: FactContext) -> list[EnvironmentFact]:
    """Build every fact the config declares, in convergence order."""
    facts: list[EnvironmentFact] = []
    facts += build_tool_facts(ctx)
    facts.append(manifest_fact(ctx))
    facts += build_package_facts(ctx)
    facts += build_layout_facts(ctx)

    declared = {f.name for f in facts}
    if ctx.config.manifest.patcher == "jq" and "jq" not in declared:
        facts.append(jq_fact(ctx))
    facts.append(scripts_fact(ctx))

    facts += [command_fact(ctx, spec) for spec in ctx.config.commands]

    names = [f.name for f in facts]
    duplicates = {n for n in names if names.count(n) > 1}
    if duplicates:
        raise ValueError(f"Duplicate fact names: {', '.join(sorted(duplicates))}")

    logger.debug("Built %d facts", len(facts))
    return facts
