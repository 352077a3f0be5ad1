"""
Shared plumbing for fact builders.

A FactContext carries what every builder needs: the adapter registry,
the target directory and the config. Converge steps dispatch Actions
through ``FactContext.execute`` so they share the registry's dry-run,
mock and never-raise behaviour.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from devsetup.adapters.packages.base import PackageAdapter
from devsetup.adapters.registry import AdapterRegistry
from devsetup.core.models.action import Action, Receipt
from devsetup.core.models.config import ProvisionConfig

# Fact names referenced by depends_on across builders
NODE_RUNTIME = "node runtime"
PACKAGE_MANIFEST = "package manifest"


@dataclass
class FactContext:
    """Inputs shared by every fact builder."""

    registry: AdapterRegistry
    target: Path
    config: ProvisionConfig
    run_id: str = "run"

    def packages(self, adapter: str) -> PackageAdapter:
        return self.registry.package_adapter(adapter)

    def execute(self, adapter: str, fact_name: str, **params: Any) -> Receipt:
        """Dispatch one action for ``fact_name`` through the registry."""
        slug = fact_name.replace(" ", "-")
        action = Action(
            id=f"{self.run_id}:{slug}",
            name=fact_name,
            adapter=adapter,
            params=params,
            for_fact=fact_name,
        )
        return self.registry.execute_action(action, target_root=str(self.target))

    def path(self, relative: str) -> Path:
        return self.target / relative
