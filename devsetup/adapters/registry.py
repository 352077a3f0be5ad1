"""
Adapter registry — the one dispatch point between facts and tools.

Converge steps hand an Action to the registry; the registry picks the
adapter by name, validates, executes and always answers with a Receipt.
Dry-run never reaches it: the convergence runner stops before converging.
"""

from __future__ import annotations

import logging
import time

from devsetup.adapters.base import Adapter, ExecutionContext
from devsetup.adapters.packages.base import PackageAdapter
from devsetup.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Adapters by name, plus the dispatch rules shared by every action."""

    def __init__(self) -> None:
        self._adapters: dict[str, Adapter] = {}

    # ── Lookup ───────────────────────────────────────────────────

    def register(self, adapter: Adapter) -> None:
        if adapter.name in self._adapters:
            logger.warning("Replacing adapter %r", adapter.name)
        self._adapters[adapter.name] = adapter
        logger.debug("Registered %r", adapter)

    def get(self, name: str) -> Adapter | None:
        return self._adapters.get(name)

    def names(self) -> list[str]:
        return sorted(self._adapters)

    def package_adapter(self, name: str) -> PackageAdapter:
        """Look up an adapter that must implement the package capability.

        Raises:
            KeyError: If no such adapter is registered.
            TypeError: If the adapter has no is_present/install capability.
        """
        adapter = self._adapters.get(name)
        if adapter is None:
            raise KeyError(f"No adapter registered for '{name}'")
        if not isinstance(adapter, PackageAdapter):
            raise TypeError(f"Adapter '{name}' is not a package adapter")
        return adapter

    def unavailable(self) -> list[str]:
        """Names of adapters whose underlying tool is missing right now."""
        missing = []
        for name in self.names():
            try:
                ok = self._adapters[name].is_available()
            except Exception as e:
                logger.debug("Availability probe for %s raised: %s", name, e)
                ok = False
            if not ok:
                missing.append(name)
        return missing

    # ── Dispatch ─────────────────────────────────────────────────

    def execute_action(self, action: Action, target_root: str = ".") -> Receipt:
        """Run ``action`` through its adapter. Never raises."""
        start = time.monotonic()
        receipt = self._dispatch(action, target_root)
        if not receipt.duration_ms:
            receipt.duration_ms = int((time.monotonic() - start) * 1000)
        if action.for_fact:
            receipt.metadata.setdefault("fact", action.for_fact)
        logger.debug("%s:%s → %s", action.adapter, action.id, receipt.status)
        return receipt

    def _dispatch(self, action: Action, target_root: str) -> Receipt:
        adapter = self._adapters.get(action.adapter)
        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )

        context = ExecutionContext(
            action=action,
            target_root=target_root,
            params=action.params,
        )
        problem = self._validate(adapter, context)
        if problem:
            return Receipt.failure(adapter=action.adapter, action_id=action.id, error=problem)

        try:
            return adapter.execute(context)
        except Exception as e:
            logger.error("Adapter %s raised during execution: %s", action.adapter, e)
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Unexpected error: {e}",
            )

    @staticmethod
    def _validate(adapter: Adapter, context: ExecutionContext) -> str:
        try:
            valid, message = adapter.validate(context)
        except Exception as e:
            return f"Validation error: {e}"
        return "" if valid else f"Validation failed: {message}"
