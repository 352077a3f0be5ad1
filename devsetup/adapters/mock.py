"""
Mock adapters — test doubles for adapter operations.

``MockAdapter`` stands in for any adapter and returns canned receipts.
``FakePackageAdapter`` simulates a package database: it answers
``is_present`` from an in-memory set and records every install call.
Used by the test suite and by ``devsetup converge --mock``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, Iterable

from devsetup.adapters.base import Adapter, ExecutionContext
from devsetup.adapters.packages.base import PackageAdapter
from devsetup.adapters.shell.filesystem import atomic_write_text
from devsetup.core.models.action import Receipt


class MockAdapter(Adapter):
    """Answers every action with success, except the ones told to fail."""

    def __init__(self, adapter_name: str = "mock", available: bool = True, output: str = "[mock] executed"):
        self._name = adapter_name
        self._available = available
        self._output = output
        self._errors: dict[str, str] = {}
        self.calls: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def is_available(self) -> bool:
        return self._available

    def fail(self, action_id: str, error: str = "Mock failure") -> None:
        """Make the action with ``action_id`` fail with ``error``."""
        self._errors[action_id] = error

    def reset(self) -> None:
        self.calls.clear()
        self._errors.clear()

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self.calls.append(context)
        action_id = context.action.id
        if action_id in self._errors:
            return Receipt.failure(
                adapter=self._name, action_id=action_id, error=self._errors[action_id],
                metadata={"mock": True},
            )
        return Receipt.success(
            adapter=self._name, action_id=action_id, output=self._output, metadata={"mock": True},
        )


class FakePackageAdapter(PackageAdapter):
    """In-memory package manager.

    ``installed`` seeds the packages that already exist. Installing a
    package adds it to the set, unless it was marked with ``fail_on``
    (simulated non-zero exit) or ``install_noop`` (install "succeeds"
    but the package never shows up).
    """

    operations = frozenset({"install", "init"})

    def __init__(
        self,
        adapter_name: str,
        installed: Iterable[str] = (),
        available: bool = True,
    ):
        super().__init__()
        self._name = adapter_name
        self._available = available
        self.installed: set[str] = set(installed)
        self.install_calls: list[str] = []
        self.probe_calls: list[str] = []
        self.other_calls: list[tuple[str, str]] = []
        self._fail: dict[str, str] = {}
        self._noop: set[str] = set()
        self._hooks: dict[str, Callable[[ExecutionContext], None]] = {}

    @property
    def name(self) -> str:
        return self._name

    def is_available(self) -> bool:
        return self._available

    def fail_on(self, package: str, error: str = "exit status 100") -> None:
        """Make installing ``package`` fail."""
        self._fail[package] = error

    def install_noop(self, package: str) -> None:
        """Make installing ``package`` report success without effect."""
        self._noop.add(package)

    def on_operation(self, operation: str, hook: Callable[[ExecutionContext], None]) -> None:
        """Run ``hook(context)`` for an extra operation (e.g. npm 'init')."""
        self._hooks[operation] = hook

    def is_present(self, package: str, cwd: str | None = None) -> bool:
        self.probe_calls.append(package)
        return package in self.installed

    def _install(self, ctx: ExecutionContext, package: str) -> Receipt:
        self.install_calls.append(package)
        if package in self._fail:
            return Receipt.failure(
                adapter=self._name,
                action_id=ctx.action.id,
                error=self._fail[package],
                metadata={"mock": True, "return_code": 1},
            )
        if package not in self._noop:
            self.installed.add(package)
        return Receipt.success(
            adapter=self._name,
            action_id=ctx.action.id,
            output=f"[mock] installed {package}",
            metadata={"mock": True},
        )

    def _extra_operation(self, ctx: ExecutionContext, operation: str) -> Receipt:
        self.other_calls.append((operation, ctx.working_dir))
        hook = self._hooks.get(operation)
        if hook is not None:
            hook(ctx)
        return Receipt.success(
            adapter=self._name,
            action_id=ctx.action.id,
            output=f"[mock] {operation}",
            metadata={"mock": True},
        )


def npm_init_stub(ctx: ExecutionContext) -> None:
    """Write the manifest ``npm init -y`` would write, without npm."""
    target = Path(ctx.working_dir) / "package.json"
    if target.exists():
        return
    manifest = {
        "name": Path(ctx.working_dir).resolve().name.lower().replace(" ", "-"),
        "version": "1.0.0",
        "description": "",
        "main": "index.js",
        "scripts": {"test": 'echo "Error: no test specified" && exit 1'},
        "keywords": [],
        "author": "",
        "license": "ISC",
    }
    atomic_write_text(target, json.dumps(manifest, indent=2) + "\n")


def fake_package_adapters(
    installed: Iterable[str] = (),
) -> tuple[FakePackageAdapter, FakePackageAdapter, FakePackageAdapter]:
    """Fake node, npm and apt adapters sharing one ``installed`` seed.

    The npm fake answers 'init' by writing a stub manifest.
    """
    seed = set(installed)
    node = FakePackageAdapter("node", installed=seed)
    npm = FakePackageAdapter("npm", installed=seed)
    npm.on_operation("init", npm_init_stub)
    apt = FakePackageAdapter("apt", installed=seed)
    return node, npm, apt
