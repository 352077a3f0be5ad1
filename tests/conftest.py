"""
Shared test fixtures and configuration.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import pytest

from devsetup.adapters.mock import FakePackageAdapter, fake_package_adapters
from devsetup.adapters.registry import AdapterRegistry
from devsetup.adapters.shell.command import ShellCommandAdapter
from devsetup.adapters.shell.filesystem import FilesystemAdapter

BUILTIN_CONFIG = "manifest:\n  patcher: builtin\n"


@dataclass
class FakeMachine:
    """A registry wired with fake package managers."""

    registry: AdapterRegistry
    node: FakePackageAdapter
    npm: FakePackageAdapter
    apt: FakePackageAdapter


def make_machine(installed=()) -> FakeMachine:
    node, npm, apt = fake_package_adapters(installed)
    registry = AdapterRegistry()
    registry.register(ShellCommandAdapter())
    registry.register(FilesystemAdapter())
    for adapter in (node, npm, apt):
        registry.register(adapter)
    return FakeMachine(registry=registry, node=node, npm=npm, apt=apt)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """setup_logging() replaces root handlers; put pytest's back."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def machine() -> FakeMachine:
    """Fake node/npm/apt with nothing installed."""
    return make_machine()


@pytest.fixture
def machine_with():
    """Factory: fake machine seeded with already-installed packages."""
    return make_machine


@pytest.fixture
def target(tmp_path: Path) -> Path:
    """An empty project directory configured for the builtin patcher."""
    project = tmp_path / "app"
    project.mkdir()
    (project / "devsetup.yml").write_text(BUILTIN_CONFIG)
    return project
