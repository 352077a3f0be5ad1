"""Adapters — tool bindings for apt, nvm, npm, the shell and the filesystem.

Public re-exports for convenient access.
"""

from devsetup.adapters.base import Adapter, ExecutionContext
from devsetup.adapters.mock import FakePackageAdapter, MockAdapter
from devsetup.adapters.packages.base import PackageAdapter
from devsetup.adapters.registry import AdapterRegistry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "FakePackageAdapter",
    "MockAdapter",
    "PackageAdapter",
]
