"""
Domain models for devsetup.

All models are re-exported here for convenient access:

    from devsetup.core.models import Action, Receipt, EnvironmentFact, ProvisionConfig
"""

from devsetup.core.models.action import Action, Receipt
from devsetup.core.models.config import (
    CommandFact,
    FileSpec,
    ManifestConfig,
    ProvisionConfig,
    RuntimeConfig,
    SystemPackage,
    Timeouts,
)
from devsetup.core.models.fact import (
    EnvironmentFact,
    FactKind,
    FactOutcome,
    InstallPolicy,
)
from devsetup.core.models.state import FactState, ProvisionState, RunRecord

__all__ = [
    # action.py
    "Action",
    # config.py
    "CommandFact",
    # fact.py
    "EnvironmentFact",
    "FactKind",
    "FactOutcome",
    # state.py
    "FactState",
    "FileSpec",
    "InstallPolicy",
    "ManifestConfig",
    "ProvisionConfig",
    "ProvisionState",
    "Receipt",
    "RunRecord",
    "RuntimeConfig",
    "SystemPackage",
    "Timeouts",
]
