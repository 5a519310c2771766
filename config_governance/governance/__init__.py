"""Governance engine — validation, versions, diffs, deployments, approvals, promotion, audit."""
from .errors import (
    GovernanceError, NotFoundError, ValidationFailedError, DeploymentScopeError,
    InvalidTransitionError, VersionConflictError,
)
from .memory_store import InMemoryGovernanceStore
from .service import ConfigGovernanceService

__all__ = [
    "ConfigGovernanceService", "InMemoryGovernanceStore",
    "GovernanceError", "NotFoundError", "ValidationFailedError", "DeploymentScopeError",
    "InvalidTransitionError", "VersionConflictError",
]
