"""
Governance errors.

Hard failures raise one of these; soft failures (approve/reject on a
non-pending deployment, diff of an unknown version) return None instead.
"""

from typing import Optional


class GovernanceError(Exception):
    """Base class for all engine errors."""


class NotFoundError(GovernanceError, LookupError):
    """A referenced version or deployment id does not resolve."""

    def __init__(self, kind: str, ids):
        self.kind = kind
        self.ids = [ids] if isinstance(ids, str) else list(ids)
        super().__init__(f"{kind} not found: {', '.join(self.ids)}")


class ValidationFailedError(GovernanceError, ValueError):
    """A deployment target did not pass validation."""

    def __init__(self, message: str, version_id: Optional[str] = None):
        self.version_id = version_id
        super().__init__(message)


class DeploymentScopeError(ValidationFailedError):
    """Deployment members span more than one tenant or environment."""


class InvalidTransitionError(GovernanceError, ValueError):
    """Illegal promotion path or lifecycle transition."""


class VersionConflictError(GovernanceError):
    """The store already holds this version number in the same scope."""

    def __init__(self, scope: tuple, version: str):
        self.scope = scope
        self.version = version
        super().__init__(f"Version {version} already exists for {':'.join(scope)}")
