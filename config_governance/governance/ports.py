"""
Storage ports consumed by the governance engine.
Any backend (in-memory, SQLAlchemy, ...) implementing these can be injected.
"""

from typing import Optional, List, Protocol, AsyncContextManager

from .models import (
    ConfigVersion, ConfigDeployment, ConfigAuditEntry, ValidationRule,
    VersionDeploymentStatus, DeploymentState,
)


class VersionStore(Protocol):

    async def create(self, version: ConfigVersion) -> ConfigVersion:
        """Persist a version. Raises VersionConflictError on a duplicate scoped number."""
        ...

    async def get(self, version_id: str) -> Optional[ConfigVersion]:
        ...

    async def list(self, tenant_id: str, config_type: Optional[str] = None,
                   config_id: Optional[str] = None,
                   environment: Optional[str] = None) -> List[ConfigVersion]:
        """Versions matching every supplied filter, newest first."""
        ...

    async def update_status(self, version_id: str,
                            status: VersionDeploymentStatus) -> Optional[ConfigVersion]:
        ...


class DeploymentStore(Protocol):

    async def create(self, deployment: ConfigDeployment) -> ConfigDeployment:
        ...

    async def get(self, deployment_id: str) -> Optional[ConfigDeployment]:
        ...

    async def list(self, tenant_id: str, environment: Optional[str] = None,
                   status: Optional[DeploymentState] = None) -> List[ConfigDeployment]:
        ...

    async def update(self, deployment_id: str, **changes) -> Optional[ConfigDeployment]:
        ...


class RuleStore(Protocol):

    async def list(self, config_type: Optional[str] = None,
                   is_active: Optional[bool] = None) -> List[ValidationRule]:
        ...

    async def create(self, rule: ValidationRule) -> ValidationRule:
        ...


class AuditStore(Protocol):

    async def append(self, entry: ConfigAuditEntry) -> ConfigAuditEntry:
        ...

    async def list(self, tenant_id: Optional[str] = None,
                   config_type: Optional[str] = None,
                   config_id: Optional[str] = None,
                   user_id: Optional[str] = None,
                   action: Optional[str] = None,
                   limit: Optional[int] = None) -> List[ConfigAuditEntry]:
        """Entries matching every supplied filter, newest first."""
        ...


class GovernanceStore(Protocol):
    versions: VersionStore
    deployments: DeploymentStore
    rules: RuleStore
    audit: AuditStore

    def transaction(self) -> AsyncContextManager[None]:
        """All writes inside the block commit together or not at all."""
        ...
