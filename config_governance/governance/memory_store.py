"""
In-memory governance store.
Dict-backed implementation of the storage ports, used by tests and local runs.
Transactions snapshot every table and restore it if the block raises.
"""

import logging
from contextlib import asynccontextmanager
from enum import Enum
from typing import Optional, Dict, List, Any

from .errors import VersionConflictError
from .models import (
    ConfigVersion, ConfigDeployment, ConfigAuditEntry, ValidationRule,
    VersionDeploymentStatus, DeploymentState,
)

logger = logging.getLogger(__name__)


def _val(v: Any) -> Any:
    return v.value if isinstance(v, Enum) else v


class InMemoryVersionStore:

    def __init__(self):
        self._versions: Dict[str, ConfigVersion] = {}

    async def create(self, version: ConfigVersion) -> ConfigVersion:
        for existing in self._versions.values():
            if existing.scope == version.scope and existing.version == version.version:
                raise VersionConflictError(version.scope, version.version)
        self._versions[version.id] = version.model_copy(deep=True)
        return version.model_copy(deep=True)

    async def get(self, version_id: str) -> Optional[ConfigVersion]:
        v = self._versions.get(version_id)
        return v.model_copy(deep=True) if v else None

    async def list(self, tenant_id: str, config_type: Optional[str] = None,
                   config_id: Optional[str] = None,
                   environment: Optional[str] = None) -> List[ConfigVersion]:
        rows = [v for v in self._versions.values() if v.tenant_id == tenant_id]
        if config_type:
            rows = [v for v in rows if v.config_type.value == _val(config_type)]
        if config_id:
            rows = [v for v in rows if v.config_id == config_id]
        if environment:
            rows = [v for v in rows if v.environment.value == _val(environment)]
        # dict preserves insertion order; newest first
        return [v.model_copy(deep=True) for v in reversed(rows)]

    async def update_status(self, version_id: str,
                            status: VersionDeploymentStatus) -> Optional[ConfigVersion]:
        v = self._versions.get(version_id)
        if not v:
            return None
        v.deployment_status = VersionDeploymentStatus(status)
        return v.model_copy(deep=True)


class InMemoryDeploymentStore:

    def __init__(self):
        self._deployments: Dict[str, ConfigDeployment] = {}

    async def create(self, deployment: ConfigDeployment) -> ConfigDeployment:
        self._deployments[deployment.id] = deployment.model_copy(deep=True)
        return deployment.model_copy(deep=True)

    async def get(self, deployment_id: str) -> Optional[ConfigDeployment]:
        d = self._deployments.get(deployment_id)
        return d.model_copy(deep=True) if d else None

    async def list(self, tenant_id: str, environment: Optional[str] = None,
                   status: Optional[DeploymentState] = None) -> List[ConfigDeployment]:
        rows = [d for d in self._deployments.values() if d.tenant_id == tenant_id]
        if environment:
            rows = [d for d in rows if d.environment.value == _val(environment)]
        if status:
            rows = [d for d in rows if d.status.value == _val(status)]
        return [d.model_copy(deep=True) for d in reversed(rows)]

    async def update(self, deployment_id: str, **changes) -> Optional[ConfigDeployment]:
        d = self._deployments.get(deployment_id)
        if not d:
            return None
        for k, v in changes.items():
            if hasattr(d, k) and k not in ("id", "created_at"):
                setattr(d, k, v)
        return d.model_copy(deep=True)


class InMemoryRuleStore:

    def __init__(self):
        self._rules: Dict[str, ValidationRule] = {}

    async def list(self, config_type: Optional[str] = None,
                   is_active: Optional[bool] = None) -> List[ValidationRule]:
        rows = list(self._rules.values())
        if config_type:
            rows = [r for r in rows if r.config_type.value == _val(config_type)]
        if is_active is not None:
            rows = [r for r in rows if r.is_active == is_active]
        return [r.model_copy(deep=True) for r in rows]

    async def create(self, rule: ValidationRule) -> ValidationRule:
        self._rules[rule.id] = rule.model_copy(deep=True)
        return rule.model_copy(deep=True)


class InMemoryAuditStore:

    def __init__(self):
        self._entries: List[ConfigAuditEntry] = []

    async def append(self, entry: ConfigAuditEntry) -> ConfigAuditEntry:
        self._entries.append(entry.model_copy(deep=True))
        return entry

    async def list(self, tenant_id: Optional[str] = None,
                   config_type: Optional[str] = None,
                   config_id: Optional[str] = None,
                   user_id: Optional[str] = None,
                   action: Optional[str] = None,
                   limit: Optional[int] = None) -> List[ConfigAuditEntry]:
        rows = list(reversed(self._entries))
        if tenant_id:
            rows = [e for e in rows if e.tenant_id == tenant_id]
        if config_type:
            rows = [e for e in rows if _val(e.config_type) == _val(config_type)]
        if config_id:
            rows = [e for e in rows if e.config_id == config_id]
        if user_id:
            rows = [e for e in rows if e.user_id == user_id]
        if action:
            rows = [e for e in rows if e.action.value == _val(action)]
        if limit is not None:
            rows = rows[:limit]
        return [e.model_copy(deep=True) for e in rows]


class InMemoryGovernanceStore:
    """Groups the four in-memory stores behind a snapshot/restore transaction."""

    def __init__(self):
        self.versions = InMemoryVersionStore()
        self.deployments = InMemoryDeploymentStore()
        self.rules = InMemoryRuleStore()
        self.audit = InMemoryAuditStore()
        # the tables themselves, even if the public attributes get wrapped
        self._tables = (self.versions, self.deployments, self.rules, self.audit)
        self._depth = 0

    def _snapshot(self) -> Dict[str, Any]:
        versions, deployments, rules, audit = self._tables
        return {
            "versions": {k: v.model_copy(deep=True) for k, v in versions._versions.items()},
            "deployments": {k: d.model_copy(deep=True) for k, d in deployments._deployments.items()},
            "rules": {k: r.model_copy(deep=True) for k, r in rules._rules.items()},
            "audit": list(audit._entries),
        }

    def _restore(self, snap: Dict[str, Any]) -> None:
        versions, deployments, rules, audit = self._tables
        versions._versions = snap["versions"]
        deployments._deployments = snap["deployments"]
        rules._rules = snap["rules"]
        audit._entries = snap["audit"]

    @asynccontextmanager
    async def transaction(self):
        # Nested blocks join the outermost one
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        snap = self._snapshot()
        self._depth = 1
        try:
            yield
        except BaseException:
            self._restore(snap)
            logger.debug("In-memory transaction rolled back")
            raise
        finally:
            self._depth = 0
