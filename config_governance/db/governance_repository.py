"""
SqlAlchemyGovernanceStore — async storage ports backed by PostgreSQL.
Bridges between the Pydantic governance models and the SQLAlchemy rows.
All repositories share one AsyncSession; `transaction()` commits or rolls it back.
"""
import logging
from contextlib import asynccontextmanager
from enum import Enum
from typing import Optional, List, Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config_governance.db.models import (
    ConfigVersionModel, ConfigDeploymentModel, ConfigAuditEntryModel,
    ConfigValidationRuleModel,
)
from config_governance.governance.errors import VersionConflictError
from config_governance.governance.models import (
    ConfigVersion, ConfigDeployment, ConfigAuditEntry, ValidationRule,
    VersionDeploymentStatus, DeploymentState,
)

logger = logging.getLogger(__name__)


def _val(v: Any) -> Any:
    return v.value if isinstance(v, Enum) else v


# ── Row conversion ────────────────────────────────────────────────

def _row_to_version(row: ConfigVersionModel) -> ConfigVersion:
    return ConfigVersion(
        id=row.id,
        tenant_id=row.tenant_id,
        config_type=row.config_type,
        config_id=row.config_id,
        version=row.version,
        config=row.config_json or {},
        change_description=row.change_description,
        changed_by=row.changed_by,
        deployment_status=row.deployment_status,
        environment=row.environment,
        validation_status=row.validation_status,
        validation_errors=row.validation_errors,
        created_at=row.created_at,
    )


def _row_to_deployment(row: ConfigDeploymentModel) -> ConfigDeployment:
    return ConfigDeployment(
        id=row.id,
        tenant_id=row.tenant_id,
        version_ids=list(row.version_ids or []),
        environment=row.environment,
        status=row.status,
        deployed_by=row.deployed_by or "",
        deployment_notes=row.deployment_notes,
        approved_by=row.approved_by,
        approved_at=row.approved_at,
        rollback_from_deployment_id=row.rollback_from_deployment_id,
        created_at=row.created_at,
        deployed_at=row.deployed_at,
    )


def _row_to_entry(row: ConfigAuditEntryModel) -> ConfigAuditEntry:
    return ConfigAuditEntry(
        id=row.id,
        tenant_id=row.tenant_id,
        config_type=row.config_type,
        config_id=row.config_id,
        action=row.action,
        version_id=row.version_id,
        deployment_id=row.deployment_id,
        user_id=row.user_id,
        created_at=row.created_at,
    )


def _row_to_rule(row: ConfigValidationRuleModel) -> ValidationRule:
    return ValidationRule(
        id=row.id,
        name=row.name,
        description=row.description or "",
        config_type=row.config_type,
        rule_type=row.rule_type,
        rule=row.rule_json or {},
        severity=row.severity,
        is_active=row.is_active,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ── Repositories ──────────────────────────────────────────────────

class SqlVersionStore:

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, version: ConfigVersion) -> ConfigVersion:
        row = ConfigVersionModel(
            id=version.id,
            tenant_id=version.tenant_id,
            config_type=version.config_type.value,
            config_id=version.config_id,
            environment=version.environment.value,
            version=version.version,
            config_json=version.config,
            change_description=version.change_description,
            changed_by=version.changed_by,
            deployment_status=version.deployment_status.value,
            validation_status=version.validation_status.value,
            validation_errors=version.validation_errors,
            created_at=version.created_at,
        )
        self._session.add(row)
        try:
            await self._session.flush()
        except IntegrityError as e:
            raise VersionConflictError(version.scope, version.version) from e
        return _row_to_version(row)

    async def _row(self, version_id: str) -> Optional[ConfigVersionModel]:
        result = await self._session.execute(
            select(ConfigVersionModel).where(ConfigVersionModel.id == version_id)
        )
        return result.scalar_one_or_none()

    async def get(self, version_id: str) -> Optional[ConfigVersion]:
        row = await self._row(version_id)
        return _row_to_version(row) if row else None

    async def list(self, tenant_id: str, config_type: Optional[str] = None,
                   config_id: Optional[str] = None,
                   environment: Optional[str] = None) -> List[ConfigVersion]:
        stmt = select(ConfigVersionModel).where(ConfigVersionModel.tenant_id == tenant_id)
        if config_type:
            stmt = stmt.where(ConfigVersionModel.config_type == _val(config_type))
        if config_id:
            stmt = stmt.where(ConfigVersionModel.config_id == config_id)
        if environment:
            stmt = stmt.where(ConfigVersionModel.environment == _val(environment))
        stmt = stmt.order_by(ConfigVersionModel.created_at.desc())
        result = await self._session.execute(stmt)
        return [_row_to_version(r) for r in result.scalars().all()]

    async def update_status(self, version_id: str,
                            status: VersionDeploymentStatus) -> Optional[ConfigVersion]:
        row = await self._row(version_id)
        if not row:
            return None
        row.deployment_status = _val(status)
        await self._session.flush()
        return _row_to_version(row)


class SqlDeploymentStore:

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, deployment: ConfigDeployment) -> ConfigDeployment:
        row = ConfigDeploymentModel(
            id=deployment.id,
            tenant_id=deployment.tenant_id,
            version_ids=list(deployment.version_ids),
            environment=deployment.environment.value,
            status=deployment.status.value,
            deployed_by=deployment.deployed_by,
            deployment_notes=deployment.deployment_notes,
            approved_by=deployment.approved_by,
            approved_at=deployment.approved_at,
            rollback_from_deployment_id=deployment.rollback_from_deployment_id,
            created_at=deployment.created_at,
            deployed_at=deployment.deployed_at,
        )
        self._session.add(row)
        await self._session.flush()
        return _row_to_deployment(row)

    async def _row(self, deployment_id: str) -> Optional[ConfigDeploymentModel]:
        result = await self._session.execute(
            select(ConfigDeploymentModel).where(ConfigDeploymentModel.id == deployment_id)
        )
        return result.scalar_one_or_none()

    async def get(self, deployment_id: str) -> Optional[ConfigDeployment]:
        row = await self._row(deployment_id)
        return _row_to_deployment(row) if row else None

    async def list(self, tenant_id: str, environment: Optional[str] = None,
                   status: Optional[DeploymentState] = None) -> List[ConfigDeployment]:
        stmt = select(ConfigDeploymentModel).where(ConfigDeploymentModel.tenant_id == tenant_id)
        if environment:
            stmt = stmt.where(ConfigDeploymentModel.environment == _val(environment))
        if status:
            stmt = stmt.where(ConfigDeploymentModel.status == _val(status))
        stmt = stmt.order_by(ConfigDeploymentModel.created_at.desc())
        result = await self._session.execute(stmt)
        return [_row_to_deployment(r) for r in result.scalars().all()]

    async def update(self, deployment_id: str, **changes) -> Optional[ConfigDeployment]:
        row = await self._row(deployment_id)
        if not row:
            return None
        for k, v in changes.items():
            if hasattr(row, k) and k not in ("id", "created_at"):
                setattr(row, k, _val(v))
        await self._session.flush()
        return _row_to_deployment(row)


class SqlRuleStore:

    def __init__(self, session: AsyncSession):
        self._session = session

    async def list(self, config_type: Optional[str] = None,
                   is_active: Optional[bool] = None) -> List[ValidationRule]:
        stmt = select(ConfigValidationRuleModel)
        if config_type:
            stmt = stmt.where(ConfigValidationRuleModel.config_type == _val(config_type))
        if is_active is not None:
            stmt = stmt.where(ConfigValidationRuleModel.is_active == is_active)
        stmt = stmt.order_by(ConfigValidationRuleModel.created_at, ConfigValidationRuleModel.id)
        result = await self._session.execute(stmt)
        return [_row_to_rule(r) for r in result.scalars().all()]

    async def create(self, rule: ValidationRule) -> ValidationRule:
        row = ConfigValidationRuleModel(
            id=rule.id,
            name=rule.name,
            description=rule.description,
            config_type=rule.config_type.value,
            rule_type=rule.rule_type.value,
            rule_json=rule.rule,
            severity=rule.severity.value,
            is_active=rule.is_active,
            created_at=rule.created_at,
            updated_at=rule.updated_at,
        )
        self._session.add(row)
        await self._session.flush()
        return _row_to_rule(row)


class SqlAuditStore:

    def __init__(self, session: AsyncSession):
        self._session = session

    async def append(self, entry: ConfigAuditEntry) -> ConfigAuditEntry:
        self._session.add(ConfigAuditEntryModel(
            id=entry.id,
            tenant_id=entry.tenant_id,
            config_type=_val(entry.config_type),
            config_id=entry.config_id,
            action=entry.action.value,
            version_id=entry.version_id,
            deployment_id=entry.deployment_id,
            user_id=entry.user_id,
            created_at=entry.created_at,
        ))
        await self._session.flush()
        return entry

    async def list(self, tenant_id: Optional[str] = None,
                   config_type: Optional[str] = None,
                   config_id: Optional[str] = None,
                   user_id: Optional[str] = None,
                   action: Optional[str] = None,
                   limit: Optional[int] = None) -> List[ConfigAuditEntry]:
        stmt = select(ConfigAuditEntryModel)
        if tenant_id:
            stmt = stmt.where(ConfigAuditEntryModel.tenant_id == tenant_id)
        if config_type:
            stmt = stmt.where(ConfigAuditEntryModel.config_type == _val(config_type))
        if config_id:
            stmt = stmt.where(ConfigAuditEntryModel.config_id == config_id)
        if user_id:
            stmt = stmt.where(ConfigAuditEntryModel.user_id == user_id)
        if action:
            stmt = stmt.where(ConfigAuditEntryModel.action == _val(action))
        stmt = stmt.order_by(ConfigAuditEntryModel.created_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._session.execute(stmt)
        return [_row_to_entry(r) for r in result.scalars().all()]


class SqlAlchemyGovernanceStore:
    """Governance storage ports over one AsyncSession."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self.versions = SqlVersionStore(session)
        self.deployments = SqlDeploymentStore(session)
        self.rules = SqlRuleStore(session)
        self.audit = SqlAuditStore(session)
        self._depth = 0

    @asynccontextmanager
    async def transaction(self):
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield
            await self._session.commit()
        except BaseException:
            await self._session.rollback()
            logger.debug("Governance transaction rolled back")
            raise
        finally:
            self._depth = 0
