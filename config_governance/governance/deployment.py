"""
Deployment Orchestrator — bundles versions into all-or-nothing deployments.
Reads the validation status persisted on each version; never re-validates.
Supports rollback (a new rollback record plus an in-place flip of the original)
and completion of deployments approved through the approval workflow.
"""

import logging
from typing import Optional, List

from .audit import AuditTrail
from .errors import (
    NotFoundError, ValidationFailedError, DeploymentScopeError, InvalidTransitionError,
)
from .models import (
    ConfigVersion, ConfigDeployment, DeploymentState, VersionDeploymentStatus,
    ValidationStatus, AuditAction, Environment, utcnow,
)
from .ports import GovernanceStore

logger = logging.getLogger(__name__)


class DeploymentOrchestrator:

    def __init__(self, store: GovernanceStore, audit: AuditTrail):
        self._store = store
        self._audit = audit

    async def _resolve_deployable(self, version_ids: List[str]) -> List[ConfigVersion]:
        """Load and check every member; raises before anything is written."""
        if not version_ids:
            raise ValidationFailedError("A deployment needs at least one version")

        versions = [await self._store.versions.get(vid) for vid in version_ids]
        missing = [vid for vid, v in zip(version_ids, versions) if v is None]
        if missing:
            raise NotFoundError("Version", missing)

        for v in versions:
            if v.validation_status == ValidationStatus.FAILED:
                raise ValidationFailedError(f"Version {v.id} has failed validation", version_id=v.id)

        tenants = {v.tenant_id for v in versions}
        environments = {v.environment for v in versions}
        if len(tenants) > 1:
            raise DeploymentScopeError(
                f"Versions span multiple tenants: {', '.join(sorted(tenants))}"
            )
        if len(environments) > 1:
            raise DeploymentScopeError(
                f"Versions span multiple environments: "
                f"{', '.join(sorted(e.value for e in environments))}"
            )
        return versions

    async def _mark_versions(self, versions: List[ConfigVersion], status: VersionDeploymentStatus,
                             action: AuditAction, deployment_id: str, user_id: str) -> None:
        for v in versions:
            await self._store.versions.update_status(v.id, status)
            await self._audit.record(
                tenant_id=v.tenant_id, config_type=v.config_type, config_id=v.config_id,
                action=action, version_id=v.id, deployment_id=deployment_id, user_id=user_id,
            )

    async def deploy_version(self, version_ids: List[str], deployed_by: str,
                             notes: Optional[str] = None) -> ConfigDeployment:
        """Deploy one or more versions together, or raise without writing anything."""
        version_ids = list(dict.fromkeys(version_ids))
        versions = await self._resolve_deployable(version_ids)

        now = utcnow()
        deployment = ConfigDeployment(
            tenant_id=versions[0].tenant_id,
            version_ids=version_ids,
            environment=versions[0].environment,
            status=DeploymentState.DEPLOYED,
            deployed_by=deployed_by,
            deployment_notes=notes,
            created_at=now,
            deployed_at=now,
        )
        async with self._store.transaction():
            created = await self._store.deployments.create(deployment)
            await self._mark_versions(
                versions, VersionDeploymentStatus.DEPLOYED, AuditAction.DEPLOY,
                created.id, deployed_by,
            )

        logger.info(
            f"Deployed {len(versions)} version(s) to {created.environment.value} "
            f"for tenant {created.tenant_id} as {created.id}"
        )
        return created

    async def deploy_approved(self, deployment_id: str, deployed_by: str) -> ConfigDeployment:
        """Carry an approved deployment through to deployed."""
        deployment = await self._store.deployments.get(deployment_id)
        if not deployment:
            raise NotFoundError("Deployment", deployment_id)
        if deployment.status != DeploymentState.APPROVED:
            raise InvalidTransitionError(
                f"Deployment {deployment_id} is {deployment.status.value}, only approved "
                f"deployments can be deployed"
            )
        versions = await self._resolve_deployable(deployment.version_ids)
        if versions[0].tenant_id != deployment.tenant_id or versions[0].environment != deployment.environment:
            raise DeploymentScopeError(
                f"Deployment {deployment_id} targets {deployment.tenant_id}/"
                f"{deployment.environment.value} but its versions do not"
            )

        async with self._store.transaction():
            updated = await self._store.deployments.update(
                deployment_id, status=DeploymentState.DEPLOYED,
                deployed_by=deployed_by, deployed_at=utcnow(),
            )
            await self._mark_versions(
                versions, VersionDeploymentStatus.DEPLOYED, AuditAction.DEPLOY,
                deployment_id, deployed_by,
            )

        logger.info(f"Deployed approved deployment {deployment_id} by {deployed_by}")
        return updated

    async def rollback_deployment(self, deployment_id: str, rolled_back_by: str) -> ConfigDeployment:
        """Record a rollback of a deployment in any state and return the new rollback record."""
        deployment = await self._store.deployments.get(deployment_id)
        if not deployment:
            raise NotFoundError("Deployment", deployment_id)
        if deployment.status != DeploymentState.DEPLOYED:
            logger.warning(
                f"Rolling back deployment {deployment_id} which is {deployment.status.value}"
            )

        versions = [await self._store.versions.get(vid) for vid in deployment.version_ids]
        versions = [v for v in versions if v is not None]

        now = utcnow()
        rollback = ConfigDeployment(
            tenant_id=deployment.tenant_id,
            version_ids=list(deployment.version_ids),
            environment=deployment.environment,
            status=DeploymentState.ROLLED_BACK,
            deployed_by=rolled_back_by,
            rollback_from_deployment_id=deployment_id,
            deployment_notes=f"Rollback from deployment {deployment_id}",
            created_at=now,
            deployed_at=now,
        )
        async with self._store.transaction():
            created = await self._store.deployments.create(rollback)
            await self._store.deployments.update(deployment_id, status=DeploymentState.ROLLED_BACK)
            await self._mark_versions(
                versions, VersionDeploymentStatus.ROLLED_BACK, AuditAction.ROLLBACK,
                created.id, rolled_back_by,
            )

        logger.info(f"Rolled back deployment {deployment_id} as {created.id} by {rolled_back_by}")
        return created

    async def get_deployment(self, deployment_id: str) -> Optional[ConfigDeployment]:
        return await self._store.deployments.get(deployment_id)

    async def list_deployments(self, tenant_id: str, environment: Optional[str] = None,
                               status: Optional[str] = None) -> List[ConfigDeployment]:
        return await self._store.deployments.list(
            tenant_id,
            environment=Environment(environment).value if environment else None,
            status=DeploymentState(status) if status else None,
        )
