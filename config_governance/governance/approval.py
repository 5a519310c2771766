"""
Approval Workflow — pending → approved / rejected gate for deployments
created out-of-band. Anything not pending is left untouched and None is
returned, so polling callers can retry safely.
"""

import logging
from typing import Optional

from .audit import AuditTrail
from .models import ConfigDeployment, DeploymentState, AuditAction, utcnow
from .ports import GovernanceStore

logger = logging.getLogger(__name__)


class ApprovalWorkflow:

    def __init__(self, store: GovernanceStore, audit: AuditTrail):
        self._store = store
        self._audit = audit

    async def _pending(self, deployment_id: str) -> Optional[ConfigDeployment]:
        deployment = await self._store.deployments.get(deployment_id)
        if not deployment or deployment.status != DeploymentState.PENDING:
            logger.warning(f"Deployment {deployment_id} is not pending; ignoring decision")
            return None
        return deployment

    async def approve_deployment(self, deployment_id: str, approved_by: str) -> Optional[ConfigDeployment]:
        """Approve a pending deployment."""
        if not await self._pending(deployment_id):
            return None
        async with self._store.transaction():
            updated = await self._store.deployments.update(
                deployment_id, status=DeploymentState.APPROVED,
                approved_by=approved_by, approved_at=utcnow(),
            )
            await self._audit.record(
                tenant_id=updated.tenant_id, config_id=deployment_id,
                action=AuditAction.APPROVE, deployment_id=deployment_id, user_id=approved_by,
            )
        logger.info(f"Deployment {deployment_id} approved by {approved_by}")
        return updated

    async def reject_deployment(self, deployment_id: str, rejected_by: str) -> Optional[ConfigDeployment]:
        """Reject a pending deployment."""
        if not await self._pending(deployment_id):
            return None
        async with self._store.transaction():
            updated = await self._store.deployments.update(
                deployment_id, status=DeploymentState.REJECTED,
            )
            await self._audit.record(
                tenant_id=updated.tenant_id, config_id=deployment_id,
                action=AuditAction.REJECT, deployment_id=deployment_id, user_id=rejected_by,
            )
        logger.info(f"Deployment {deployment_id} rejected by {rejected_by}")
        return updated
