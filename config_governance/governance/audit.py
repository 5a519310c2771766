"""
Audit Trail — append-only log of governance actions.
"""

import logging
from typing import Optional, List

from .models import ConfigAuditEntry, ConfigType, AuditAction
from .ports import AuditStore

logger = logging.getLogger(__name__)


class AuditTrail:

    def __init__(self, store: AuditStore):
        self._store = store

    async def record(
        self, tenant_id: str, config_id: str, action: AuditAction, user_id: str,
        config_type: Optional[ConfigType] = None,
        version_id: Optional[str] = None,
        deployment_id: Optional[str] = None,
    ) -> ConfigAuditEntry:
        entry = ConfigAuditEntry(
            tenant_id=tenant_id, config_type=config_type, config_id=config_id,
            action=action, version_id=version_id, deployment_id=deployment_id,
            user_id=user_id,
        )
        await self._store.append(entry)
        logger.debug(f"Audit {action.value} on {config_id} by {user_id}")
        return entry

    async def get_audit_trail(
        self,
        tenant_id: Optional[str] = None,
        config_type: Optional[str] = None,
        config_id: Optional[str] = None,
        user_id: Optional[str] = None,
        action: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[ConfigAuditEntry]:
        """Entries matching every supplied filter exactly, newest first."""
        if limit is not None and limit <= 0:
            raise ValueError("limit must be a positive integer")
        return await self._store.list(
            tenant_id=tenant_id,
            config_type=ConfigType(config_type).value if config_type else None,
            config_id=config_id,
            user_id=user_id,
            action=AuditAction(action).value if action else None,
            limit=limit,
        )
