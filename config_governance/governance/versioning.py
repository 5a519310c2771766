"""
Version Manager — immutable, monotonically numbered config versions.
Every create runs validation; a failed result is recorded on the version
but only blocks a later deployment, never the create itself.
"""

import logging
from typing import Optional, Dict, List, Any, Tuple

from config_governance.config.settings import settings
from .audit import AuditTrail
from .errors import VersionConflictError
from .models import (
    ConfigVersion, ConfigType, Environment, AuditAction,
    ValidationStatus, ValidationResult,
)
from .ports import GovernanceStore
from .validation import ValidationRuleEngine

logger = logging.getLogger(__name__)


def parse_version(version: str) -> Tuple[int, int, int]:
    major, minor, patch = (int(p) for p in version.split("."))
    return major, minor, patch


def bump_patch(version: str) -> str:
    major, minor, patch = parse_version(version)
    return f"{major}.{minor}.{patch + 1}"


class VersionManager:

    def __init__(self, store: GovernanceStore, validator: ValidationRuleEngine,
                 audit: AuditTrail,
                 initial_version: Optional[str] = None,
                 conflict_retries: Optional[int] = None):
        self._store = store
        self._validator = validator
        self._audit = audit
        self._initial_version = initial_version or settings.initial_version
        self._conflict_retries = (
            settings.version_conflict_retries if conflict_retries is None else conflict_retries
        )

    async def next_version_number(self, tenant_id: str, config_type: ConfigType,
                                  config_id: str, environment: Environment) -> str:
        """Patch bump of the highest version in the scope, or the initial version."""
        existing = await self._store.versions.list(
            tenant_id, config_type=config_type.value,
            config_id=config_id, environment=environment.value,
        )
        if not existing:
            return self._initial_version
        latest = max(existing, key=lambda v: parse_version(v.version))
        return bump_patch(latest.version)

    async def create_version(
        self,
        tenant_id: str,
        config_type: str,
        config_id: str,
        config: Dict[str, Any],
        changed_by: str,
        environment: str = "dev",
        description: Optional[str] = None,
        validation_result: Optional[ValidationResult] = None,
    ) -> ConfigVersion:
        """Validate and persist a new draft version, writing a `create` audit entry.

        `validation_result` lets a caller that already validated this exact
        document (promotion) attach its result instead of validating twice.
        """
        config_type = ConfigType(config_type)
        environment = Environment(environment)
        result = validation_result or await self._validator.validate(config_type, config)

        attempt = 0
        while True:
            number = await self.next_version_number(tenant_id, config_type, config_id, environment)
            version = ConfigVersion(
                tenant_id=tenant_id,
                config_type=config_type,
                config_id=config_id,
                version=number,
                config=config,
                change_description=description,
                changed_by=changed_by,
                environment=environment,
                validation_status=ValidationStatus.PASSED if result.valid else ValidationStatus.FAILED,
                validation_errors=None if result.valid else [e.message for e in result.errors],
            )
            try:
                async with self._store.transaction():
                    created = await self._store.versions.create(version)
                    await self._audit.record(
                        tenant_id=tenant_id, config_type=config_type, config_id=config_id,
                        action=AuditAction.CREATE, version_id=created.id, user_id=changed_by,
                    )
            except VersionConflictError:
                attempt += 1
                if attempt > self._conflict_retries:
                    raise
                logger.warning(
                    f"Version {number} of {config_type.value}/{config_id} taken concurrently, "
                    f"retrying ({attempt}/{self._conflict_retries})"
                )
                continue

            logger.info(
                f"Created {config_type.value}/{config_id} v{created.version} in "
                f"{environment.value} for tenant {tenant_id} "
                f"(validation {created.validation_status.value})"
            )
            return created

    async def get_version(self, version_id: str) -> Optional[ConfigVersion]:
        return await self._store.versions.get(version_id)

    async def list_versions(self, tenant_id: str, config_type: Optional[str] = None,
                            config_id: Optional[str] = None,
                            environment: Optional[str] = None) -> List[ConfigVersion]:
        return await self._store.versions.list(
            tenant_id,
            config_type=ConfigType(config_type).value if config_type else None,
            config_id=config_id,
            environment=Environment(environment).value if environment else None,
        )
