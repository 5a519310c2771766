"""
Environment Promotion — dev → staging → prod lineage.
A promotion copies a version's document verbatim into a fresh version of the
target environment, numbered within the target scope.
"""

import logging

from .errors import NotFoundError, InvalidTransitionError
from .models import ConfigVersion, Environment, ENVIRONMENT_ORDER
from .validation import ValidationRuleEngine
from .versioning import VersionManager

logger = logging.getLogger(__name__)


def check_promotion_path(source: Environment, target: Environment) -> None:
    """Raise InvalidTransitionError for a promotion the lineage forbids."""
    if source == target:
        raise InvalidTransitionError(f"Version is already in {target.value} environment")
    if source == Environment.DEV and target == Environment.PROD:
        raise InvalidTransitionError(
            "Cannot promote directly from dev to prod. Must go through staging."
        )


def is_backward(source: Environment, target: Environment) -> bool:
    return ENVIRONMENT_ORDER.index(target) < ENVIRONMENT_ORDER.index(source)


class PromotionStateMachine:

    def __init__(self, versions: VersionManager, validator: ValidationRuleEngine):
        self._versions = versions
        self._validator = validator

    async def promote_to_environment(self, version_id: str, target_environment: str,
                                     promoted_by: str) -> ConfigVersion:
        """Create a copy of `version_id` in `target_environment`."""
        target = Environment(target_environment)
        source = await self._versions.get_version(version_id)
        if not source:
            raise NotFoundError("Version", version_id)

        check_promotion_path(source.environment, target)
        if is_backward(source.environment, target):
            logger.warning(
                f"Backward promotion of {source.config_type.value}/{source.config_id} "
                f"from {source.environment.value} to {target.value} by {promoted_by}"
            )

        result = await self._validator.validate(source.config_type, source.config)
        promoted = await self._versions.create_version(
            source.tenant_id,
            source.config_type,
            source.config_id,
            source.config,
            promoted_by,
            environment=target,
            description=f"Promoted from {source.environment.value} (version {source.version})",
            validation_result=result,
        )
        logger.info(
            f"Promoted {source.config_type.value}/{source.config_id} v{source.version} "
            f"{source.environment.value} → {target.value} as v{promoted.version}"
        )
        return promoted
