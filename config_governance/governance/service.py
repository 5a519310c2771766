"""
Configuration Governance Service — the operations exposed to the API layer.
Wires the rule engine, version manager, diff engine, deployment orchestrator,
approval workflow, promotion state machine and audit trail around one
injected store.
"""

import logging
from typing import Optional, Dict, List, Any

from .approval import ApprovalWorkflow
from .audit import AuditTrail
from .deployment import DeploymentOrchestrator
from .diff import DiffEngine
from .models import (
    ConfigVersion, ConfigDeployment, ConfigAuditEntry, ValidationRule,
    ValidationResult, DiffResult, ConfigType, RuleType, Severity,
)
from .ports import GovernanceStore
from .promotion import PromotionStateMachine
from .validation import ValidationRuleEngine, CustomValidator
from .versioning import VersionManager

logger = logging.getLogger(__name__)


class ConfigGovernanceService:
    """Validation, versioning, deployment, approval and promotion of tenant configs."""

    def __init__(self, store: GovernanceStore,
                 custom_validators: Optional[Dict[str, CustomValidator]] = None,
                 initial_version: Optional[str] = None,
                 conflict_retries: Optional[int] = None):
        self._store = store
        self.audit = AuditTrail(store.audit)
        self.validator = ValidationRuleEngine(store.rules, custom_validators)
        self.versions = VersionManager(
            store, self.validator, self.audit,
            initial_version=initial_version, conflict_retries=conflict_retries,
        )
        self.diffs = DiffEngine(store.versions)
        self.deployments = DeploymentOrchestrator(store, self.audit)
        self.approvals = ApprovalWorkflow(store, self.audit)
        self.promotions = PromotionStateMachine(self.versions, self.validator)

    # ── Validation ────────────────────────────────────────────────

    async def validate_config(self, config_type: str, config: Dict[str, Any]) -> ValidationResult:
        return await self.validator.validate(ConfigType(config_type), config)

    # ── Versions ──────────────────────────────────────────────────

    async def create_version(self, tenant_id: str, config_type: str, config_id: str,
                             config: Dict[str, Any], changed_by: str,
                             environment: str = "dev",
                             description: Optional[str] = None) -> ConfigVersion:
        return await self.versions.create_version(
            tenant_id, config_type, config_id, config, changed_by,
            environment=environment, description=description,
        )

    async def get_version(self, version_id: str) -> Optional[ConfigVersion]:
        return await self.versions.get_version(version_id)

    async def list_versions(self, tenant_id: str, config_type: Optional[str] = None,
                            config_id: Optional[str] = None,
                            environment: Optional[str] = None) -> List[ConfigVersion]:
        return await self.versions.list_versions(tenant_id, config_type, config_id, environment)

    async def get_diff(self, version_id_1: str, version_id_2: str) -> Optional[DiffResult]:
        return await self.diffs.get_diff(version_id_1, version_id_2)

    # ── Deployments ───────────────────────────────────────────────

    async def deploy_version(self, version_ids: List[str], deployed_by: str,
                             notes: Optional[str] = None) -> ConfigDeployment:
        return await self.deployments.deploy_version(version_ids, deployed_by, notes)

    async def deploy_approved(self, deployment_id: str, deployed_by: str) -> ConfigDeployment:
        return await self.deployments.deploy_approved(deployment_id, deployed_by)

    async def rollback_deployment(self, deployment_id: str, rolled_back_by: str) -> ConfigDeployment:
        return await self.deployments.rollback_deployment(deployment_id, rolled_back_by)

    async def get_deployment(self, deployment_id: str) -> Optional[ConfigDeployment]:
        return await self.deployments.get_deployment(deployment_id)

    async def list_deployments(self, tenant_id: str, environment: Optional[str] = None,
                               status: Optional[str] = None) -> List[ConfigDeployment]:
        return await self.deployments.list_deployments(tenant_id, environment, status)

    # ── Approvals ─────────────────────────────────────────────────

    async def approve_deployment(self, deployment_id: str, approved_by: str) -> Optional[ConfigDeployment]:
        return await self.approvals.approve_deployment(deployment_id, approved_by)

    async def reject_deployment(self, deployment_id: str, rejected_by: str) -> Optional[ConfigDeployment]:
        return await self.approvals.reject_deployment(deployment_id, rejected_by)

    # ── Promotion ─────────────────────────────────────────────────

    async def promote_to_environment(self, version_id: str, target_environment: str,
                                     promoted_by: str) -> ConfigVersion:
        return await self.promotions.promote_to_environment(version_id, target_environment, promoted_by)

    # ── Audit ─────────────────────────────────────────────────────

    async def get_audit_trail(self, tenant_id: Optional[str] = None,
                              config_type: Optional[str] = None,
                              config_id: Optional[str] = None,
                              user_id: Optional[str] = None,
                              action: Optional[str] = None,
                              limit: Optional[int] = None) -> List[ConfigAuditEntry]:
        return await self.audit.get_audit_trail(
            tenant_id=tenant_id, config_type=config_type, config_id=config_id,
            user_id=user_id, action=action, limit=limit,
        )

    # ── Validation rules ──────────────────────────────────────────

    async def list_rules(self, config_type: Optional[str] = None,
                         is_active: Optional[bool] = None) -> List[ValidationRule]:
        return await self._store.rules.list(
            config_type=ConfigType(config_type).value if config_type else None,
            is_active=is_active,
        )

    async def create_rule(self, name: str, config_type: str, rule_type: str,
                          rule: Dict[str, Any], severity: str = "error",
                          description: str = "") -> ValidationRule:
        created = ValidationRule(
            name=name, description=description,
            config_type=ConfigType(config_type), rule_type=RuleType(rule_type),
            rule=rule, severity=Severity(severity),
        )
        async with self._store.transaction():
            created = await self._store.rules.create(created)
        logger.info(f"Created {created.rule_type.value} rule '{created.name}' for {created.config_type.value}")
        return created
