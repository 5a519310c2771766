"""
Governance models — validation rules, config versions, deployments, audit entries.
Pydantic representations shared by the engine components and every store.
"""

import uuid
from typing import Optional, Dict, List, Any
from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ══════════════════════════════════════════════════════════════════════════════
# Enums
# ══════════════════════════════════════════════════════════════════════════════

class ConfigType(str, Enum):
    PAGE = "page"
    ROUTE = "route"
    BRANDING = "branding"
    MENU = "menu"


class RuleType(str, Enum):
    SCHEMA = "schema"
    LINT = "lint"
    CUSTOM = "custom"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Environment(str, Enum):
    DEV = "dev"
    STAGING = "staging"
    PROD = "prod"


ENVIRONMENT_ORDER = [Environment.DEV, Environment.STAGING, Environment.PROD]


class VersionDeploymentStatus(str, Enum):
    DRAFT = "draft"
    DEPLOYED = "deployed"
    ROLLED_BACK = "rolled_back"


class ValidationStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"


class DeploymentState(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    DEPLOYED = "deployed"
    ROLLED_BACK = "rolled_back"


class AuditAction(str, Enum):
    CREATE = "create"
    DEPLOY = "deploy"
    ROLLBACK = "rollback"
    APPROVE = "approve"
    REJECT = "reject"


class ChangeType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


# ══════════════════════════════════════════════════════════════════════════════
# Persisted records
# ══════════════════════════════════════════════════════════════════════════════

class ValidationRule(BaseModel):
    """A declarative check applied to one config type."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    description: str = ""
    config_type: ConfigType
    rule_type: RuleType
    rule: Dict[str, Any] = Field(default_factory=dict)
    severity: Severity = Severity.ERROR
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ConfigVersion(BaseModel):
    """Immutable snapshot of a config document; only deployment_status changes."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    tenant_id: str
    config_type: ConfigType
    config_id: str
    version: str
    config: Dict[str, Any] = Field(default_factory=dict)
    change_description: Optional[str] = None
    changed_by: str
    deployment_status: VersionDeploymentStatus = VersionDeploymentStatus.DRAFT
    environment: Environment = Environment.DEV
    validation_status: ValidationStatus = ValidationStatus.PASSED
    validation_errors: Optional[List[str]] = None
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def scope(self) -> tuple:
        return (self.tenant_id, self.config_type.value, self.config_id, self.environment.value)


class ConfigDeployment(BaseModel):
    """An atomic bundle of versions marked live in one environment."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    tenant_id: str
    version_ids: List[str]
    environment: Environment
    status: DeploymentState = DeploymentState.PENDING
    deployed_by: str = ""
    deployment_notes: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rollback_from_deployment_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    deployed_at: Optional[datetime] = None


class ConfigAuditEntry(BaseModel):
    """Append-only record of a governance action."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    tenant_id: str
    # None for deployment-level entries (approve / reject), which a
    # config_type filter never returns; their config_id is the deployment id
    config_type: Optional[ConfigType] = None
    config_id: str
    action: AuditAction
    version_id: Optional[str] = None
    deployment_id: Optional[str] = None
    user_id: str
    created_at: datetime = Field(default_factory=utcnow)


# ══════════════════════════════════════════════════════════════════════════════
# Computed results
# ══════════════════════════════════════════════════════════════════════════════

class ValidationIssue(BaseModel):
    rule: str
    severity: Severity = Severity.ERROR
    message: str
    path: Optional[str] = None


class ValidationWarning(BaseModel):
    rule: str
    message: str
    path: Optional[str] = None


class ValidationResult(BaseModel):
    valid: bool = True
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationWarning] = Field(default_factory=list)


class ConfigChange(BaseModel):
    path: str
    type: ChangeType
    old_value: Any = None
    new_value: Any = None


class DiffResult(BaseModel):
    config_type: ConfigType
    config_id: str
    from_version: str
    to_version: str
    changes: List[ConfigChange] = Field(default_factory=list)
