"""
SQLAlchemy ORM models for the governance engine.
Maps to PostgreSQL tables via Alembic migrations.
"""
import uuid
from datetime import datetime

from sqlalchemy import (
    String, Text, Boolean, DateTime, Index, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from config_governance.db.base import Base, JSONType
from config_governance.governance.models import utcnow


# ── Validation Rules ──────────────────────────────────────────────────────────

class ConfigValidationRuleModel(Base):
    """Declarative schema/lint/custom rule applied to one config type."""
    __tablename__ = "config_validation_rules"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    config_type: Mapped[str] = mapped_column(String(20), nullable=False)
    rule_type: Mapped[str] = mapped_column(String(20), nullable=False)
    rule_json: Mapped[dict] = mapped_column(JSONType, default=dict)
    severity: Mapped[str] = mapped_column(String(20), default="error")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_config_rules_type_active", "config_type", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<ConfigValidationRule id={self.id} name={self.name!r} type={self.rule_type}>"


# ── Versions ──────────────────────────────────────────────────────────────────

class ConfigVersionModel(Base):
    """Immutable config snapshot; only deployment_status is ever updated."""
    __tablename__ = "config_versions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    config_type: Mapped[str] = mapped_column(String(20), nullable=False)
    config_id: Mapped[str] = mapped_column(String(128), nullable=False)
    environment: Mapped[str] = mapped_column(String(20), nullable=False, default="dev")
    version: Mapped[str] = mapped_column(String(32), nullable=False)
    config_json: Mapped[dict] = mapped_column(JSONType, default=dict)
    change_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    changed_by: Mapped[str] = mapped_column(String(128), nullable=False)
    deployment_status: Mapped[str] = mapped_column(String(20), default="draft")
    validation_status: Mapped[str] = mapped_column(String(20), default="passed")
    validation_errors: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint(
            "tenant_id", "config_type", "config_id", "environment", "version",
            name="uq_config_versions_scope_version",
        ),
        Index("ix_config_versions_scope", "tenant_id", "config_type", "config_id", "environment"),
    )

    def __repr__(self) -> str:
        return f"<ConfigVersion id={self.id} {self.config_type}/{self.config_id} v{self.version} env={self.environment}>"


# ── Deployments ───────────────────────────────────────────────────────────────

class ConfigDeploymentModel(Base):
    __tablename__ = "config_deployments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    version_ids: Mapped[list] = mapped_column(JSONType, default=list)
    environment: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending")
    deployed_by: Mapped[str] = mapped_column(String(128), default="")
    deployment_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rollback_from_deployment_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    deployed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_config_deployments_tenant_env", "tenant_id", "environment"),
        Index("ix_config_deployments_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<ConfigDeployment id={self.id} env={self.environment} status={self.status}>"


# ── Audit ─────────────────────────────────────────────────────────────────────

class ConfigAuditEntryModel(Base):
    """Append-only; rows are never updated or deleted."""
    __tablename__ = "config_audit_entries"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    config_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    config_id: Mapped[str] = mapped_column(String(128), nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    version_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    deployment_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index("ix_config_audit_tenant_created", "tenant_id", "created_at"),
        Index("ix_config_audit_config", "config_type", "config_id"),
        Index("ix_config_audit_user", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<ConfigAuditEntry id={self.id} action={self.action} config={self.config_id}>"
