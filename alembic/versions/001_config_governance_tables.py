"""001 – config governance tables: rules, versions, deployments, audit entries

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ── config_validation_rules ───────────────────────────────────
    op.create_table(
        "config_validation_rules",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(256), nullable=False),
        sa.Column("description", sa.Text, server_default=""),
        sa.Column("config_type", sa.String(20), nullable=False),
        sa.Column("rule_type", sa.String(20), nullable=False),
        sa.Column("rule_json", JSONB, server_default="{}"),
        sa.Column("severity", sa.String(20), server_default="error"),
        sa.Column("is_active", sa.Boolean, server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_config_rules_type_active", "config_validation_rules", ["config_type", "is_active"])

    # ── config_versions ───────────────────────────────────────────
    op.create_table(
        "config_versions",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("config_type", sa.String(20), nullable=False),
        sa.Column("config_id", sa.String(128), nullable=False),
        sa.Column("environment", sa.String(20), nullable=False, server_default="dev"),
        sa.Column("version", sa.String(32), nullable=False),
        sa.Column("config_json", JSONB, server_default="{}"),
        sa.Column("change_description", sa.Text, nullable=True),
        sa.Column("changed_by", sa.String(128), nullable=False),
        sa.Column("deployment_status", sa.String(20), server_default="draft"),
        sa.Column("validation_status", sa.String(20), server_default="passed"),
        sa.Column("validation_errors", JSONB, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "tenant_id", "config_type", "config_id", "environment", "version",
            name="uq_config_versions_scope_version",
        ),
    )
    op.create_index(
        "ix_config_versions_scope", "config_versions",
        ["tenant_id", "config_type", "config_id", "environment"],
    )

    # ── config_deployments ────────────────────────────────────────
    op.create_table(
        "config_deployments",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("version_ids", JSONB, server_default="[]"),
        sa.Column("environment", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), server_default="pending"),
        sa.Column("deployed_by", sa.String(128), server_default=""),
        sa.Column("deployment_notes", sa.Text, nullable=True),
        sa.Column("approved_by", sa.String(128), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rollback_from_deployment_id", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("deployed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_config_deployments_tenant_env", "config_deployments", ["tenant_id", "environment"])
    op.create_index("ix_config_deployments_status", "config_deployments", ["status"])

    # ── config_audit_entries ──────────────────────────────────────
    op.create_table(
        "config_audit_entries",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("config_type", sa.String(20), nullable=True),
        sa.Column("config_id", sa.String(128), nullable=False),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("version_id", sa.String(64), nullable=True),
        sa.Column("deployment_id", sa.String(64), nullable=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_config_audit_tenant_created", "config_audit_entries", ["tenant_id", "created_at"])
    op.create_index("ix_config_audit_config", "config_audit_entries", ["config_type", "config_id"])
    op.create_index("ix_config_audit_user", "config_audit_entries", ["user_id"])


def downgrade() -> None:
    op.drop_table("config_audit_entries")
    op.drop_table("config_deployments")
    op.drop_table("config_versions")
    op.drop_table("config_validation_rules")
