"""
Default validation rules installed on first startup.
Only inserts if the rule store is empty (idempotent).
"""

import logging
from typing import Any, Dict, List

from config_governance.governance.models import ValidationRule
from config_governance.governance.ports import GovernanceStore

logger = logging.getLogger(__name__)


SEED_RULES: List[Dict[str, Any]] = [
    # ── Page ──────────────────────────────────────────────────────
    {
        "id": "rule-001",
        "name": "Page Configuration Schema",
        "description": "Validates that page configurations have required fields",
        "config_type": "page",
        "rule_type": "schema",
        "rule": {
            "required": ["layout", "widgets"],
            "properties": {"layout": {"type": "object"}, "widgets": {"type": "array"}},
        },
        "severity": "error",
    },
    {
        "id": "rule-002",
        "name": "Page ID Naming Convention",
        "description": "Ensures page IDs follow kebab-case naming convention",
        "config_type": "page",
        "rule_type": "lint",
        "rule": {
            "check": "naming-convention",
            "field": "pageId",
            "pattern": "^[a-z0-9]+(-[a-z0-9]+)*$",
        },
        "severity": "warning",
    },
    # ── Route ─────────────────────────────────────────────────────
    {
        "id": "rule-003",
        "name": "Route Configuration Schema",
        "description": "Validates that route configurations have required fields",
        "config_type": "route",
        "rule_type": "schema",
        "rule": {
            "required": ["pattern", "pageId"],
            "properties": {"pattern": {"type": "string"}, "pageId": {"type": "string"}},
        },
        "severity": "error",
    },
    # ── Branding ──────────────────────────────────────────────────
    {
        "id": "rule-004",
        "name": "Branding Configuration Schema",
        "description": "Validates that branding configurations have required fields",
        "config_type": "branding",
        "rule_type": "schema",
        "rule": {"required": ["colors"], "properties": {"colors": {"type": "object"}}},
        "severity": "error",
    },
    # ── Menu ──────────────────────────────────────────────────────
    {
        "id": "rule-005",
        "name": "Menu Configuration Schema",
        "description": "Validates that menu configurations have required fields",
        "config_type": "menu",
        "rule_type": "schema",
        "rule": {"required": ["items"], "properties": {"items": {"type": "array"}}},
        "severity": "error",
    },
] + [
    # Runs only where the "notEmpty" validator is registered
    {
        "id": f"rule-006-{config_type}",
        "name": "No Empty Configurations",
        "description": "Ensures configurations are not empty objects",
        "config_type": config_type,
        "rule_type": "custom",
        "rule": {"validator": "notEmpty"},
        "severity": "error",
    }
    for config_type in ("page", "route", "branding", "menu")
]


async def seed_default_rules(store: GovernanceStore) -> int:
    """Install SEED_RULES if the store holds no rules. Returns the number inserted."""
    if await store.rules.list():
        return 0
    async with store.transaction():
        for data in SEED_RULES:
            await store.rules.create(ValidationRule(**data))
    logger.info(f"Seeded {len(SEED_RULES)} validation rules")
    return len(SEED_RULES)
