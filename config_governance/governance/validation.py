"""
Validation Rule Engine — evaluates schema, lint and custom rules against a config.
Every active rule for the config type is evaluated; nothing short-circuits.
"""

import re
import logging
from typing import Optional, Dict, Any, Callable, NamedTuple

from .models import (
    ConfigType, RuleType, Severity, ValidationRule,
    ValidationResult, ValidationIssue, ValidationWarning,
)
from .ports import RuleStore

logger = logging.getLogger(__name__)

# validator(rule, config) -> failure message, or None when the config passes
CustomValidator = Callable[[ValidationRule, Dict[str, Any]], Optional[str]]


class RuleOutcome(NamedTuple):
    passed: bool
    message: str = ""
    path: Optional[str] = None


PASS = RuleOutcome(True)


def not_empty(rule: ValidationRule, config: Dict[str, Any]) -> Optional[str]:
    """Built-in custom validator: the config must have at least one key."""
    return None if config else "Configuration must not be empty"


BUILTIN_VALIDATORS: Dict[str, CustomValidator] = {
    "notEmpty": not_empty,
}


class ValidationRuleEngine:
    """Runs the active rules of a config type and collects errors and warnings."""

    def __init__(self, rules: RuleStore,
                 custom_validators: Optional[Dict[str, CustomValidator]] = None):
        self._rules = rules
        self._custom = dict(custom_validators or {})

    def register_validator(self, name: str, validator: CustomValidator) -> None:
        self._custom[name] = validator

    async def validate(self, config_type: ConfigType, config: Dict[str, Any]) -> ValidationResult:
        result = ValidationResult()
        rules = await self._rules.list(config_type=ConfigType(config_type).value, is_active=True)

        for rule in rules:
            outcome = self.apply_rule(rule, config)
            if outcome.passed:
                continue
            if rule.severity == Severity.ERROR:
                result.errors.append(ValidationIssue(
                    rule=rule.name, severity=rule.severity,
                    message=outcome.message or "Validation failed", path=outcome.path,
                ))
            else:
                result.warnings.append(ValidationWarning(
                    rule=rule.name, message=outcome.message, path=outcome.path,
                ))

        result.valid = not result.errors
        logger.debug(
            f"Validated {ConfigType(config_type).value} config against {len(rules)} rules: "
            f"{len(result.errors)} errors, {len(result.warnings)} warnings"
        )
        return result

    def apply_rule(self, rule: ValidationRule, config: Dict[str, Any]) -> RuleOutcome:
        if rule.rule_type == RuleType.SCHEMA:
            return self._check_schema(rule, config)
        if rule.rule_type == RuleType.LINT:
            return self._check_lint(rule, config)
        if rule.rule_type == RuleType.CUSTOM:
            return self._check_custom(rule, config)
        return PASS

    # ── Rule types ────────────────────────────────────────────────

    def _check_schema(self, rule: ValidationRule, config: Dict[str, Any]) -> RuleOutcome:
        for field in rule.rule.get("required") or []:
            if field not in config:
                return RuleOutcome(False, f"Required field '{field}' is missing", field)
        return PASS

    def _check_lint(self, rule: ValidationRule, config: Dict[str, Any]) -> RuleOutcome:
        check = rule.rule.get("check")
        field = rule.rule.get("field")
        if not field:
            return PASS
        value = config.get(field)
        if not isinstance(value, str):
            return PASS

        if check == "naming-convention" and rule.rule.get("pattern"):
            try:
                matched = re.search(rule.rule["pattern"], value) is not None
            except re.error as e:
                return RuleOutcome(False, f"Rule '{rule.name}' has an invalid pattern: {e}", field)
            if not matched:
                if rule.severity == Severity.ERROR:
                    return RuleOutcome(False, f"Field '{field}' does not match naming convention", field)
                return RuleOutcome(False, f"Field '{field}' should match naming convention", field)

        elif check == "max-length" and rule.rule.get("maxLength") is not None:
            max_length = int(rule.rule["maxLength"])
            if len(value) > max_length:
                return RuleOutcome(
                    False, f"Field '{field}' exceeds maximum length of {max_length}", field,
                )
        return PASS

    def _check_custom(self, rule: ValidationRule, config: Dict[str, Any]) -> RuleOutcome:
        validator = self._custom.get(rule.rule.get("validator", ""))
        if validator is None:
            return PASS
        message = validator(rule, config)
        if message:
            return RuleOutcome(False, message, rule.rule.get("path"))
        return PASS
