"""
Tests for the ValidationRuleEngine — schema, lint and custom rules.
Run: pytest tests/test_validation.py -v
"""
import pytest
from config_governance.governance.models import ValidationRule
from config_governance.governance.validation import (
    ValidationRuleEngine, BUILTIN_VALIDATORS,
)


async def _add(store, **kwargs):
    return await store.rules.create(ValidationRule(**kwargs))


class TestSchemaRules:

    @pytest.mark.asyncio
    async def test_valid_page_config(self, service):
        result = await service.validate_config("page", {"layout": {}, "widgets": []})
        assert result.valid is True
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_missing_required_field(self, service):
        result = await service.validate_config("page", {"layout": {}})
        assert result.valid is False
        assert len(result.errors) == 1
        err = result.errors[0]
        assert err.rule == "Page Configuration Schema"
        assert err.path == "widgets"
        assert err.message == "Required field 'widgets' is missing"
        assert err.severity.value == "error"

    @pytest.mark.asyncio
    async def test_rules_scoped_by_config_type(self, service):
        # a page-shaped document is not a valid route
        result = await service.validate_config("route", {"layout": {}, "widgets": []})
        assert result.valid is False
        assert result.errors[0].path == "pattern"

    @pytest.mark.asyncio
    async def test_inactive_rules_are_skipped(self, store):
        await _add(store, name="Off", config_type="menu", rule_type="schema",
                   rule={"required": ["items"]}, is_active=False)
        engine = ValidationRuleEngine(store.rules)
        result = await engine.validate("menu", {})
        assert result.valid is True

    @pytest.mark.asyncio
    async def test_all_rules_evaluated(self, store):
        await _add(store, name="A", config_type="branding", rule_type="schema",
                   rule={"required": ["colors"]})
        await _add(store, name="B", config_type="branding", rule_type="schema",
                   rule={"required": ["logo"]})
        engine = ValidationRuleEngine(store.rules)
        result = await engine.validate("branding", {})
        assert [e.rule for e in result.errors] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_warning_severity_schema_does_not_invalidate(self, store):
        await _add(store, name="Soft", config_type="branding", rule_type="schema",
                   rule={"required": ["favicon"]}, severity="warning")
        engine = ValidationRuleEngine(store.rules)
        result = await engine.validate("branding", {"colors": {}})
        assert result.valid is True
        assert result.warnings[0].path == "favicon"


class TestLintRules:

    @pytest.mark.asyncio
    async def test_warning_lint_keeps_config_valid(self, service):
        result = await service.validate_config(
            "page", {"layout": {}, "widgets": [], "pageId": "Home_Page"},
        )
        assert result.valid is True
        assert len(result.warnings) == 1
        assert result.warnings[0].path == "pageId"
        assert "should match naming convention" in result.warnings[0].message

    @pytest.mark.asyncio
    async def test_matching_value_has_no_warning(self, service):
        result = await service.validate_config(
            "page", {"layout": {}, "widgets": [], "pageId": "home-page"},
        )
        assert result.warnings == []

    @pytest.mark.asyncio
    async def test_error_lint_invalidates(self, store):
        await _add(store, name="Strict Slug", config_type="route", rule_type="lint",
                   rule={"check": "naming-convention", "field": "pattern", "pattern": "^/"},
                   severity="error")
        engine = ValidationRuleEngine(store.rules)
        result = await engine.validate("route", {"pattern": "about"})
        assert result.valid is False
        assert "does not match naming convention" in result.errors[0].message

    @pytest.mark.asyncio
    async def test_non_string_field_is_ignored(self, store):
        await _add(store, name="Strict", config_type="route", rule_type="lint",
                   rule={"check": "naming-convention", "field": "pattern", "pattern": "^/"})
        engine = ValidationRuleEngine(store.rules)
        assert (await engine.validate("route", {"pattern": 42})).valid is True
        assert (await engine.validate("route", {})).valid is True

    @pytest.mark.asyncio
    async def test_max_length(self, store):
        await _add(store, name="Short Title", config_type="menu", rule_type="lint",
                   rule={"check": "max-length", "field": "title", "maxLength": 5})
        engine = ValidationRuleEngine(store.rules)
        assert (await engine.validate("menu", {"title": "Main"})).valid is True
        result = await engine.validate("menu", {"title": "Main navigation"})
        assert result.valid is False
        assert "maximum length of 5" in result.errors[0].message

    @pytest.mark.asyncio
    async def test_invalid_pattern_fails_rule(self, store):
        await _add(store, name="Broken", config_type="menu", rule_type="lint",
                   rule={"check": "naming-convention", "field": "title", "pattern": "(["})
        engine = ValidationRuleEngine(store.rules)
        result = await engine.validate("menu", {"title": "x"})
        assert result.valid is False
        assert "invalid pattern" in result.errors[0].message


class TestCustomRules:

    @pytest.mark.asyncio
    async def test_custom_rules_pass_through_by_default(self, service):
        # seeded notEmpty rules exist but no validator is registered
        result = await service.validate_config("menu", {"items": []})
        assert result.valid is True

    @pytest.mark.asyncio
    async def test_registered_validator_runs(self, seeded_store):
        engine = ValidationRuleEngine(seeded_store.rules, BUILTIN_VALIDATORS)
        result = await engine.validate("page", {})
        messages = [e.message for e in result.errors]
        assert "Configuration must not be empty" in messages

    @pytest.mark.asyncio
    async def test_register_validator(self, store):
        await _add(store, name="No Beta", config_type="branding", rule_type="custom",
                   rule={"validator": "noBeta"}, severity="info")
        engine = ValidationRuleEngine(store.rules)
        engine.register_validator(
            "noBeta", lambda rule, cfg: "beta flag set" if cfg.get("beta") else None,
        )
        result = await engine.validate("branding", {"beta": True})
        assert result.valid is True
        assert result.warnings[0].message == "beta flag set"


class TestRuleAdministration:

    @pytest.mark.asyncio
    async def test_list_rules_filters(self, service):
        assert len(await service.list_rules()) == 9
        page_rules = await service.list_rules(config_type="page", is_active=True)
        assert {r.rule_type.value for r in page_rules} == {"schema", "lint", "custom"}

    @pytest.mark.asyncio
    async def test_created_rule_applies_to_new_versions(self, service):
        rule = await service.create_rule(
            name="Branding Logo", config_type="branding", rule_type="schema",
            rule={"required": ["logo"]}, description="Branding must set a logo",
        )
        assert rule.is_active is True
        assert rule.severity.value == "error"
        assert rule.id in [r.id for r in await service.list_rules(config_type="branding")]

        v = await service.create_version("t1", "branding", "default", {"colors": {}}, "u1")
        assert v.validation_errors == ["Required field 'logo' is missing"]

    @pytest.mark.asyncio
    async def test_unknown_rule_type_rejected(self, service):
        with pytest.raises(ValueError):
            await service.create_rule(name="x", config_type="page", rule_type="regex", rule={})
