"""
Tests for the PromotionStateMachine — dev → staging → prod lineage.
Run: pytest tests/test_promotion.py -v
"""
import pytest
from config_governance.governance.errors import NotFoundError, InvalidTransitionError
from config_governance.governance.models import Environment
from config_governance.governance.promotion import check_promotion_path, is_backward

TENANT = "tenant-acme"
PAGE = {"layout": {"type": "grid"}, "widgets": []}


class TestPromotionPath:

    def test_forward_paths_allowed(self):
        check_promotion_path(Environment.DEV, Environment.STAGING)
        check_promotion_path(Environment.STAGING, Environment.PROD)

    def test_backward_paths_allowed(self):
        check_promotion_path(Environment.PROD, Environment.STAGING)
        check_promotion_path(Environment.PROD, Environment.DEV)
        assert is_backward(Environment.PROD, Environment.STAGING)
        assert not is_backward(Environment.DEV, Environment.STAGING)

    def test_dev_to_prod_rejected(self):
        with pytest.raises(InvalidTransitionError, match="Must go through staging"):
            check_promotion_path(Environment.DEV, Environment.PROD)

    @pytest.mark.parametrize("env", list(Environment))
    def test_same_environment_rejected(self, env):
        with pytest.raises(InvalidTransitionError, match="already in"):
            check_promotion_path(env, env)


class TestPromoteToEnvironment:

    @pytest.mark.asyncio
    async def test_dev_to_staging(self, service):
        await service.create_version(TENANT, "page", "home", PAGE, "u1")
        source = await service.create_version(TENANT, "page", "home", dict(PAGE, title="Home"), "u1")
        assert source.version == "1.0.1"

        promoted = await service.promote_to_environment(source.id, "staging", "releaser")
        assert promoted.id != source.id
        assert promoted.environment.value == "staging"
        assert promoted.version == "1.0.0"
        assert promoted.config == source.config
        assert promoted.changed_by == "releaser"
        assert promoted.deployment_status.value == "draft"
        assert promoted.change_description == "Promoted from dev (version 1.0.1)"

        # source is untouched
        assert (await service.get_version(source.id)).environment.value == "dev"

    @pytest.mark.asyncio
    async def test_repeat_promotions_number_within_target(self, service):
        source = await service.create_version(TENANT, "page", "home", PAGE, "u1")
        first = await service.promote_to_environment(source.id, "staging", "releaser")
        second = await service.promote_to_environment(source.id, "staging", "releaser")
        assert (first.version, second.version) == ("1.0.0", "1.0.1")

    @pytest.mark.asyncio
    async def test_staging_to_prod(self, service):
        source = await service.create_version(TENANT, "page", "home", PAGE, "u1")
        staged = await service.promote_to_environment(source.id, "staging", "releaser")
        live = await service.promote_to_environment(staged.id, "prod", "releaser")
        assert live.environment.value == "prod"
        assert live.change_description == "Promoted from staging (version 1.0.0)"

    @pytest.mark.asyncio
    async def test_dev_to_prod_rejected_without_writes(self, service):
        source = await service.create_version(TENANT, "page", "home", PAGE, "u1")
        with pytest.raises(InvalidTransitionError):
            await service.promote_to_environment(source.id, "prod", "releaser")
        assert await service.list_versions(TENANT, environment="prod") == []
        assert len(await service.get_audit_trail(tenant_id=TENANT)) == 1

    @pytest.mark.asyncio
    async def test_same_environment_rejected(self, service):
        source = await service.create_version(TENANT, "page", "home", PAGE, "u1")
        with pytest.raises(InvalidTransitionError):
            await service.promote_to_environment(source.id, "dev", "releaser")

    @pytest.mark.asyncio
    async def test_backward_promotion_allowed(self, service):
        source = await service.create_version(TENANT, "page", "home", PAGE, "u1",
                                              environment="prod")
        back = await service.promote_to_environment(source.id, "staging", "releaser")
        assert back.environment.value == "staging"

    @pytest.mark.asyncio
    async def test_unknown_version(self, service):
        with pytest.raises(NotFoundError):
            await service.promote_to_environment("ghost", "staging", "releaser")

    @pytest.mark.asyncio
    async def test_validation_result_attached(self, service):
        source = await service.create_version(TENANT, "page", "broken", {"layout": {}}, "u1")
        promoted = await service.promote_to_environment(source.id, "staging", "releaser")
        assert promoted.validation_status.value == "failed"
        assert promoted.validation_errors == ["Required field 'widgets' is missing"]

    @pytest.mark.asyncio
    async def test_promotion_revalidates_against_current_rules(self, service):
        source = await service.create_version(TENANT, "menu", "main", {"items": []}, "u1")
        assert source.validation_status.value == "passed"
        await service.create_rule(
            name="Menu Title", config_type="menu", rule_type="schema",
            rule={"required": ["title"]},
        )
        promoted = await service.promote_to_environment(source.id, "staging", "releaser")
        assert promoted.validation_status.value == "failed"

    @pytest.mark.asyncio
    async def test_promotion_writes_create_audit(self, service):
        source = await service.create_version(TENANT, "page", "home", PAGE, "u1")
        promoted = await service.promote_to_environment(source.id, "staging", "releaser")
        entries = await service.get_audit_trail(user_id="releaser")
        assert len(entries) == 1
        assert entries[0].action.value == "create"
        assert entries[0].version_id == promoted.id
