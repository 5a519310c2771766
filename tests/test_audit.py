"""
Tests for the AuditTrail — filtering and ordering of governance actions.
Run: pytest tests/test_audit.py -v
"""
import pytest

PAGE = {"layout": {}, "widgets": []}


@pytest.fixture
def populated(service):
    async def _populate():
        home = await service.create_version("t1", "page", "home", PAGE, "alice")
        menu = await service.create_version("t1", "menu", "main", {"items": []}, "bob")
        await service.create_version("t2", "page", "home", PAGE, "alice")
        deployment = await service.deploy_version([home.id, menu.id], "carol")
        await service.rollback_deployment(deployment.id, "dave")
    return _populate


class TestAuditTrail:

    @pytest.mark.asyncio
    async def test_every_mutation_is_recorded(self, service, populated):
        await populated()
        actions = [e.action.value for e in await service.get_audit_trail()]
        assert actions.count("create") == 3
        assert actions.count("deploy") == 2
        assert actions.count("rollback") == 2

    @pytest.mark.asyncio
    async def test_newest_first(self, service, populated):
        await populated()
        entries = await service.get_audit_trail()
        assert entries[0].action.value == "rollback"
        assert entries[-1].action.value == "create"

    @pytest.mark.asyncio
    async def test_filters_are_exact_and_combined(self, service, populated):
        await populated()
        assert len(await service.get_audit_trail(tenant_id="t1")) == 6
        assert len(await service.get_audit_trail(tenant_id="t2")) == 1
        assert len(await service.get_audit_trail(user_id="alice")) == 2
        assert len(await service.get_audit_trail(tenant_id="t1", user_id="alice")) == 1
        assert len(await service.get_audit_trail(config_type="menu")) == 3
        assert len(await service.get_audit_trail(config_id="home", action="deploy")) == 1
        assert await service.get_audit_trail(tenant_id="t1x") == []

    @pytest.mark.asyncio
    async def test_limit(self, service, populated):
        await populated()
        entries = await service.get_audit_trail(tenant_id="t1", limit=2)
        assert len(entries) == 2
        assert all(e.action.value == "rollback" for e in entries)

    @pytest.mark.asyncio
    async def test_invalid_limit(self, service):
        with pytest.raises(ValueError):
            await service.get_audit_trail(limit=0)

    @pytest.mark.asyncio
    async def test_unknown_action_rejected(self, service):
        with pytest.raises(ValueError):
            await service.get_audit_trail(action="delete")

    @pytest.mark.asyncio
    async def test_failed_guards_leave_no_entries(self, service):
        bad = await service.create_version("t1", "page", "broken", {"layout": {}}, "alice")
        with pytest.raises(ValueError):
            await service.deploy_version([bad.id], "carol")
        with pytest.raises(ValueError):
            await service.promote_to_environment(bad.id, "prod", "carol")
        assert await service.get_audit_trail(user_id="carol") == []
