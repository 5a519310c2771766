"""
Tests for the ApprovalWorkflow — pending deployments approved or rejected.
Run: pytest tests/test_approval.py -v
"""
import pytest

TENANT = "tenant-acme"


@pytest.fixture
def page_version(service):
    async def _make():
        return await service.create_version(
            TENANT, "page", "home", {"layout": {}, "widgets": []}, "author",
        )
    return _make


class TestApprove:

    @pytest.mark.asyncio
    async def test_approve_pending(self, service, make_pending, page_version):
        pending = await make_pending(await page_version())
        approved = await service.approve_deployment(pending.id, "reviewer")
        assert approved is not None
        assert approved.status.value == "approved"
        assert approved.approved_by == "reviewer"
        assert approved.approved_at is not None

        entries = await service.get_audit_trail(action="approve")
        assert len(entries) == 1
        assert entries[0].deployment_id == pending.id
        assert entries[0].config_id == pending.id
        assert entries[0].config_type is None
        assert entries[0].user_id == "reviewer"
        assert entries[0].tenant_id == TENANT

    @pytest.mark.asyncio
    async def test_approvals_found_by_deployment_not_config_type(self, service, make_pending,
                                                                 page_version):
        pending = await make_pending(await page_version())
        await service.approve_deployment(pending.id, "reviewer")

        assert await service.get_audit_trail(config_type="page", action="approve") == []
        entries = await service.get_audit_trail(config_id=pending.id)
        assert [e.action.value for e in entries] == ["approve"]

    @pytest.mark.asyncio
    async def test_approve_is_noop_when_not_pending(self, service, make_pending, page_version):
        pending = await make_pending(await page_version())
        await service.approve_deployment(pending.id, "reviewer")
        assert await service.approve_deployment(pending.id, "someone-else") is None
        assert await service.reject_deployment(pending.id, "someone-else") is None

        current = await service.get_deployment(pending.id)
        assert current.status.value == "approved"
        assert current.approved_by == "reviewer"
        assert len(await service.get_audit_trail(action="approve")) == 1
        assert await service.get_audit_trail(action="reject") == []

    @pytest.mark.asyncio
    async def test_unknown_deployment_returns_none(self, service):
        assert await service.approve_deployment("ghost", "reviewer") is None
        assert await service.reject_deployment("ghost", "reviewer") is None

    @pytest.mark.asyncio
    async def test_directly_deployed_cannot_be_approved(self, service, page_version):
        v = await page_version()
        deployment = await service.deploy_version([v.id], "u1")
        before = await service.get_audit_trail()
        assert await service.approve_deployment(deployment.id, "reviewer") is None
        assert (await service.get_deployment(deployment.id)).status.value == "deployed"
        assert len(await service.get_audit_trail()) == len(before)


class TestReject:

    @pytest.mark.asyncio
    async def test_reject_pending(self, service, make_pending, page_version):
        pending = await make_pending(await page_version())
        rejected = await service.reject_deployment(pending.id, "reviewer")
        assert rejected.status.value == "rejected"
        assert rejected.approved_by is None

        entries = await service.get_audit_trail(action="reject")
        assert len(entries) == 1
        assert entries[0].user_id == "reviewer"

    @pytest.mark.asyncio
    async def test_rejected_is_terminal(self, service, make_pending, page_version):
        pending = await make_pending(await page_version())
        await service.reject_deployment(pending.id, "reviewer")
        assert await service.approve_deployment(pending.id, "reviewer") is None
        assert (await service.get_deployment(pending.id)).status.value == "rejected"
