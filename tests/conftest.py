"""
Shared fixtures for the config governance test suite.
"""
import sys
import os
import pytest
import pytest_asyncio

# Ensure project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# Set env vars before any imports that read them
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_LEVEL", "DEBUG")


@pytest.fixture
def store():
    """Fresh in-memory governance store (no rules)."""
    from config_governance.governance.memory_store import InMemoryGovernanceStore
    return InMemoryGovernanceStore()


@pytest_asyncio.fixture
async def seeded_store(store):
    """In-memory store holding the default validation rules."""
    from config_governance.seed.default_rules import seed_default_rules
    await seed_default_rules(store)
    return store


@pytest.fixture
def service(seeded_store):
    """ConfigGovernanceService over the seeded in-memory store."""
    from config_governance.governance.service import ConfigGovernanceService
    return ConfigGovernanceService(seeded_store)


@pytest.fixture
def make_pending(store):
    """Create a pending deployment the way an external requester would."""
    from config_governance.governance.models import ConfigDeployment, DeploymentState

    async def _make(*versions):
        deployment = ConfigDeployment(
            tenant_id=versions[0].tenant_id,
            version_ids=[v.id for v in versions],
            environment=versions[0].environment,
            status=DeploymentState.PENDING,
            deployed_by="requester",
        )
        return await store.deployments.create(deployment)

    return _make
