"""
Shared fixtures: storage backends, seeded workspace and session factories.
"""

import pytest
import pytest_asyncio

from postelma.auth import SessionContext
from postelma.config import Settings, get_settings
from postelma.config_loader import load_seed
from postelma.core.models import Plan, Role, User
from postelma.storage import InMemoryMetadataStorage


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached process-wide; isolate each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def storage():
    """Empty in-memory storage."""
    return InMemoryMetadataStorage()


@pytest_asyncio.fixture
async def seeded_storage(storage):
    """Storage loaded with the demo fixture (one user per role, three accounts)."""
    await load_seed(storage)
    return storage


@pytest.fixture
def make_session():
    """
    Build a SessionContext for a role.

    User ids follow the seed fixture ("user_owner", "user_manager", ...).
    """
    def _make(role, plan=Plan.FREE, user_id=None):
        role = Role(role)
        user = User(
            id=user_id or f"user_{role.value}",
            email=f"{role.value}@example.com",
            name=f"{role.value.title()} User",
            role=role,
        )
        return SessionContext(user=user, plan=plan)

    return _make
