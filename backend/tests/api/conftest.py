"""API test fixtures — FastAPI app over the in-memory DB with captured email.

Invariants:
    - get_db overridden: every request gets its own session on the test engine
    - Outbound email captured by RecordingNotifier; links are followed via its tokens
    - bcrypt runs at minimum cost
    - db_manager patched so readiness probes see the test engine

Design Decisions:
    - httpx AsyncClient over ASGITransport: same event loop as the async fixtures
    - signup fixture walks the public API (register, verify, login) instead of seeding rows
"""

import pytest
from httpx import ASGITransport, AsyncClient

from vaultkeep.api.dependencies import get_email_notifier, get_password_hasher
from vaultkeep.infrastructure.database import get_db, DatabaseSessionManager
import vaultkeep.infrastructure.database as db_module
from vaultkeep.main import app

from tests.fakes import fast_hasher


@pytest.fixture
async def client(test_engine, test_session_factory, notifier):
    """FastAPI test client with DB, hasher and notifier overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_password_hasher] = fast_hasher
    app.dependency_overrides[get_email_notifier] = lambda: notifier

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
def signup(client, notifier):
    """Register, verify and log in; returns (user_id, auth headers)."""
    async def _signup(name: str, email: str, password: str = "correct horse"):
        res = await client.post(
            "/api/v1/users",
            json={"name": name, "email": email, "password": password},
        )
        assert res.status_code == 201, res.text
        user_id = res.json()["id"]

        res = await client.get(
            f"/api/v1/users/{user_id}/email/verify",
            params={"token": notifier.last.token},
        )
        assert res.status_code == 200, res.text

        res = await client.post(
            "/api/v1/auth/token",
            data={"username": email, "password": password},
        )
        assert res.status_code == 200, res.text
        token = res.json()["access_token"]
        return user_id, {"Authorization": f"Bearer {token}"}

    return _signup
