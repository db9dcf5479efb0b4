"""Root conftest — shared test configuration and database fixtures.

Invariants:
    - Every test gets a fresh in-memory SQLite database with the full schema
    - Environment is pinned before any vaultkeep module reads settings

Design Decisions:
    - SQLite in-memory over PostgreSQL: fast, no external dependency; the unique
      (secret_id, version) and unique email constraints behave the same
    - StaticPool: every session of a test shares the one in-memory connection
"""

import os

# Never touch a real database, mail server or production signing key from tests
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-signing-key")
os.environ.setdefault("SMTP_HOST", "")

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from vaultkeep.db.base import Base  # noqa: E402
import vaultkeep.models  # noqa: E402,F401  (registers tables on Base.metadata)

from tests.fakes import FixedClock, RecordingNotifier  # noqa: E402


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()
