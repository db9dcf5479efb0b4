"""Service test fixtures — services wired to the in-memory DB with pinned time.

Invariants:
    - Services share one AsyncSession, like a single request does
    - "now" only moves when a test calls clock.advance()
    - Registration grace window is 24 hours
"""

import pytest

from vaultkeep.repositories import SqlSecretRepository, SqlUserRepository
from vaultkeep.services.account_service import AccountService
from vaultkeep.services.secret_service import SecretService

from tests.fakes import REGISTRATION_TIMEOUT, fast_hasher


@pytest.fixture
def user_repo(test_db):
    return SqlUserRepository(test_db)


@pytest.fixture
def secret_repo(test_db):
    return SqlSecretRepository(test_db)


@pytest.fixture
def account_service(user_repo, notifier, clock):
    return AccountService(
        user_repo, fast_hasher(), notifier, REGISTRATION_TIMEOUT, clock=clock,
    )


@pytest.fixture
def secret_service(secret_repo, user_repo, clock):
    return SecretService(secret_repo, user_repo, clock=clock)


@pytest.fixture
async def verified_user(account_service, notifier):
    """Registered and verified account: ada@x.com / correct horse."""
    user = await account_service.create_user("Ada", "ada@x.com", "correct horse")
    await account_service.verify_email(user.id, notifier.last.token)
    return user


@pytest.fixture
async def other_user(account_service, notifier):
    user = await account_service.create_user("Bob", "bob@x.com", "battery staple")
    await account_service.verify_email(user.id, notifier.last.token)
    return user
