"""Account Service — registration, verification, email change and credentials against a real DB.

Invariants:
    - Abandoned unverified registrations (older than the window) are overwritten in place
    - Verified accounts and fresh unverified ones keep their email claimed
    - Expiry beats token validity; redeemed tokens cannot be replayed
    - Email dispatch failure never undoes the persisted change
    - A lost optimistic-lock race surfaces as ConcurrencyError

Design Decisions:
    - FixedClock instead of sleeping: the 24h window is crossed with clock.advance()
"""

from datetime import timedelta

import pytest
from sqlalchemy import text
from sqlalchemy.exc import InvalidRequestError

from vaultkeep.core.errors import (
    ConcurrencyError,
    EmailAlreadyExistsError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    InvalidTokenError,
    ResourceNotFoundError,
    TokenExpiredError,
)
from vaultkeep.models.user import User
from vaultkeep.repositories import SqlUserRepository
from vaultkeep.services.account_service import AccountService, new_email_token

from tests.fakes import REGISTRATION_TIMEOUT, FailingNotifier, fast_hasher


# ─── create_user ─────────────────────────────────────────────────

async def test_create_user_starts_unverified(account_service, notifier, clock):
    user = await account_service.create_user("Ada", "ada@x.com", "correct horse")

    assert user.email_verified is False
    assert user.pending_email is None
    assert user.created_at == clock.now
    assert user.password_hash != "correct horse"
    assert notifier.last.kind == "verify"
    assert notifier.last.user_id == user.id
    assert notifier.last.token == user.email_token


async def test_duplicate_inside_window_is_rejected_without_changes(
    account_service, notifier, clock,
):
    user = await account_service.create_user("Ada", "ada@x.com", "correct horse")
    clock.advance(timedelta(hours=23))

    with pytest.raises(EmailAlreadyExistsError):
        await account_service.create_user("Eve", "ada@x.com", "other password")

    assert user.name == "Ada"
    assert len(notifier.sent) == 1


async def test_abandoned_registration_is_overwritten(account_service, notifier, clock):
    first = await account_service.create_user("Ada", "ada@x.com", "correct horse")
    first_id, first_token = first.id, first.email_token
    clock.advance(timedelta(hours=25))

    second = await account_service.create_user("Eve", "ada@x.com", "other password")

    assert second.id == first_id
    assert second.name == "Eve"
    assert second.created_at == clock.now
    assert second.email_token != first_token
    assert notifier.last.token == second.email_token
    with pytest.raises(InvalidTokenError):
        await account_service.verify_email(second.id, first_token)


async def test_overwritten_registration_gets_a_fresh_window(account_service, notifier, clock):
    await account_service.create_user("Ada", "ada@x.com", "correct horse")
    clock.advance(timedelta(hours=25))
    user = await account_service.create_user("Eve", "ada@x.com", "other password")
    clock.advance(timedelta(hours=23))

    verified = await account_service.verify_email(user.id, notifier.last.token)
    assert verified.email_verified is True


async def test_verified_email_is_never_overwritten(verified_user, account_service, clock):
    clock.advance(timedelta(days=30))
    with pytest.raises(EmailAlreadyExistsError):
        await account_service.create_user("Eve", "ada@x.com", "other password")


async def test_registration_survives_mail_outage(user_repo, clock):
    failing = FailingNotifier()
    service = AccountService(
        user_repo, fast_hasher(), failing, REGISTRATION_TIMEOUT, clock=clock,
    )

    user = await service.create_user("Ada", "ada@x.com", "correct horse")

    assert failing.attempts == 1
    stored = await user_repo.get_by_email("ada@x.com")
    assert stored is not None
    assert stored.id == user.id


async def test_store_rejects_second_row_with_same_email(account_service, user_repo, clock):
    await account_service.create_user("Ada", "ada@x.com", "correct horse")
    twin = User(
        name="Eve", email="ada@x.com", password_hash="x",
        email_verified=False, created_at=clock.now,
    )
    with pytest.raises(EmailAlreadyExistsError):
        await user_repo.save(twin)


# ─── verify_email ────────────────────────────────────────────────

async def test_verify_email_with_valid_token(account_service, notifier):
    user = await account_service.create_user("Ada", "ada@x.com", "correct horse")

    verified = await account_service.verify_email(user.id, notifier.last.token)

    assert verified.email_verified is True
    assert verified.email_token is None


async def test_verification_token_cannot_be_replayed(account_service, notifier):
    user = await account_service.create_user("Ada", "ada@x.com", "correct horse")
    token = notifier.last.token
    await account_service.verify_email(user.id, token)

    with pytest.raises(InvalidTokenError):
        await account_service.verify_email(user.id, token)


async def test_verify_with_wrong_token_leaves_account_unverified(account_service):
    user = await account_service.create_user("Ada", "ada@x.com", "correct horse")

    with pytest.raises(InvalidTokenError):
        await account_service.verify_email(user.id, "not-the-token")

    assert user.email_verified is False


async def test_verify_after_window_is_expired_even_with_valid_token(
    account_service, notifier, clock,
):
    user = await account_service.create_user("Ada", "ada@x.com", "correct horse")
    clock.advance(timedelta(hours=24, seconds=1))

    with pytest.raises(TokenExpiredError):
        await account_service.verify_email(user.id, notifier.last.token)


async def test_verify_exactly_at_window_end_still_works(account_service, notifier, clock):
    user = await account_service.create_user("Ada", "ada@x.com", "correct horse")
    clock.advance(REGISTRATION_TIMEOUT)

    verified = await account_service.verify_email(user.id, notifier.last.token)
    assert verified.email_verified is True


async def test_verify_unknown_user_is_not_found(account_service):
    from uuid import uuid4
    with pytest.raises(ResourceNotFoundError):
        await account_service.verify_email(uuid4(), "whatever")


# ─── email change ────────────────────────────────────────────────

async def test_request_email_change_stages_address(verified_user, account_service, notifier):
    user = await account_service.request_email_change(verified_user.id, "ada@new.com")

    assert user.email == "ada@x.com"
    assert user.pending_email == "ada@new.com"
    assert notifier.last.kind == "change"
    assert notifier.last.to == "ada@new.com"
    assert notifier.last.token == user.email_token


async def test_unverified_account_can_stage_email_change(account_service, notifier):
    user = await account_service.create_user("Ada", "ada@x.com", "correct horse")
    registration_token = notifier.last.token

    staged = await account_service.request_email_change(user.id, "ada@new.com")

    assert staged.pending_email == "ada@new.com"
    assert staged.email_token != registration_token
    assert notifier.last.kind == "change"
    assert notifier.last.token == staged.email_token


async def test_confirm_email_change_swaps_address(verified_user, account_service, notifier):
    await account_service.request_email_change(verified_user.id, "ada@new.com")
    token = notifier.last.token

    user = await account_service.confirm_email_change(verified_user.id, token, "ada@new.com")

    assert user.email == "ada@new.com"
    assert user.pending_email is None
    assert user.email_token is None
    assert user.email_verified is True
    with pytest.raises(InvalidTokenError):
        await account_service.confirm_email_change(verified_user.id, token, "ada@new.com")


async def test_confirm_email_change_with_wrong_token_fails(
    verified_user, account_service,
):
    await account_service.request_email_change(verified_user.id, "ada@new.com")
    with pytest.raises(InvalidTokenError):
        await account_service.confirm_email_change(
            verified_user.id, "not-the-token", "ada@new.com",
        )
    assert verified_user.email == "ada@x.com"
    assert verified_user.pending_email == "ada@new.com"


async def test_confirm_email_change_uses_address_from_link(account_service, notifier):
    user = await account_service.create_user("Ada", "ada@x.com", "correct horse")

    changed = await account_service.confirm_email_change(
        user.id, notifier.last.token, "ada@new.com",
    )

    assert changed.email == "ada@new.com"
    assert changed.email_token is None
    assert changed.pending_email is None


async def test_new_change_request_supersedes_previous_token(
    verified_user, account_service, notifier,
):
    await account_service.request_email_change(verified_user.id, "ada@one.com")
    first_token = notifier.last.token
    await account_service.request_email_change(verified_user.id, "ada@two.com")

    with pytest.raises(InvalidTokenError):
        await account_service.confirm_email_change(
            verified_user.id, first_token, "ada@one.com",
        )
    user = await account_service.confirm_email_change(
        verified_user.id, notifier.last.token, "ada@two.com",
    )
    assert user.email == "ada@two.com"


async def test_email_change_tokens_do_not_expire(verified_user, account_service, notifier, clock):
    await account_service.request_email_change(verified_user.id, "ada@new.com")
    clock.advance(timedelta(days=90))

    user = await account_service.confirm_email_change(
        verified_user.id, notifier.last.token, "ada@new.com",
    )
    assert user.email == "ada@new.com"


async def test_confirm_change_to_taken_address_conflicts(
    verified_user, other_user, account_service, notifier,
):
    user_id = verified_user.id
    await account_service.request_email_change(user_id, "bob@x.com")

    with pytest.raises(EmailAlreadyExistsError):
        await account_service.confirm_email_change(user_id, notifier.last.token, "bob@x.com")

    reloaded = await account_service.get_user(user_id)
    assert reloaded.email == "ada@x.com"


# ─── credentials ─────────────────────────────────────────────────

async def test_authenticate_verified_user(verified_user, account_service):
    user = await account_service.authenticate("ada@x.com", "correct horse")
    assert user.id == verified_user.id


@pytest.mark.parametrize("email, password", [
    ("ada@x.com", "wrong password"),
    ("nobody@x.com", "correct horse"),
])
async def test_authenticate_rejects_bad_credentials(verified_user, account_service, email, password):
    with pytest.raises(InvalidCredentialsError):
        await account_service.authenticate(email, password)


async def test_authenticate_requires_verified_email(account_service):
    await account_service.create_user("Ada", "ada@x.com", "correct horse")
    with pytest.raises(EmailNotVerifiedError):
        await account_service.authenticate("ada@x.com", "correct horse")


async def test_change_password(verified_user, account_service):
    await account_service.change_password(verified_user.id, "correct horse", "new password")

    user = await account_service.authenticate("ada@x.com", "new password")
    assert user.id == verified_user.id
    with pytest.raises(InvalidCredentialsError):
        await account_service.authenticate("ada@x.com", "correct horse")


async def test_change_password_checks_current_password(verified_user, account_service):
    with pytest.raises(InvalidCredentialsError):
        await account_service.change_password(verified_user.id, "guess", "new password")


# ─── reads ───────────────────────────────────────────────────────

async def test_list_users_returns_only_verified(verified_user, other_user, account_service):
    await account_service.create_user("Carol", "carol@x.com", "pending pass")

    users = await account_service.list_users()

    assert [u.name for u in users] == ["Ada", "Bob"]


async def test_lost_update_raises_concurrency_error(verified_user, test_db, user_repo):
    await test_db.execute(
        text("UPDATE users SET row_version = row_version + 5"),
    )
    verified_user.name = "Ada L."

    with pytest.raises(ConcurrencyError):
        await user_repo.save(verified_user)


def test_new_email_token_differs_from_previous():
    previous = new_email_token()
    assert new_email_token(previous) != previous
    assert len(previous) >= 32


async def test_secrets_collection_is_never_lazy_loaded(verified_user, test_session_factory):
    async with test_session_factory() as session:
        user = await SqlUserRepository(session).get_by_id(verified_user.id)
        with pytest.raises(InvalidRequestError):
            user.secrets
