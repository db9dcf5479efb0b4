"""Account Lifecycle Rules — registration window, verification and email-change token checks.

Invariants:
    - All functions are PURE: they read a UserLike and return a decision or raise, never mutate
    - Registration window elapsed means (now - created_at) > timeout, strictly
    - Expiry takes precedence over token validity, and only applies to unverified accounts
    - Token checks compare the presented token against the single live email_token
    - Email-change tokens never expire
    - A cleared token (None) never matches anything, so redeemed tokens cannot be replayed

Design Decisions:
    - Shell applies the mutation (set verified, swap email): keeps rules testable without a DB
    - hmac.compare_digest for token comparison: constant-time over user-supplied input
    - Naive datetimes are read as UTC: SQLite drops tzinfo on round-trip
"""

from datetime import datetime, timedelta, timezone
import hmac

from vaultkeep.core.domain_types import AccountState, RegistrationDecision
from vaultkeep.core.errors import (
    ErrorContext, InvalidTokenError, TokenExpiredError,
)
from vaultkeep.core.repository_protocols import UserLike


def as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def registration_window_elapsed(
    created_at: datetime, now: datetime, timeout: timedelta,
) -> bool:
    """True once the grace window after account creation has passed."""
    return as_utc(now) - as_utc(created_at) > timeout


def account_state(user: UserLike) -> AccountState:
    return AccountState.VERIFIED if user.email_verified else AccountState.UNVERIFIED


def decide_registration(
    existing: UserLike | None, now: datetime, timeout: timedelta,
) -> RegistrationDecision:
    """Decide what a new registration does with the row already holding its email.

    Only an unverified row past its grace window is considered abandoned
    and may be overwritten. Verified rows and fresh unverified rows keep
    the email claimed.
    """
    if existing is None:
        return RegistrationDecision.CREATE
    if account_state(existing) is AccountState.UNVERIFIED and registration_window_elapsed(
        existing.created_at, now, timeout,
    ):
        return RegistrationDecision.OVERWRITE
    return RegistrationDecision.REJECT


def tokens_match(expected: str | None, presented: str | None) -> bool:
    if not expected or not presented:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), presented.encode("utf-8"))


def check_email_verification(
    user: UserLike, token: str, now: datetime, timeout: timedelta,
) -> None:
    """Raise unless `token` may verify `user` right now."""
    context = ErrorContext(user_id=str(user.id))
    if account_state(user) is AccountState.UNVERIFIED and registration_window_elapsed(
        user.created_at, now, timeout,
    ):
        raise TokenExpiredError(context)
    if not tokens_match(user.email_token, token):
        raise InvalidTokenError(context)


def check_email_change(user: UserLike, token: str) -> None:
    """Raise unless `token` is the live token of `user`.

    The target address travels in the confirmation link; `pending_email`
    only records the last requested address and is not compared.
    """
    if not tokens_match(user.email_token, token):
        raise InvalidTokenError(ErrorContext(user_id=str(user.id)))
