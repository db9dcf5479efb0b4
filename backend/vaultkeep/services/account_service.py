"""Account Service — registration, email verification, email change and credentials.

Invariants:
    - Persist happens-before email dispatch; delivery failure is logged, never rolled back
    - A rejected registration performs no mutation at all
    - Redeeming a token clears it (single use)
    - Every new token differs from the token it replaces
    - Plaintext passwords are only ever handed to the PasswordHasher

Design Decisions:
    - Clock and token factory injected: tests pin "now" instead of sleeping
    - Unknown user is an explicit precondition inside each operation, not route middleware
"""

import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Sequence

from vaultkeep.core.account_rules import (
    check_email_change, check_email_verification, decide_registration,
)
from vaultkeep.core.domain_types import RegistrationDecision, UserId
from vaultkeep.core.errors import (
    EmailAlreadyExistsError, EmailDeliveryError, EmailNotVerifiedError,
    ErrorContext, InvalidCredentialsError, ResourceNotFoundError,
)
from vaultkeep.core.repository_protocols import (
    EmailNotifier, PasswordHasher, UserRepository,
)
from vaultkeep.models.user import User

logger = logging.getLogger(__name__)

EMAIL_TOKEN_BYTES = 32


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_email_token(previous: str | None = None) -> str:
    """Random URL-safe token, never equal to `previous`."""
    while True:
        token = secrets.token_urlsafe(EMAIL_TOKEN_BYTES)
        if token != previous:
            return token


class AccountService:
    """User lifecycle operations."""

    def __init__(
        self,
        users: UserRepository,
        hasher: PasswordHasher,
        notifier: EmailNotifier,
        registration_timeout: timedelta,
        clock: Callable[[], datetime] = utcnow,
        token_factory: Callable[[str | None], str] = new_email_token,
    ):
        self.users = users
        self.hasher = hasher
        self.notifier = notifier
        self.registration_timeout = registration_timeout
        self.clock = clock
        self.token_factory = token_factory

    async def create_user(self, name: str, email: str, password: str) -> User:
        """Register a new account, or take over an abandoned unverified one."""
        now = self.clock()
        existing = await self.users.get_by_email(email)
        decision = decide_registration(existing, now, self.registration_timeout)
        if decision is RegistrationDecision.REJECT:
            raise EmailAlreadyExistsError()

        password_hash = self.hasher.hash(password)
        if decision is RegistrationDecision.CREATE:
            user = User(
                id=uuid.uuid4(),
                email=email,
                email_verified=False,
            )
        else:
            user = existing
            logger.info(
                "Overwriting abandoned registration", extra={"user_id": user.id},
            )
        token = self.token_factory(user.email_token)
        user.name = name
        user.password_hash = password_hash
        user.email_token = token
        user.pending_email = None
        user.created_at = now

        await self.users.save(user)
        logger.info(f"User registered ({decision.value})", extra={"user_id": user.id})
        await self._dispatch(self.notifier.send_verification_email(user, token), user)
        return user

    async def verify_email(self, user_id: UserId, token: str) -> User:
        user = await self.get_user(user_id)
        check_email_verification(user, token, self.clock(), self.registration_timeout)
        user.email_verified = True
        user.email_token = None
        await self.users.save(user)
        logger.info("Email verified", extra={"user_id": user.id})
        return user

    async def request_email_change(self, user_id: UserId, new_email: str) -> User:
        user = await self.get_user(user_id)
        token = self.token_factory(user.email_token)
        user.pending_email = new_email
        user.email_token = token
        await self.users.save(user)
        logger.info("Email change requested", extra={"user_id": user.id})
        await self._dispatch(
            self.notifier.send_email_change_email(user, token, new_email), user,
        )
        return user

    async def confirm_email_change(
        self, user_id: UserId, token: str, new_email: str,
    ) -> User:
        user = await self.get_user(user_id)
        check_email_change(user, token)
        user.email = new_email
        user.email_token = None
        user.pending_email = None
        await self.users.save(user)
        logger.info("Email changed", extra={"user_id": user.id})
        return user

    async def change_password(
        self, user_id: UserId, current_password: str, new_password: str,
    ) -> User:
        user = await self.get_user(user_id)
        if not self.hasher.verify(current_password, user.password_hash):
            raise InvalidCredentialsError(ErrorContext(user_id=str(user.id)))
        user.password_hash = self.hasher.hash(new_password)
        await self.users.save(user)
        logger.info("Password changed", extra={"user_id": user.id})
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Return the account for a correct email/password pair."""
        user = await self.users.get_by_email(email)
        if user is None or not self.hasher.verify(password, user.password_hash):
            raise InvalidCredentialsError()
        if not user.email_verified:
            raise EmailNotVerifiedError(ErrorContext(user_id=str(user.id)))
        return user

    async def get_user(self, user_id: UserId) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise ResourceNotFoundError(
                "User", str(user_id), ErrorContext(user_id=str(user_id)),
            )
        return user

    async def list_users(self) -> Sequence[User]:
        return await self.users.list_verified()

    async def _dispatch(self, send: Awaitable[None], user: User) -> None:
        try:
            await send
        except EmailDeliveryError as e:
            logger.warning(
                f"Notification not delivered: {e.message}",
                extra={"user_id": user.id, "error_code": e.code},
            )
