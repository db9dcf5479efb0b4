"""API Dependencies — wires repositories, collaborators and the caller identity into routes.

Invariants:
    - One AsyncSession per request, shared by every repository of that request
    - get_current_user_id is the only place bearer tokens are read
    - Missing or invalid bearer token -> InvalidCredentialsError (uniform error envelope)

Design Decisions:
    - Collaborators exposed as separate dependencies so tests override them
      (fast bcrypt, recording notifier) via app.dependency_overrides
"""

from datetime import timedelta

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from vaultkeep.config import Settings, get_settings
from vaultkeep.core.domain_types import UserId
from vaultkeep.core.errors import InvalidCredentialsError
from vaultkeep.core.repository_protocols import EmailNotifier, PasswordHasher
from vaultkeep.infrastructure.access_tokens import decode_access_token
from vaultkeep.infrastructure.database import get_db
from vaultkeep.infrastructure.email_notifier import build_email_notifier
from vaultkeep.infrastructure.password_hashing import BcryptPasswordHasher
from vaultkeep.repositories import SqlSecretRepository, SqlUserRepository
from vaultkeep.services.account_service import AccountService
from vaultkeep.services.secret_service import SecretService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)


def get_password_hasher(
    settings: Settings = Depends(get_settings),
) -> PasswordHasher:
    return BcryptPasswordHasher(rounds=settings.bcrypt_rounds)


def get_email_notifier(
    settings: Settings = Depends(get_settings),
) -> EmailNotifier:
    return build_email_notifier(settings)


def get_account_service(
    db: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    notifier: EmailNotifier = Depends(get_email_notifier),
    settings: Settings = Depends(get_settings),
) -> AccountService:
    return AccountService(
        SqlUserRepository(db), hasher, notifier,
        registration_timeout=settings.registration_timeout,
    )


def get_secret_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> SecretService:
    return SecretService(
        SqlSecretRepository(db), SqlUserRepository(db),
        max_update_attempts=settings.secret_update_max_attempts,
    )


async def get_current_user_id(
    token: str | None = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings),
) -> UserId:
    """Identity resolver: bearer token -> caller's user id."""
    if not token:
        raise InvalidCredentialsError()
    return decode_access_token(token, settings.jwt_secret_key, settings.jwt_algorithm)


def access_token_lifetime(settings: Settings) -> timedelta:
    return timedelta(minutes=settings.access_token_expire_minutes)
