"""User Repository — persistence for User rows.

Invariants:
    - get_by_email matches the stored address exactly (normalization happens at the schema boundary)
    - save() inserts new rows and updates loaded ones (SQLAlchemy identity map decides)
    - Unique email violation -> EmailAlreadyExistsError; lost optimistic lock -> ConcurrencyError
"""

import logging
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from vaultkeep.core.domain_types import UserId
from vaultkeep.core.errors import (
    ConcurrencyError, EmailAlreadyExistsError, ErrorContext,
)
from vaultkeep.models.user import User

logger = logging.getLogger(__name__)


class SqlUserRepository:
    """User persistence over an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: UserId) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def list_verified(self) -> Sequence[User]:
        result = await self.db.execute(
            select(User)
            .where(User.email_verified.is_(True))
            .order_by(User.name, User.email)
        )
        return result.scalars().all()

    async def save(self, user: User) -> User:
        user_id = user.id
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info("Email uniqueness violated on save", extra={"user_id": user_id})
            raise EmailAlreadyExistsError(ErrorContext(user_id=str(user_id)))
        except StaleDataError:
            await self.db.rollback()
            logger.warning("User row changed concurrently", extra={"user_id": user_id})
            raise ConcurrencyError(
                "User was modified by another request",
                ErrorContext(user_id=str(user_id)),
            )
        return user
