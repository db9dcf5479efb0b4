"""Secret Repository — append-only persistence for secret versions.

Invariants:
    - Every query is filtered by owner_id in SQL (except exists(), which only answers yes/no)
    - save() only ever INSERTs; existing version rows are never updated
    - Duplicate (secret_id, version) -> VersionConflictError, session rolled back and reusable
    - find_all_current_by_owner returns exactly one row per secret_id: its max version
"""

import logging
from typing import Sequence

from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from vaultkeep.core.domain_types import SecretId, SecretVersion, UserId
from vaultkeep.core.errors import ErrorContext, VersionConflictError
from vaultkeep.models.secret import Secret

logger = logging.getLogger(__name__)


class SqlSecretRepository:
    """Secret version persistence over an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_current_version(
        self, secret_id: SecretId, owner_id: UserId,
    ) -> SecretVersion | None:
        result = await self.db.execute(
            select(func.max(Secret.version))
            .where(Secret.secret_id == secret_id)
            .where(Secret.owner_id == owner_id)
        )
        current = result.scalar_one_or_none()
        return SecretVersion(current) if current is not None else None

    async def exists(self, secret_id: SecretId) -> bool:
        result = await self.db.execute(
            select(Secret.id).where(Secret.secret_id == secret_id).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def find_all_current_by_owner(self, owner_id: UserId) -> Sequence[Secret]:
        latest = (
            select(
                Secret.secret_id,
                func.max(Secret.version).label("max_version"),
            )
            .where(Secret.owner_id == owner_id)
            .group_by(Secret.secret_id)
            .subquery()
        )
        result = await self.db.execute(
            select(Secret)
            .join(latest, and_(
                Secret.secret_id == latest.c.secret_id,
                Secret.version == latest.c.max_version,
            ))
            .where(Secret.owner_id == owner_id)
            .order_by(Secret.created_at, Secret.secret_id)
        )
        return result.scalars().all()

    async def find_version(
        self, secret_id: SecretId, version: SecretVersion, owner_id: UserId,
    ) -> Secret | None:
        result = await self.db.execute(
            select(Secret)
            .where(Secret.secret_id == secret_id)
            .where(Secret.version == version)
            .where(Secret.owner_id == owner_id)
        )
        return result.scalar_one_or_none()

    async def find_history(
        self, secret_id: SecretId, owner_id: UserId,
    ) -> Sequence[Secret]:
        result = await self.db.execute(
            select(Secret)
            .where(Secret.secret_id == secret_id)
            .where(Secret.owner_id == owner_id)
            .order_by(Secret.version)
        )
        return result.scalars().all()

    async def save(self, secret: Secret) -> Secret:
        secret_id, version = secret.secret_id, secret.version
        self.db.add(secret)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.warning(
                "Secret version already taken",
                extra={"secret_id": secret_id, "version": version},
            )
            raise VersionConflictError(
                str(secret_id), version, ErrorContext(secret_id=str(secret_id)),
            )
        return secret
