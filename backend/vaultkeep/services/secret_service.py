"""Secret Service — create, version and read secrets owned by the caller.

Invariants:
    - create_secret starts a new secret_id at version 0
    - update_secret appends current + 1; rows are never updated in place
    - A version conflict re-reads and retries; after max_update_attempts -> ConcurrencyError
    - Every read is scoped to the caller's owner_id inside the repository query
    - get_all_secrets yields one row per secret_id, the current version

Design Decisions:
    - Retry loop here, uniqueness in the store: the repository stays a dumb INSERT
      (ADR: close read-increment-insert race without table locks)
"""

import logging
import uuid
from datetime import datetime
from typing import Callable, Sequence

from vaultkeep.core.domain_types import SecretId, SecretType, SecretVersion, UserId
from vaultkeep.core.errors import (
    ConcurrencyError, ErrorContext, ResourceNotFoundError, VersionConflictError,
)
from vaultkeep.core.repository_protocols import SecretRepository, UserRepository
from vaultkeep.core.secret_versions import missing_secret_error, next_version
from vaultkeep.models.secret import Secret
from vaultkeep.models.user import User
from vaultkeep.services.account_service import utcnow

logger = logging.getLogger(__name__)


class SecretService:
    """Versioned secret operations for one caller."""

    def __init__(
        self,
        secrets: SecretRepository,
        users: UserRepository,
        max_update_attempts: int = 3,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.secrets = secrets
        self.users = users
        self.max_update_attempts = max(1, max_update_attempts)
        self.clock = clock

    async def create_secret(
        self, owner_id: UserId, data: str, secret_type: SecretType,
    ) -> Secret:
        owner = await self._resolve_owner(owner_id)
        secret = Secret(
            id=uuid.uuid4(),
            secret_id=uuid.uuid4(),
            version=next_version(None),
            data=data,
            type=secret_type.value,
            created_at=self.clock(),
            owner_id=owner.id,
        )
        await self.secrets.save(secret)
        logger.info(
            "Secret created",
            extra={"user_id": owner.id, "secret_id": secret.secret_id, "version": 0},
        )
        return secret

    async def update_secret(
        self,
        owner_id: UserId,
        secret_id: SecretId,
        data: str,
        secret_type: SecretType,
    ) -> Secret:
        """Append a new version holding `data`."""
        for attempt in range(1, self.max_update_attempts + 1):
            current = await self.secrets.find_current_version(secret_id, owner_id)
            if current is None:
                raise missing_secret_error(
                    secret_id, await self.secrets.exists(secret_id),
                )
            secret = Secret(
                id=uuid.uuid4(),
                secret_id=secret_id,
                version=next_version(current),
                data=data,
                type=secret_type.value,
                created_at=self.clock(),
                owner_id=owner_id,
            )
            try:
                await self.secrets.save(secret)
            except VersionConflictError:
                logger.warning(
                    "Concurrent update, retrying",
                    extra={"secret_id": secret_id, "attempt": attempt},
                )
                continue
            logger.info(
                "Secret updated",
                extra={
                    "user_id": owner_id,
                    "secret_id": secret_id,
                    "version": secret.version,
                },
            )
            return secret

        raise ConcurrencyError(
            f"Secret '{secret_id}' kept changing; gave up after "
            f"{self.max_update_attempts} attempts",
            ErrorContext(user_id=str(owner_id), secret_id=str(secret_id)),
        )

    async def get_all_secrets(self, owner_id: UserId) -> Sequence[Secret]:
        owner = await self._resolve_owner(owner_id)
        return await self.secrets.find_all_current_by_owner(owner.id)

    async def get_secret_version(
        self, owner_id: UserId, secret_id: SecretId, version: SecretVersion,
    ) -> Secret:
        secret = await self.secrets.find_version(secret_id, version, owner_id)
        if secret is not None:
            return secret
        if await self.secrets.find_current_version(secret_id, owner_id) is not None:
            raise ResourceNotFoundError(
                "Secret version", f"{secret_id}@{version}",
                ErrorContext(secret_id=str(secret_id)),
            )
        raise missing_secret_error(secret_id, await self.secrets.exists(secret_id))

    async def get_secret_history(
        self, owner_id: UserId, secret_id: SecretId,
    ) -> Sequence[Secret]:
        history = await self.secrets.find_history(secret_id, owner_id)
        if not history:
            raise missing_secret_error(secret_id, await self.secrets.exists(secret_id))
        return history

    async def _resolve_owner(self, owner_id: UserId) -> User:
        owner = await self.users.get_by_id(owner_id)
        if owner is None:
            raise ResourceNotFoundError(
                "User", str(owner_id), ErrorContext(user_id=str(owner_id)),
            )
        return owner
