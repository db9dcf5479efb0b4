"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection
    - Every secret lookup takes owner_id: ownership is part of the query, not a post-filter

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      but core pure functions that USE these protocols are never async themselves —
      the shell orchestrates the async calls around the pure logic
"""

from datetime import datetime
from typing import Protocol, Sequence

from vaultkeep.core.domain_types import (
    UserId, SecretId, SecretRowId, SecretVersion,
)


class UserLike(Protocol):
    """Structural contract for User objects handled by account rules.

    Avoids coupling core rules to the ORM model while giving mypy
    real type information (unlike Any).
    """
    id: UserId
    email: str
    name: str
    password_hash: str
    email_verified: bool
    email_token: str | None
    pending_email: str | None
    created_at: datetime


class SecretLike(Protocol):
    """Structural contract for one stored version of a secret."""
    id: SecretRowId
    secret_id: SecretId
    version: int
    data: str
    type: str
    created_at: datetime
    owner_id: UserId


class UserRepository(Protocol):
    """Contract for user persistence — implemented by shell."""
    async def get_by_id(self, user_id: UserId) -> UserLike | None: ...
    async def get_by_email(self, email: str) -> UserLike | None: ...
    async def list_verified(self) -> Sequence[UserLike]: ...
    async def save(self, user: UserLike) -> UserLike: ...


class SecretRepository(Protocol):
    """Contract for secret version persistence — implemented by shell.

    save() must insert, never update: a duplicate (secret_id, version)
    raises VersionConflictError.
    """
    async def find_current_version(
        self, secret_id: SecretId, owner_id: UserId,
    ) -> SecretVersion | None: ...
    async def exists(self, secret_id: SecretId) -> bool: ...
    async def find_all_current_by_owner(
        self, owner_id: UserId,
    ) -> Sequence[SecretLike]: ...
    async def find_version(
        self, secret_id: SecretId, version: SecretVersion, owner_id: UserId,
    ) -> SecretLike | None: ...
    async def find_history(
        self, secret_id: SecretId, owner_id: UserId,
    ) -> Sequence[SecretLike]: ...
    async def save(self, secret: SecretLike) -> SecretLike: ...


class PasswordHasher(Protocol):
    """Salted one-way hash — treated as a black box."""
    def hash(self, plaintext: str) -> str: ...
    def verify(self, plaintext: str, hashed: str) -> bool: ...


class EmailNotifier(Protocol):
    """Outbound notifications — fire-and-forget from the core's perspective."""
    async def send_verification_email(self, user: UserLike, token: str) -> None: ...
    async def send_email_change_email(
        self, user: UserLike, token: str, new_email: str,
    ) -> None: ...
