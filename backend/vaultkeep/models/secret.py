"""Secret ORM — one row per version of an encrypted secret.

Invariants:
    - Rows are append-only: an update inserts (secret_id, version + 1), never mutates
    - (secret_id, version) is unique — the store rejects a second writer of the same version
    - data is opaque ciphertext; never parsed, never logged
    - owner_id never changes for a secret_id

Design Decisions:
    - secret_id separate from the row id: every version shares the logical id
    - owner_id denormalized on every version: lookups are scoped by owner without joins
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String, Text, Integer, DateTime, ForeignKey, UniqueConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from vaultkeep.db.base import Base


class Secret(Base):
    """One stored version of a secret."""
    __tablename__ = "secrets"
    __table_args__ = (
        UniqueConstraint("secret_id", "version", name="uq_secrets_secret_id_version"),
        Index("ix_secrets_owner_secret", "owner_id", "secret_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    secret_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    data: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Relationships
    owner: Mapped["User"] = relationship("User", back_populates="secrets")
