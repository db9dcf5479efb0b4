"""User ORM — persists identity, credential hash and email-verification state.

Invariants:
    - id is UUID primary key, assigned at construction
    - email is unique at the store level (closes the concurrent-registration race)
    - email_token holds at most one active token; None once redeemed
    - row_version increments on every UPDATE; a stale writer fails instead of overwriting

Design Decisions:
    - Overwriting an abandoned registration reuses the row: the unique email constraint
      never has to tolerate duplicates
    - version_id_col for optimistic locking: SQLAlchemy adds "WHERE row_version = :old"
      and raises StaleDataError on a lost race
    - secrets relationship is lazy="raise": secret rows are only read through the
      owner-scoped SecretRepository queries
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Boolean, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from vaultkeep.db.base import Base


class User(Base):
    """User account — owns secrets, carries the verification state machine."""
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(320), nullable=False, unique=True, index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    email_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    email_token: Mapped[str | None] = mapped_column(String(128), nullable=True)
    pending_email: Mapped[str | None] = mapped_column(
        String(320), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    row_version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": row_version}

    # Relationships
    secrets: Mapped[list["Secret"]] = relationship(
        "Secret", back_populates="owner", lazy="raise",
    )
