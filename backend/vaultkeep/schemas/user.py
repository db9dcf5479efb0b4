"""User Schemas — registration, email change, password change and profile responses.

Invariants:
    - Emails are syntax-checked by email-validator (EmailStr), then lower-cased
      before they reach the services
    - Passwords are 1..72 UTF-8 bytes (bcrypt input limit)
    - UserResponse exposes no credential material
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import (
    AfterValidator, BaseModel, BeforeValidator, ConfigDict, EmailStr, Field,
    field_validator,
)

from vaultkeep.infrastructure.password_hashing import BCRYPT_MAX_BYTES


def canonical_email(value: str) -> str:
    return value.strip().lower()


def _validate_password(value: str) -> str:
    if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValueError(f"password must be at most {BCRYPT_MAX_BYTES} bytes")
    return value


def _strip(value):
    return value.strip() if isinstance(value, str) else value


EmailAddress = Annotated[
    EmailStr, BeforeValidator(_strip), AfterValidator(canonical_email),
]
Password = Annotated[str, Field(min_length=1), AfterValidator(_validate_password)]


class UserCreate(BaseModel):
    """Registration request."""
    name: str = Field(min_length=1, max_length=200)
    email: EmailAddress
    password: Password

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class EmailChangeRequest(BaseModel):
    """Stage a new email address for the current user."""
    new_email: EmailAddress


class PasswordChange(BaseModel):
    """Replace the current user's password."""
    current_password: Password
    new_password: Password


class UserResponse(BaseModel):
    """Account as seen by its owner."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    email_verified: bool
    pending_email: str | None = None
    created_at: datetime


class SimpleUserResponse(BaseModel):
    """Account as seen by other users."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str


class TokenResponse(BaseModel):
    """OAuth2 bearer token response."""
    access_token: str
    token_type: str = "bearer"
