"""Secret Schemas — ciphertext payloads in, versioned rows out.

Invariants:
    - data is opaque ciphertext: length-checked, never parsed
    - type is restricted to SecretType
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from vaultkeep.core.domain_types import SecretType

MAX_SECRET_DATA_LENGTH = 1_000_000


class SecretRequest(BaseModel):
    """Create or update payload."""
    data: str = Field(min_length=1, max_length=MAX_SECRET_DATA_LENGTH)
    type: SecretType


class SecretResponse(BaseModel):
    """One stored version of a secret."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    secret_id: UUID
    version: int
    data: str
    type: SecretType
    created_at: datetime
