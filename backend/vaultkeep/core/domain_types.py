"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId, SecretId, SecretRowId wrap UUIDs — never use bare UUID in domain logic
    - SecretId is the logical identifier shared by every version; SecretRowId is the storage row
    - SecretVersion starts at 0 and only grows
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", UUID)
SecretId = NewType("SecretId", UUID)
SecretRowId = NewType("SecretRowId", UUID)


# ─── Value Types ─────────────────────────────────────────────────

SecretVersion = NewType("SecretVersion", int)   # 0..N, contiguous per SecretId

INITIAL_VERSION = SecretVersion(0)


# ─── Enums ───────────────────────────────────────────────────────

class SecretType(str, Enum):
    """Closed classification of a secret's payload."""
    LOGIN = "login"
    NOTE = "note"
    CARD = "card"


class AccountState(str, Enum):
    """User lifecycle states — derived from `email_verified`, never stored."""
    UNVERIFIED = "unverified"
    VERIFIED = "verified"


class RegistrationDecision(str, Enum):
    """Outcome of checking an email against existing registrations."""
    CREATE = "create"
    OVERWRITE = "overwrite"
    REJECT = "reject"


class EmailChangeRecipient(str, Enum):
    """Which address receives the email-change confirmation link."""
    NEW = "new"
    CURRENT = "current"
