"""Secret Versioning Rules — version arithmetic and lookup-miss classification.

Invariants:
    - First revision of every secret is INITIAL_VERSION (0)
    - next version is always current maximum + 1 (contiguous, never reused)
    - A lookup miss is NotOwner only when the secret exists under someone else

Design Decisions:
    - Version assignment is pure; uniqueness of (secret_id, version) is enforced by the
      store, and the shell retries on conflict (ADR: close read-increment-insert race)
"""

from vaultkeep.core.domain_types import INITIAL_VERSION, SecretId, SecretVersion
from vaultkeep.core.errors import (
    ErrorContext, NotOwnerError, ResourceNotFoundError, VaultError,
)


def next_version(current: SecretVersion | None) -> SecretVersion:
    """Version for the row appended after `current` (None: nothing stored yet)."""
    if current is None:
        return INITIAL_VERSION
    return SecretVersion(current + 1)


def missing_secret_error(
    secret_id: SecretId, exists_for_other_owner: bool,
) -> VaultError:
    """Build the error for a secret the caller cannot see."""
    context = ErrorContext(secret_id=str(secret_id))
    if exists_for_other_owner:
        return NotOwnerError(str(secret_id), context)
    return ResourceNotFoundError("Secret", str(secret_id), context)
