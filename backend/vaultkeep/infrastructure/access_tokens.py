"""Access Tokens — signed JWTs that carry the caller's user id.

Invariants:
    - `sub` holds the user id as a string; `exp` is always set
    - decode failures of any kind surface as InvalidCredentialsError

Design Decisions:
    - python-jose HS256: stateless bearer tokens, no session table
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import jwt, JWTError

from vaultkeep.core.domain_types import UserId
from vaultkeep.core.errors import InvalidCredentialsError


def create_access_token(
    user_id: UserId,
    secret_key: str,
    algorithm: str = "HS256",
    expires_in: timedelta = timedelta(minutes=30),
) -> str:
    expire = datetime.now(timezone.utc) + expires_in
    payload = {"sub": str(user_id), "exp": expire}
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def decode_access_token(
    token: str, secret_key: str, algorithm: str = "HS256",
) -> UserId:
    """Return the user id a token was issued for."""
    try:
        payload = jwt.decode(token, secret_key, algorithms=[algorithm])
        return UserId(UUID(payload["sub"]))
    except (JWTError, KeyError, TypeError, ValueError):
        raise InvalidCredentialsError()
