"""Password Hashing — bcrypt adapter satisfying the core PasswordHasher protocol.

Invariants:
    - hash() output embeds its own salt and cost factor
    - verify() never raises on a malformed stored hash; it reports a mismatch
    - Input longer than BCRYPT_MAX_BYTES is rejected at the schema boundary, not truncated here

Design Decisions:
    - bcrypt over hand-rolled PBKDF2: salt handling and constant-time compare built in
"""

import logging

import bcrypt

logger = logging.getLogger(__name__)

BCRYPT_MAX_BYTES = 72


class BcryptPasswordHasher:
    """Salted bcrypt hashing with a configurable cost factor."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash(self, plaintext: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(plaintext.encode("utf-8"), salt).decode("utf-8")

    def verify(self, plaintext: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            logger.warning("Stored password hash is not a valid bcrypt hash")
            return False
