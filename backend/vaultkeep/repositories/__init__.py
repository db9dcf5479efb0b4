"""Repositories — SQLAlchemy implementations of the core repository Protocols.

Invariants:
    - One repository per aggregate, constructed per request around an AsyncSession
    - save() commits; store constraint violations are translated to core/errors.py types

Design Decisions:
    - Repositories own commit/rollback so services never touch SQLAlchemy exceptions
"""

from vaultkeep.repositories.user_repository import SqlUserRepository
from vaultkeep.repositories.secret_repository import SqlSecretRepository

__all__ = [
    "SqlUserRepository",
    "SqlSecretRepository",
]
