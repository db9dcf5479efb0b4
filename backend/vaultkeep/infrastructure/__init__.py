"""Infrastructure Layer — database, logging, hashing, email and access-token adapters.

Invariants:
    - Infrastructure never imports from services/ or api/
    - Library exceptions are mapped to core/errors.py types at this boundary

Design Decisions:
    - Thin adapters over libraries (SQLAlchemy, bcrypt, smtplib, python-jose)
      so services depend only on core Protocols
"""
