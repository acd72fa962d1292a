"""Password hashing.

Hashes are passlib's modular-crypt strings (``$pbkdf2-sha256$...``) with a
random salt per call. The alphabet has no comma, so a hash fits in a table row.
"""

from __future__ import annotations

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, stored_hash: str) -> bool:
    """Return True if ``password`` matches ``stored_hash``; malformed hashes never match."""
    try:
        return pwd_context.verify(password, stored_hash)
    except (ValueError, TypeError):
        return False
