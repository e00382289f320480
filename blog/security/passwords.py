"""
Password hashing utilities using bcrypt.

Plaintext passwords are never stored or compared; only the bcrypt hash
produced here is persisted on ``User.password_hash``.
"""
import bcrypt

from blog.config import settings


def _encode(password: str) -> bytes:
    # bcrypt only uses the first 72 bytes of a password.
    return password.encode("utf-8")[:72]


def hash_password(password: str) -> str:
    """Return a salted bcrypt hash of *password*."""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Return True when *plain_password* matches *hashed_password*.

    A malformed or empty hash verifies as False rather than raising.
    """
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(_encode(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        return False
