"""
Password hashing helpers.

Hashing is delegated to bcrypt; callers never store a raw password.
"""

import hashlib
import secrets

import bcrypt


def get_password_hash(password: str) -> str:
    """Hash a plain-text password with a fresh salt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plain-text password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def generate_reset_token() -> str:
    """Random URL-safe token handed to the user for a password reset."""
    return secrets.token_hex(32)


def hash_reset_token(token: str) -> str:
    """Only the sha256 digest of a reset token is persisted."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
