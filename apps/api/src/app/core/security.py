"""
Security Utilities

Password hashing (bcrypt) and opaque session token helpers.

Session tokens are generated with ``secrets.token_urlsafe`` and only their
SHA-256 hash is stored, so a database leak does not expose usable tokens.
"""

import hashlib
import secrets

import bcrypt

from app.core.config import settings

SESSION_TOKEN_BYTES = 32  # 256 bits of entropy


def hash_password(password: str) -> str:
    """Hash a password with bcrypt using the configured cost factor."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the database
        return False


def generate_session_token() -> str:
    """Generate a URL-safe bearer token for an admin session."""
    return secrets.token_urlsafe(SESSION_TOKEN_BYTES)


def hash_token(token: str) -> str:
    """Return the hex SHA-256 digest of a token, as stored in the database."""
    return hashlib.sha256(token.encode()).hexdigest()
