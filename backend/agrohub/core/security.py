"""
Security utilities for tokens.
"""
import hashlib
import secrets
from typing import Any

from jose import JWTError, jwt

from agrohub.config import settings


def generate_invitation_token() -> str:
    """Generate a cryptographically secure 256-bit invitation token."""
    return secrets.token_urlsafe(32)


def hash_token(raw_token: str) -> str:
    """Deterministic SHA-256 hash so invitations can be looked up by token."""
    return hashlib.sha256(raw_token.encode()).hexdigest()


def decode_token(
    token: str,
    secret: str | None = None,
    audience: str | None = None,
) -> dict[str, Any]:
    """Verify the signature, expiry and audience of a JWT.

    Raises jose.JWTError on any failure.
    """
    return jwt.decode(
        token,
        secret or settings.SUPABASE_JWT_SECRET,
        algorithms=[settings.JWT_ALGORITHM],
        audience=audience or settings.JWT_AUDIENCE,
    )


__all__ = [
    "JWTError",
    "decode_token",
    "generate_invitation_token",
    "hash_token",
]
