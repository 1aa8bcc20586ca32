"""
Session token checks and identity provider error mapping.
"""
import logging
from datetime import datetime
from typing import Optional

from agrohub.config import settings
from agrohub.core.exceptions import (
    AppError,
    ConflictError,
    UnauthorizedError,
    UnavailableError,
    ValidationError,
)
from agrohub.integrations.identity import (
    IdentityProvider,
    IdentityProviderError,
    VerifiedToken,
)
from agrohub.models.base import utcnow

logger = logging.getLogger(__name__)


def identity_error(e: IdentityProviderError, action: str) -> AppError:
    """Map an identity provider failure onto an HTTP error.

    Failures without a status code are transport problems (timeouts,
    unreachable host) and become UnavailableError.
    """
    message = f"{action} failed: {e.message}"
    if e.status_code in (401, 403):
        return UnauthorizedError(message)
    if e.status_code == 409 or "already been registered" in e.message:
        return ConflictError(message)
    if e.status_code in (400, 404, 422):
        return ValidationError(message)
    logger.error(f"Identity provider failure during {action}: {e.message}")
    return UnavailableError(message)


async def verify_access_token(
    identity: IdentityProvider,
    token: Optional[str],
    now: Optional[datetime] = None,
) -> VerifiedToken:
    """Resolve a bearer token to its user, rejecting expired or foreign tokens."""
    if not token:
        raise UnauthorizedError("Missing access token")

    try:
        verified = await identity.verify_token(token)
    except IdentityProviderError as e:
        if e.status_code is not None and 400 <= e.status_code < 500:
            raise UnauthorizedError("Invalid access token") from e
        raise identity_error(e, "Token verification") from e

    now = now or utcnow()
    if verified.expires_at is not None and verified.expires_at <= int(now.timestamp()):
        raise UnauthorizedError("Token expired")

    audience = verified.audience
    audiences = audience if isinstance(audience, (list, tuple)) else [audience]
    if settings.JWT_AUDIENCE not in audiences:
        raise UnauthorizedError("Token is not valid for authentication")

    if verified.user_id is None:
        raise UnauthorizedError("Token has no user id")

    return verified
