"""
Custom HTTP exceptions for AgroHub.
"""
from fastapi import HTTPException, status


class AppError(HTTPException):
    """Base class carrying a stable machine-readable code."""

    code = "error"


class ValidationError(AppError):
    """Malformed input, surfaced verbatim to the caller."""

    code = "validation_error"

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail
        )


class NotFoundError(AppError):
    """Resource not found exception."""

    code = "not_found"

    def __init__(self, resource: str = "Resource"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found"
        )


class ForbiddenError(AppError):
    """Access denied exception."""

    code = "forbidden"

    def __init__(self, detail: str = "Access denied"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )


class ConflictError(AppError):
    """Conflict exception (e.g., duplicate resource)."""

    code = "conflict"

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail
        )


class UnauthorizedError(AppError):
    """Unauthorized exception."""

    code = "unauthorized"

    def __init__(self, detail: str = "Invalid credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class UnavailableError(AppError):
    """Downstream store or identity provider failure."""

    code = "unavailable"

    def __init__(self, detail: str = "Service temporarily unavailable"):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail
        )


class QuotaExceededError(AppError):
    """Seat or field ceiling reached for the tenant plan."""

    code = "quota_exceeded"

    def __init__(self, resource: str, limit: int | None = None, current: int | None = None):
        self.resource = resource
        self.limit = limit
        self.current = current
        super().__init__(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail={
                "message": f"Tenant {resource} quota exceeded",
                "quota_type": resource,
                "limit": limit,
                "current": current,
            },
        )


class SlugTakenError(ConflictError):
    code = "slug_taken"

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Slug '{slug}' is already taken")


class DuplicateInvitationError(ConflictError):
    code = "duplicate_invitation"

    def __init__(self, email: str):
        super().__init__(f"A pending invitation already exists for {email}")


class InvitationAlreadyAcceptedError(ConflictError):
    code = "invitation_already_accepted"

    def __init__(self):
        super().__init__("Invitation has already been accepted")


class InvitationAlreadyTerminalError(ConflictError):
    code = "invitation_already_terminal"

    def __init__(self):
        super().__init__("Invitation is already accepted or revoked")


class InvitationRevokedError(AppError):
    code = "invitation_revoked"

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_410_GONE,
            detail="Invitation has been revoked"
        )


class InvitationExpiredError(AppError):
    code = "invitation_expired"

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_410_GONE,
            detail="Invitation has expired"
        )


class EmailMismatchError(ForbiddenError):
    code = "email_mismatch"

    def __init__(self):
        super().__init__("Session email does not match the invitation")
