"""
Authentication service: sessions from the identity provider plus the
tenant context the frontend needs after login.
"""
import logging
from datetime import datetime
from typing import Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from agrohub.core.exceptions import UnauthorizedError, ValidationError
from agrohub.integrations.identity import (
    IdentityProvider,
    IdentityProviderError,
    IdentitySession,
)
from agrohub.models.base import utcnow
from agrohub.models.membership import TenantMembership
from agrohub.models.tenant import Tenant
from agrohub.schemas.auth import (
    AuthUser,
    MembershipWithTenant,
    ProfileResponse,
    RegisterTenantRequest,
)
from agrohub.schemas.tenant import TenantResponse
from agrohub.services.invitation_service import normalize_email
from agrohub.services.lifecycle_service import TenantLifecycleService
from agrohub.services.membership_service import MembershipService
from agrohub.services.profile_service import ProfileService
from agrohub.services.sessions import identity_error, verify_access_token

logger = logging.getLogger(__name__)


def _is_client_error(e: IdentityProviderError) -> bool:
    return e.status_code is not None and 400 <= e.status_code < 500


class AuthService:
    """Service for authentication operations."""

    def __init__(
        self,
        db: AsyncSession,
        identity: IdentityProvider,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.identity = identity
        self.clock = clock
        self.memberships = MembershipService(db)
        self.profiles = ProfileService(db)

    async def login(self, email: str, password: str) -> tuple[AuthUser, IdentitySession]:
        """Password login."""
        email = normalize_email(email)
        try:
            session = await self.identity.sign_in(email, password)
        except IdentityProviderError as e:
            if _is_client_error(e):
                raise UnauthorizedError("Invalid email or password") from e
            raise identity_error(e, "Login") from e

        logger.info(f"User {session.user_id} logged in")
        user = await self.build_auth_user(session.user_id, session.email or email)
        return user, session

    async def send_otp(self, email: str) -> None:
        """Send a one-time code to a prospective tenant owner."""
        try:
            await self.identity.send_otp(
                normalize_email(email),
                metadata={"is_tenant_owner": True, "signup_type": "tenant_registration"},
                create_user=True,
            )
        except IdentityProviderError as e:
            if "Signups not allowed" in e.message:
                raise ValidationError("New user registration is disabled") from e
            raise identity_error(e, "Sending verification code") from e

    async def verify_otp(self, email: str, code: str) -> IdentitySession:
        try:
            return await self.identity.verify_otp(normalize_email(email), code)
        except IdentityProviderError as e:
            if not _is_client_error(e):
                raise identity_error(e, "Code verification") from e
            if "expired" in e.message.lower():
                raise ValidationError("The code has expired, request a new one") from e
            raise ValidationError("Invalid or expired code") from e

    async def register_tenant(self, data: RegisterTenantRequest) -> tuple[Tenant, TenantMembership]:
        """Create a tenant for the owner of a verified OTP session."""
        verified = await verify_access_token(self.identity, data.access_token, self.clock())
        lifecycle = TenantLifecycleService(self.db, self.identity, clock=self.clock)
        return await lifecycle.provision_tenant(
            data,
            verified.user_id,
            owner_full_name=data.contact_name,
            owner_phone=data.owner_phone,
        )

    async def validate_and_exchange(self, access_token: str) -> AuthUser:
        """Check a session token issued elsewhere and load its user."""
        verified = await verify_access_token(self.identity, access_token, self.clock())
        return await self.build_auth_user(verified.user_id, verified.email)

    async def set_password(self, user_id: UUID, password: str) -> None:
        try:
            await self.identity.update_user(user_id, password=password)
        except IdentityProviderError as e:
            raise identity_error(e, "Setting password") from e

    async def logout(self, token: str) -> None:
        try:
            await self.identity.sign_out(token)
        except IdentityProviderError as e:
            raise identity_error(e, "Logout") from e

    async def build_auth_user(self, user_id: UUID, email: str) -> AuthUser:
        """Current user with active memberships.

        The membership of the profile's default tenant comes first; without
        one the oldest membership is used.
        """
        profile = await self.profiles.get(user_id)
        memberships = await self.memberships.list_active_by_user(user_id)

        default = memberships[0] if memberships else None
        if profile is not None and profile.default_tenant_id is not None:
            for membership in memberships:
                if membership.tenant_id == profile.default_tenant_id:
                    default = membership
                    break

        return AuthUser(
            id=user_id,
            email=email,
            name=(profile.full_name if profile and profile.full_name else email),
            tenant_id=default.tenant_id if default else None,
            role=default.role_code if default else None,
            tenant=TenantResponse.model_validate(default.tenant) if default else None,
            profile=ProfileResponse.model_validate(profile) if profile else None,
            memberships=[MembershipWithTenant.model_validate(m) for m in memberships],
        )
