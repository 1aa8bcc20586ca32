"""
Authentication and invitation schemas.
"""
from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from agrohub.models.membership import RoleCode
from agrohub.schemas.common import BaseSchema, IDSchema, TimestampSchema
from agrohub.schemas.tenant import MembershipResponse, TenantCreate, TenantResponse


class LoginRequest(BaseSchema):
    """Login request schema."""

    email: EmailStr
    password: str = Field(min_length=8)


class SendOtpRequest(BaseSchema):
    email: EmailStr


class VerifyOtpRequest(BaseSchema):
    email: EmailStr
    code: str = Field(min_length=6, max_length=6)


class VerifyOtpResponse(BaseSchema):
    access_token: str
    user_id: UUID


class RegisterTenantRequest(TenantCreate):
    """Tenant registration by an owner holding a verified OTP session."""

    access_token: str = Field(min_length=1)
    owner_phone: str | None = Field(default=None, max_length=50)


class ValidateTokenRequest(BaseSchema):
    access_token: str = Field(min_length=1)
    refresh_token: str | None = None


class SetPasswordRequest(BaseSchema):
    password: str = Field(min_length=8, max_length=128)


class InviteUserRequest(BaseSchema):
    """Invitation request; owners are never invited."""

    tenant_id: UUID
    email: EmailStr
    role_code: RoleCode

    @field_validator("role_code")
    @classmethod
    def not_owner(cls, value: RoleCode) -> RoleCode:
        if value == RoleCode.OWNER:
            raise ValueError("owner role cannot be granted by invitation")
        return value


class AcceptInvitationRequest(BaseSchema):
    token: str = Field(min_length=1)
    access_token: str = Field(min_length=1)
    full_name: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    password: str | None = Field(default=None, min_length=8, max_length=128)


class InvitationResponse(IDSchema, TimestampSchema):
    tenant_id: UUID
    email: str
    role_code: RoleCode
    invited_by: UUID
    expires_at: datetime
    accepted_at: datetime | None = None
    revoked_at: datetime | None = None


class InviteUserResponse(BaseSchema):
    invitation: InvitationResponse
    invite_url: str
    message: str = "Invitation sent by email"


class AcceptInvitationResponse(BaseSchema):
    membership: MembershipResponse
    tenant_id: UUID
    message: str = "Invitation accepted"


class ProfileResponse(BaseSchema):
    user_id: UUID
    full_name: str | None = None
    phone: str | None = None
    default_tenant_id: UUID | None = None


class MembershipWithTenant(MembershipResponse):
    tenant: TenantResponse | None = None


class AuthUser(BaseSchema):
    """Current user with memberships and the tenant loaded first."""

    id: UUID
    email: str
    name: str
    tenant_id: UUID | None = None
    role: RoleCode | None = None
    tenant: TenantResponse | None = None
    profile: ProfileResponse | None = None
    memberships: list[MembershipWithTenant] = []


class AuthResponse(BaseSchema):
    user: AuthUser
    access_token: str
    refresh_token: str | None = None
