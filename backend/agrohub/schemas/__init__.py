"""
Pydantic schemas for the AgroHub API.
"""
from agrohub.schemas.common import (
    BaseSchema,
    IDSchema,
    TimestampSchema,
    MessageResponse,
    ErrorResponse,
    QuotaDetail,
)
from agrohub.schemas.auth import (
    LoginRequest,
    SendOtpRequest,
    VerifyOtpRequest,
    VerifyOtpResponse,
    RegisterTenantRequest,
    ValidateTokenRequest,
    SetPasswordRequest,
    InviteUserRequest,
    InviteUserResponse,
    AcceptInvitationRequest,
    AcceptInvitationResponse,
    InvitationResponse,
    ProfileResponse,
    MembershipWithTenant,
    AuthUser,
    AuthResponse,
)
from agrohub.schemas.tenant import (
    TenantCreate,
    TenantCreateWithAdmin,
    TenantUpdate,
    TenantResponse,
    MembershipResponse,
    ProvisionedTenantResponse,
    TenantLimits,
    QuotaUsage,
    SlugAvailability,
    CapacityResponse,
    ModuleResponse,
    ModuleToggle,
    ModuleBulkEnable,
    DefaultTenantRequest,
)

__all__ = [
    # Common
    "BaseSchema",
    "IDSchema",
    "TimestampSchema",
    "MessageResponse",
    "ErrorResponse",
    "QuotaDetail",
    # Auth
    "LoginRequest",
    "SendOtpRequest",
    "VerifyOtpRequest",
    "VerifyOtpResponse",
    "RegisterTenantRequest",
    "ValidateTokenRequest",
    "SetPasswordRequest",
    "ProfileResponse",
    "MembershipWithTenant",
    "AuthUser",
    "AuthResponse",
    # Invitation
    "InviteUserRequest",
    "InviteUserResponse",
    "AcceptInvitationRequest",
    "AcceptInvitationResponse",
    "InvitationResponse",
    # Tenant
    "TenantCreate",
    "TenantCreateWithAdmin",
    "TenantUpdate",
    "TenantResponse",
    "MembershipResponse",
    "ProvisionedTenantResponse",
    "TenantLimits",
    "QuotaUsage",
    "SlugAvailability",
    "CapacityResponse",
    "ModuleResponse",
    "ModuleToggle",
    "ModuleBulkEnable",
    "DefaultTenantRequest",
]
