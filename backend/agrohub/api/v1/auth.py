"""
Authentication and invitation endpoints.
"""
from uuid import UUID

from fastapi import APIRouter, status

from agrohub.core.deps import Auth, CurrentUser, Lifecycle
from agrohub.schemas.auth import (
    AcceptInvitationRequest,
    AcceptInvitationResponse,
    AuthResponse,
    AuthUser,
    InvitationResponse,
    InviteUserRequest,
    InviteUserResponse,
    LoginRequest,
    RegisterTenantRequest,
    SendOtpRequest,
    SetPasswordRequest,
    ValidateTokenRequest,
    VerifyOtpRequest,
    VerifyOtpResponse,
)
from agrohub.schemas.common import MessageResponse
from agrohub.schemas.tenant import (
    MembershipResponse,
    ProvisionedTenantResponse,
    TenantLimits,
    TenantResponse,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest, auth: Auth) -> AuthResponse:
    """Authenticate with email and password."""
    user, session = await auth.login(request.email, request.password)
    return AuthResponse(
        user=user,
        access_token=session.access_token,
        refresh_token=session.refresh_token,
    )


@router.post("/send-otp", response_model=MessageResponse)
async def send_otp(request: SendOtpRequest, auth: Auth):
    """Send a verification code to a prospective tenant owner."""
    await auth.send_otp(request.email)
    return MessageResponse(message="Verification code sent")


@router.post("/verify-otp", response_model=VerifyOtpResponse)
async def verify_otp(request: VerifyOtpRequest, auth: Auth):
    session = await auth.verify_otp(request.email, request.code)
    return VerifyOtpResponse(access_token=session.access_token, user_id=session.user_id)


@router.post(
    "/register-tenant",
    response_model=ProvisionedTenantResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_tenant(request: RegisterTenantRequest, auth: Auth):
    """Create a tenant owned by the holder of a verified OTP session."""
    tenant, membership = await auth.register_tenant(request)
    return ProvisionedTenantResponse(
        tenant=TenantResponse.model_validate(tenant),
        membership=MembershipResponse.model_validate(membership),
        user_id=membership.user_id,
    )


@router.get("/invitation/{token}", response_model=InvitationResponse)
async def get_invitation(token: str, lifecycle: Lifecycle):
    """Resolve an invitation token that can still be accepted."""
    invitation = await lifecycle.lookup_invitation(token)
    return InvitationResponse.model_validate(invitation)


@router.post("/validate-token", response_model=AuthResponse)
async def validate_token(request: ValidateTokenRequest, auth: Auth):
    """Exchange an identity-provider session for the application user."""
    user = await auth.validate_and_exchange(request.access_token)
    return AuthResponse(
        user=user,
        access_token=request.access_token,
        refresh_token=request.refresh_token,
    )


@router.get("/me", response_model=AuthUser)
async def get_me(current_user: CurrentUser, auth: Auth):
    """Get current user with memberships."""
    return await auth.build_auth_user(current_user.id, current_user.email)


@router.post("/logout", response_model=MessageResponse)
async def logout(current_user: CurrentUser, auth: Auth):
    await auth.logout(current_user.token)
    return MessageResponse(message="Logged out")


@router.post("/set-password", response_model=MessageResponse)
async def set_password(request: SetPasswordRequest, current_user: CurrentUser, auth: Auth):
    await auth.set_password(current_user.id, request.password)
    return MessageResponse(message="Password updated")


@router.post("/invite", response_model=InviteUserResponse, status_code=status.HTTP_201_CREATED)
async def invite_user(request: InviteUserRequest, current_user: CurrentUser, lifecycle: Lifecycle):
    """Invite a user to a tenant (owner or admin)."""
    invitation, invite_url = await lifecycle.invite_user(request, current_user.id)
    return InviteUserResponse(
        invitation=InvitationResponse.model_validate(invitation),
        invite_url=invite_url,
    )


@router.post("/accept-invitation", response_model=AcceptInvitationResponse)
async def accept_invitation(request: AcceptInvitationRequest, lifecycle: Lifecycle):
    """Accept an invitation with the invitee's session token."""
    membership = await lifecycle.accept_invitation(
        request.token,
        request.access_token,
        password=request.password,
        full_name=request.full_name,
        phone=request.phone,
    )
    return AcceptInvitationResponse(
        membership=MembershipResponse.model_validate(membership),
        tenant_id=membership.tenant_id,
    )


@router.delete("/invitation/{invitation_id}", response_model=MessageResponse)
async def revoke_invitation(invitation_id: UUID, current_user: CurrentUser, lifecycle: Lifecycle):
    """Revoke a pending invitation (owner or admin)."""
    await lifecycle.revoke_invitation(invitation_id, current_user.id)
    return MessageResponse(message="Invitation revoked")


@router.get("/tenant/{tenant_id}/invitations", response_model=list[InvitationResponse])
async def list_invitations(tenant_id: UUID, current_user: CurrentUser, lifecycle: Lifecycle):
    invitations = await lifecycle.list_invitations(tenant_id, current_user.id)
    return [InvitationResponse.model_validate(i) for i in invitations]


@router.get("/tenant/{tenant_id}/limits", response_model=TenantLimits)
async def get_tenant_limits(tenant_id: UUID, lifecycle: Lifecycle):
    return await lifecycle.get_tenant_limits(tenant_id)
