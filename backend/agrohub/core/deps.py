"""
FastAPI dependencies for authentication, database and services.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Callable, Optional
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from agrohub.database import get_db
from agrohub.integrations.identity import IdentityProvider
from agrohub.models.base import utcnow
from agrohub.services.auth_service import AuthService
from agrohub.services.lifecycle_service import TenantLifecycleService
from agrohub.services.membership_service import MembershipService
from agrohub.services.sessions import verify_access_token
from agrohub.services.tenant_service import TenantService

security = HTTPBearer(auto_error=False)


@dataclass
class AuthenticatedUser:
    """Caller resolved from a verified bearer token."""

    id: UUID
    email: str
    token: str


def get_identity_provider(request: Request) -> IdentityProvider:
    """Identity provider client created by the application lifespan."""
    return request.app.state.identity_provider


def get_clock() -> Callable[[], datetime]:
    return utcnow


DbSession = Annotated[AsyncSession, Depends(get_db)]
Identity = Annotated[IdentityProvider, Depends(get_identity_provider)]
Clock = Annotated[Callable[[], datetime], Depends(get_clock)]


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    identity: Identity,
    clock: Clock,
) -> AuthenticatedUser:
    """Get the current user from the bearer token."""
    token = credentials.credentials if credentials else None
    verified = await verify_access_token(identity, token, clock())
    return AuthenticatedUser(id=verified.user_id, email=verified.email, token=token)


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]


def get_lifecycle_service(db: DbSession, identity: Identity, clock: Clock) -> TenantLifecycleService:
    return TenantLifecycleService(db, identity, clock=clock)


def get_auth_service(db: DbSession, identity: Identity, clock: Clock) -> AuthService:
    return AuthService(db, identity, clock=clock)


def get_tenant_service(db: DbSession) -> TenantService:
    return TenantService(db)


def get_membership_service(db: DbSession) -> MembershipService:
    return MembershipService(db)


Lifecycle = Annotated[TenantLifecycleService, Depends(get_lifecycle_service)]
Auth = Annotated[AuthService, Depends(get_auth_service)]
Tenants = Annotated[TenantService, Depends(get_tenant_service)]
Memberships = Annotated[MembershipService, Depends(get_membership_service)]
