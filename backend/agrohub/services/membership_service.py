"""
Membership service: (tenant, user) pairings with role and status.
"""
from datetime import datetime
from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from agrohub.core.exceptions import ForbiddenError, NotFoundError
from agrohub.models.membership import (
    MANAGER_ROLES,
    MembershipStatus,
    RoleCode,
    TenantMembership,
)
from agrohub.services.base import translate_db_errors


class MembershipService:
    """Service for membership operations.

    Duplicate active memberships are not rejected here; the partial unique
    index raises IntegrityError and callers decide how to resolve it.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, membership_id: UUID) -> TenantMembership | None:
        async with translate_db_errors("membership lookup"):
            return await self.db.get(TenantMembership, membership_id)

    async def get_active(self, user_id: UUID, tenant_id: UUID) -> TenantMembership | None:
        """Active membership of a user in a tenant."""
        async with translate_db_errors("membership lookup"):
            result = await self.db.execute(
                select(TenantMembership).where(
                    TenantMembership.user_id == user_id,
                    TenantMembership.tenant_id == tenant_id,
                    TenantMembership.status == MembershipStatus.ACTIVE,
                )
            )
            return result.scalar_one_or_none()

    async def list_active_by_user(self, user_id: UUID) -> list[TenantMembership]:
        """Active memberships of a user with their tenants loaded."""
        async with translate_db_errors("membership listing"):
            result = await self.db.execute(
                select(TenantMembership)
                .options(selectinload(TenantMembership.tenant))
                .where(
                    TenantMembership.user_id == user_id,
                    TenantMembership.status == MembershipStatus.ACTIVE,
                )
                .order_by(TenantMembership.created_at)
            )
            return list(result.scalars().all())

    async def list_by_tenant(self, tenant_id: UUID) -> list[TenantMembership]:
        async with translate_db_errors("membership listing"):
            result = await self.db.execute(
                select(TenantMembership)
                .where(TenantMembership.tenant_id == tenant_id)
                .order_by(TenantMembership.created_at)
            )
            return list(result.scalars().all())

    async def create(
        self,
        tenant_id: UUID,
        user_id: UUID,
        role_code: RoleCode,
        invited_by: UUID | None = None,
        accepted_at: datetime | None = None,
        status: MembershipStatus = MembershipStatus.ACTIVE,
    ) -> TenantMembership:
        """Insert a membership; flushes so constraint violations surface here."""
        membership = TenantMembership(
            tenant_id=tenant_id,
            user_id=user_id,
            role_code=role_code,
            status=status,
            invited_by=invited_by,
            accepted_at=accepted_at,
        )
        self.db.add(membership)
        async with translate_db_errors("membership creation"):
            await self.db.flush()
            await self.db.refresh(membership)
        return membership

    async def update_status(
        self, membership_id: UUID, status: MembershipStatus
    ) -> TenantMembership:
        membership = await self.get_by_id(membership_id)
        if membership is None:
            raise NotFoundError("Membership")

        membership.status = status
        async with translate_db_errors("membership update"):
            await self.db.flush()
            await self.db.refresh(membership)
        return membership

    async def delete(self, membership_id: UUID) -> bool:
        membership = await self.get_by_id(membership_id)
        if membership is None:
            return False
        async with translate_db_errors("membership deletion"):
            await self.db.delete(membership)
            await self.db.flush()
        return True

    async def require_role(
        self,
        user_id: UUID,
        tenant_id: UUID,
        roles: Iterable[RoleCode] = MANAGER_ROLES,
        detail: str = "Insufficient role for this tenant",
    ) -> TenantMembership:
        """Active membership holding one of the roles, else ForbiddenError."""
        membership = await self.get_active(user_id, tenant_id)
        if membership is None or membership.role_code not in tuple(roles):
            raise ForbiddenError(detail)
        return membership
