"""
Tenant service: persistence and quota counters for tenant rows.
"""
import logging
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from agrohub.core.exceptions import (
    NotFoundError,
    QuotaExceededError,
    SlugTakenError,
    ValidationError,
)
from agrohub.models.membership import MembershipStatus, TenantMembership
from agrohub.models.tenant import Tenant
from agrohub.services.base import translate_db_errors

logger = logging.getLogger(__name__)

# counter column -> ceiling column
_COUNTERS = {
    "users": (Tenant.current_users, Tenant.max_users),
    "fields": (Tenant.current_fields, Tenant.max_fields),
}


class TenantService:
    """Service for tenant operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, tenant_id: UUID) -> Tenant | None:
        """Get tenant by ID."""
        async with translate_db_errors("tenant lookup"):
            result = await self.db.execute(
                select(Tenant)
                .where(Tenant.id == tenant_id)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()

    async def get_by_slug(self, slug: str) -> Tenant | None:
        """Get tenant by slug."""
        async with translate_db_errors("tenant lookup"):
            result = await self.db.execute(
                select(Tenant).where(Tenant.slug == slug)
            )
            return result.scalar_one_or_none()

    async def require(self, tenant_id: UUID) -> Tenant:
        tenant = await self.get_by_id(tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant")
        return tenant

    async def list_for_user(self, user_id: UUID) -> list[Tenant]:
        """Tenants where the user holds an active membership."""
        async with translate_db_errors("tenant listing"):
            result = await self.db.execute(
                select(Tenant)
                .join(TenantMembership, TenantMembership.tenant_id == Tenant.id)
                .where(
                    TenantMembership.user_id == user_id,
                    TenantMembership.status == MembershipStatus.ACTIVE,
                )
                .order_by(Tenant.name)
            )
            return list(result.scalars().all())

    async def create(self, attrs: dict[str, Any]) -> Tenant:
        """Insert a tenant with counters at zero.

        A unique-slug violation becomes SlugTakenError.
        """
        tenant = Tenant(**attrs, current_users=0, current_fields=0)
        self.db.add(tenant)
        try:
            async with translate_db_errors("tenant creation"):
                await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            logger.info(f"Slug collision on insert: {attrs.get('slug')}")
            raise SlugTakenError(attrs.get("slug", "")) from e
        await self.db.refresh(tenant)
        return tenant

    async def update(self, tenant_id: UUID, data: dict[str, Any]) -> Tenant:
        """Update tenant attributes; counters are not writable here."""
        tenant = await self.require(tenant_id)

        data = {k: v for k, v in data.items() if k not in ("current_users", "current_fields")}
        if "max_users" in data and data["max_users"] < tenant.current_users:
            raise ValidationError(
                f"max_users cannot be lower than current usage ({tenant.current_users})"
            )
        if "max_fields" in data and data["max_fields"] < tenant.current_fields:
            raise ValidationError(
                f"max_fields cannot be lower than current usage ({tenant.current_fields})"
            )

        for field, value in data.items():
            setattr(tenant, field, value)

        try:
            async with translate_db_errors("tenant update"):
                await self.db.flush()
        except IntegrityError as e:
            # Usage grew past the new ceiling after the check above
            await self.db.rollback()
            logger.info(f"Quota CHECK rejected limits update for tenant {tenant_id}")
            raise ValidationError("Limits cannot be lower than current usage") from e
        await self.db.refresh(tenant)
        return tenant

    async def delete(self, tenant_id: UUID) -> bool:
        """Delete a tenant and, through ORM cascade, its owned rows."""
        tenant = await self.get_by_id(tenant_id)
        if not tenant:
            return False

        async with translate_db_errors("tenant deletion"):
            await self.db.delete(tenant)
            await self.db.flush()
        return True

    # ==================== COUNTERS ====================

    async def _increment(self, tenant_id: UUID, counter: str) -> Tenant:
        current_col, max_col = _COUNTERS[counter]
        async with translate_db_errors(f"{counter} increment"):
            result = await self.db.execute(
                update(Tenant)
                .where(Tenant.id == tenant_id, current_col < max_col)
                .values({current_col: current_col + 1})
                .execution_options(synchronize_session=False)
            )

        tenant = await self.get_by_id(tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant")
        if result.rowcount == 0:
            raise QuotaExceededError(
                counter,
                limit=getattr(tenant, max_col.key),
                current=getattr(tenant, current_col.key),
            )
        return tenant

    async def _decrement(self, tenant_id: UUID, counter: str) -> Tenant:
        current_col, _ = _COUNTERS[counter]
        async with translate_db_errors(f"{counter} decrement"):
            await self.db.execute(
                update(Tenant)
                .where(Tenant.id == tenant_id, current_col > 0)
                .values({current_col: current_col - 1})
                .execution_options(synchronize_session=False)
            )
        return await self.require(tenant_id)

    async def increment_users(self, tenant_id: UUID) -> Tenant:
        """Consume one seat; QuotaExceededError when the tenant is full."""
        return await self._increment(tenant_id, "users")

    async def decrement_users(self, tenant_id: UUID) -> Tenant:
        """Release one seat, never going below zero."""
        return await self._decrement(tenant_id, "users")

    async def increment_fields(self, tenant_id: UUID) -> Tenant:
        return await self._increment(tenant_id, "fields")

    async def decrement_fields(self, tenant_id: UUID) -> Tenant:
        return await self._decrement(tenant_id, "fields")
