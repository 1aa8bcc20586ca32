"""
Profile service for per-user metadata.
"""
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from agrohub.models.profile import Profile
from agrohub.services.base import translate_db_errors

_UNSET: Any = object()


class ProfileService:
    """Service for profile operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: UUID) -> Profile | None:
        async with translate_db_errors("profile lookup"):
            return await self.db.get(Profile, user_id)

    async def upsert(
        self,
        user_id: UUID,
        full_name: str | None = _UNSET,
        phone: str | None = _UNSET,
        default_tenant_id: UUID | None = _UNSET,
    ) -> Profile:
        """Create or update a profile; arguments left unset keep their value."""
        profile = await self.get(user_id)
        if profile is None:
            profile = Profile(user_id=user_id)
            self.db.add(profile)

        if full_name is not _UNSET:
            profile.full_name = full_name
        if phone is not _UNSET:
            profile.phone = phone
        if default_tenant_id is not _UNSET:
            profile.default_tenant_id = default_tenant_id

        async with translate_db_errors("profile upsert"):
            await self.db.flush()
            await self.db.refresh(profile)
        return profile

    async def clear_default_tenant(self, user_id: UUID) -> None:
        profile = await self.get(user_id)
        if profile is None:
            return
        profile.default_tenant_id = None
        async with translate_db_errors("profile update"):
            await self.db.flush()
