"""
Tenant module toggles.
"""
from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agrohub.models.module import ModuleCode, TenantModule
from agrohub.services.base import translate_db_errors


class ModuleService:
    """Service for enabling and disabling tenant modules."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_enabled(self, tenant_id: UUID) -> list[TenantModule]:
        async with translate_db_errors("module listing"):
            result = await self.db.execute(
                select(TenantModule)
                .where(TenantModule.tenant_id == tenant_id, TenantModule.enabled.is_(True))
                .order_by(TenantModule.module_code)
            )
            return list(result.scalars().all())

    async def set_enabled(self, tenant_id: UUID, module_code: ModuleCode | str, enabled: bool) -> TenantModule:
        code = ModuleCode(module_code).value
        async with translate_db_errors("module update"):
            result = await self.db.execute(
                select(TenantModule).where(
                    TenantModule.tenant_id == tenant_id,
                    TenantModule.module_code == code,
                )
            )
            module = result.scalar_one_or_none()
            if module is None:
                module = TenantModule(tenant_id=tenant_id, module_code=code, enabled=enabled)
                self.db.add(module)
            else:
                module.enabled = enabled
            await self.db.flush()
        return module

    async def enable_many(self, tenant_id: UUID, module_codes: Iterable[ModuleCode | str]) -> list[TenantModule]:
        return [await self.set_enabled(tenant_id, code, True) for code in module_codes]
