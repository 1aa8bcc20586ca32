"""
Audit trail writer.
"""
import logging
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agrohub.models.audit_log import AuditLog
from agrohub.services.base import translate_db_errors

logger = logging.getLogger(__name__)


class AuditLogService:
    """Appends audit records; rows are never updated."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(
        self,
        tenant_id: UUID,
        actor_user_id: UUID,
        action: str,
        entity: str,
        entity_id: UUID | None = None,
        details: dict[str, Any] | None = None,
    ) -> AuditLog:
        entry = AuditLog(
            tenant_id=tenant_id,
            actor_user_id=actor_user_id,
            action=action,
            entity=entity,
            entity_id=entity_id,
            details=details or {},
        )
        self.db.add(entry)
        async with translate_db_errors("audit append"):
            await self.db.flush()
        logger.info(f"[audit] {action} {entity}:{entity_id} tenant={tenant_id} actor={actor_user_id}")
        return entry

    async def list_for_tenant(self, tenant_id: UUID, action: str | None = None) -> list[AuditLog]:
        query = select(AuditLog).where(AuditLog.tenant_id == tenant_id)
        if action:
            query = query.where(AuditLog.action == action)
        async with translate_db_errors("audit listing"):
            result = await self.db.execute(query.order_by(AuditLog.created_at))
            return list(result.scalars().all())
