"""
Append-only audit trail.
"""
from sqlalchemy import JSON, Column, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB

from agrohub.models.base import Base, TenantBaseModel


class AuditLog(Base, TenantBaseModel):
    """One action performed by a user against a tenant."""

    __tablename__ = "audit_logs"

    actor_user_id = Column(Uuid(as_uuid=True), nullable=False)
    action = Column(String(100), nullable=False, index=True)
    entity = Column(String(100), nullable=False)
    entity_id = Column(Uuid(as_uuid=True), nullable=True)
    details = Column(JSON().with_variant(JSONB(), "postgresql"), default=dict)

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} {self.entity}:{self.entity_id}>"
