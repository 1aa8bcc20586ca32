"""
Tenant membership model with role-based access.
"""
from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, Enum, Index, Uuid, text
from sqlalchemy.orm import relationship

from agrohub.models.base import Base, TenantBaseModel, enum_values


class RoleCode(str, PyEnum):
    OWNER = "owner"
    ADMIN = "admin"
    CAMPO = "campo"
    EMPAQUE = "empaque"
    FINANZAS = "finanzas"


class MembershipStatus(str, PyEnum):
    ACTIVE = "active"
    PENDING = "pending"
    INACTIVE = "inactive"


MANAGER_ROLES = (RoleCode.OWNER, RoleCode.ADMIN)


class TenantMembership(Base, TenantBaseModel):
    """Links one identity-provider user to one tenant."""

    __tablename__ = "tenant_memberships"

    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    role_code = Column(
        Enum(RoleCode, name="role_code", values_callable=enum_values),
        nullable=False,
    )
    status = Column(
        Enum(MembershipStatus, name="membership_status", values_callable=enum_values),
        default=MembershipStatus.ACTIVE,
        nullable=False,
    )
    invited_by = Column(Uuid(as_uuid=True), nullable=True)
    accepted_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    tenant = relationship("Tenant", back_populates="memberships")

    __table_args__ = (
        Index(
            "uq_tenant_memberships_active",
            "tenant_id",
            "user_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    def __repr__(self) -> str:
        return f"<TenantMembership tenant={self.tenant_id} user={self.user_id} ({self.role_code.value})>"
