"""
Tenant model for multi-tenancy.
"""
from sqlalchemy import CheckConstraint, Column, Integer, String, Uuid
from sqlalchemy.orm import relationship

from agrohub.models.base import Base, BaseModel


class Tenant(Base, BaseModel):
    """Tenant model representing an agribusiness organization."""

    __tablename__ = "tenants"

    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    plan = Column(String(50), nullable=False, default="basico")
    contact_name = Column(String(255), nullable=False)
    contact_email = Column(String(255), nullable=False)
    created_by = Column(Uuid(as_uuid=True), nullable=False)
    primary_crop = Column(String(100), nullable=True)

    # Quota ceilings and usage counters
    max_users = Column(Integer, nullable=False)
    max_fields = Column(Integer, nullable=False)
    current_users = Column(Integer, nullable=False, default=0)
    current_fields = Column(Integer, nullable=False, default=0)

    # Relationships
    memberships = relationship("TenantMembership", back_populates="tenant", cascade="all, delete-orphan")
    invitations = relationship("Invitation", back_populates="tenant", cascade="all, delete-orphan")
    modules = relationship("TenantModule", back_populates="tenant", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("current_users >= 0 AND current_users <= max_users", name="ck_tenants_users_quota"),
        CheckConstraint("current_fields >= 0 AND current_fields <= max_fields", name="ck_tenants_fields_quota"),
    )

    def __repr__(self) -> str:
        return f"<Tenant {self.name} ({self.slug})>"
