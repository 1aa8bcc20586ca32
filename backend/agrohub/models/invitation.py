"""
Invitation model: a time-boxed, single-use offer to join a tenant.
"""
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, Enum, Index, String, Uuid, text
from sqlalchemy.orm import relationship

from agrohub.models.base import Base, TenantBaseModel, enum_values, ensure_utc
from agrohub.models.membership import RoleCode


class InvitationState(str, PyEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REVOKED = "revoked"
    EXPIRED = "expired"


class Invitation(Base, TenantBaseModel):
    """Pending offer binding a tenant, an email address and a role."""

    __tablename__ = "invitations"

    email = Column(String(255), nullable=False, index=True)
    role_code = Column(
        Enum(RoleCode, name="role_code", values_callable=enum_values),
        nullable=False,
    )
    token_hash = Column(String(64), unique=True, nullable=False, index=True)
    invited_by = Column(Uuid(as_uuid=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    revoked_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    tenant = relationship("Tenant", back_populates="invitations")

    __table_args__ = (
        Index(
            "uq_invitations_outstanding",
            "tenant_id",
            "email",
            unique=True,
            postgresql_where=text("accepted_at IS NULL AND revoked_at IS NULL"),
            sqlite_where=text("accepted_at IS NULL AND revoked_at IS NULL"),
        ),
    )

    def __repr__(self) -> str:
        return f"<Invitation {self.email} -> {self.tenant_id} ({self.role_code.value})>"

    @property
    def is_terminal(self) -> bool:
        return self.accepted_at is not None or self.revoked_at is not None

    def is_expired(self, now: datetime) -> bool:
        return now > ensure_utc(self.expires_at)

    def state(self, now: datetime) -> InvitationState:
        """Revoked takes precedence over accepted, accepted over expired."""
        if self.revoked_at is not None:
            return InvitationState.REVOKED
        if self.accepted_at is not None:
            return InvitationState.ACCEPTED
        if self.is_expired(now):
            return InvitationState.EXPIRED
        return InvitationState.PENDING
