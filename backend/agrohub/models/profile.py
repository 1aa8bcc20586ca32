"""
Per-user profile metadata.
"""
from sqlalchemy import Column, ForeignKey, String, Uuid

from agrohub.models.base import Base, TimestampMixin


class Profile(Base, TimestampMixin):
    """Profile keyed by the identity-provider user id."""

    __tablename__ = "profiles"

    user_id = Column(Uuid(as_uuid=True), primary_key=True)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    # Weak pointer; only picks which tenant loads first
    default_tenant_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("tenants.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Profile {self.user_id}>"
