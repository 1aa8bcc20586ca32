"""
SQLAlchemy models for AgroHub.
"""
from agrohub.models.base import Base, BaseModel, TenantBaseModel
from agrohub.models.tenant import Tenant
from agrohub.models.membership import MembershipStatus, RoleCode, TenantMembership
from agrohub.models.invitation import Invitation, InvitationState
from agrohub.models.profile import Profile
from agrohub.models.module import ModuleCode, TenantModule
from agrohub.models.audit_log import AuditLog

__all__ = [
    "Base",
    "BaseModel",
    "TenantBaseModel",
    "Tenant",
    "TenantMembership",
    "MembershipStatus",
    "RoleCode",
    "Invitation",
    "InvitationState",
    "Profile",
    "ModuleCode",
    "TenantModule",
    "AuditLog",
]
