"""
Tenant schemas.
"""
from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field

from agrohub.models.membership import MembershipStatus, RoleCode
from agrohub.models.module import ModuleCode
from agrohub.schemas.common import BaseSchema, IDSchema, TimestampSchema


class TenantCreate(BaseSchema):
    """Create tenant request; the slug is normalized server-side."""

    name: str = Field(min_length=2, max_length=255)
    slug: str = Field(min_length=2, max_length=100)
    plan: str = "basico"
    contact_name: str = Field(min_length=2, max_length=255)
    contact_email: EmailStr
    primary_crop: str | None = Field(default=None, max_length=100)


class AdminAccount(BaseSchema):
    """First administrator created together with a tenant."""

    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    full_name: str = Field(min_length=2, max_length=255)
    phone: str | None = Field(default=None, max_length=50)


class TenantCreateWithAdmin(TenantCreate):
    """Create tenant request that also creates its owner account."""

    admin_email: EmailStr
    admin_password: str = Field(min_length=8, max_length=128)
    admin_full_name: str = Field(min_length=2, max_length=255)
    admin_phone: str | None = Field(default=None, max_length=50)

    def admin_account(self) -> AdminAccount:
        return AdminAccount(
            email=self.admin_email,
            password=self.admin_password,
            full_name=self.admin_full_name,
            phone=self.admin_phone,
        )


class TenantUpdate(BaseSchema):
    """Update tenant request."""

    name: str | None = Field(default=None, min_length=2, max_length=255)
    plan: str | None = None
    contact_name: str | None = Field(default=None, min_length=2, max_length=255)
    contact_email: EmailStr | None = None
    primary_crop: str | None = Field(default=None, max_length=100)
    max_users: int | None = Field(default=None, ge=0)
    max_fields: int | None = Field(default=None, ge=0)


class TenantResponse(IDSchema, TimestampSchema):
    """Tenant response."""

    name: str
    slug: str
    plan: str
    contact_name: str
    contact_email: str
    created_by: UUID
    primary_crop: str | None = None
    max_users: int
    max_fields: int
    current_users: int
    current_fields: int


class MembershipResponse(IDSchema, TimestampSchema):
    """Tenant membership response."""

    tenant_id: UUID
    user_id: UUID
    role_code: RoleCode
    status: MembershipStatus
    invited_by: UUID | None = None
    accepted_at: datetime | None = None


class ProvisionedTenantResponse(BaseSchema):
    tenant: TenantResponse
    membership: MembershipResponse
    user_id: UUID | None = None


class QuotaUsage(BaseSchema):
    max: int
    current: int
    available: int


class TenantLimits(BaseSchema):
    users: QuotaUsage
    fields: QuotaUsage
    plan: str


class SlugAvailability(BaseSchema):
    slug: str
    available: bool


class CapacityResponse(BaseSchema):
    allowed: bool


class ModuleResponse(BaseSchema):
    module_code: str
    enabled: bool


class ModuleToggle(BaseSchema):
    module_code: ModuleCode
    enabled: bool = True


class ModuleBulkEnable(BaseSchema):
    module_codes: list[ModuleCode] = Field(min_length=1)


class DefaultTenantRequest(BaseSchema):
    tenant_id: UUID
