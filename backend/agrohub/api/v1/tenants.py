"""
Tenant management endpoints.
"""
from uuid import UUID

from fastapi import APIRouter, Query, status

from agrohub.core.deps import CurrentUser, Lifecycle, Memberships, Tenants
from agrohub.core.exceptions import NotFoundError
from agrohub.schemas.common import MessageResponse
from agrohub.schemas.tenant import (
    CapacityResponse,
    DefaultTenantRequest,
    MembershipResponse,
    ModuleBulkEnable,
    ModuleResponse,
    ModuleToggle,
    ProvisionedTenantResponse,
    SlugAvailability,
    TenantCreate,
    TenantCreateWithAdmin,
    TenantLimits,
    TenantResponse,
    TenantUpdate,
)
from agrohub.services.lifecycle_service import normalize_slug

router = APIRouter(prefix="/tenant", tags=["Tenants"])


@router.get("/check-slug", response_model=SlugAvailability)
async def check_slug(lifecycle: Lifecycle, slug: str = Query(min_length=1)):
    """Check whether a slug is free after normalization."""
    return SlugAvailability(
        slug=normalize_slug(slug),
        available=await lifecycle.is_slug_available(slug),
    )


@router.get("/by-slug/{slug}", response_model=TenantResponse)
async def get_tenant_by_slug(slug: str, tenants: Tenants):
    tenant = await tenants.get_by_slug(normalize_slug(slug))
    if not tenant:
        raise NotFoundError("Tenant")
    return TenantResponse.model_validate(tenant)


@router.post(
    "/create-with-admin",
    response_model=ProvisionedTenantResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_tenant_with_admin(data: TenantCreateWithAdmin, lifecycle: Lifecycle):
    """Create a tenant together with its owner account."""
    tenant, membership, user_id = await lifecycle.create_tenant_with_admin(data)
    return ProvisionedTenantResponse(
        tenant=TenantResponse.model_validate(tenant),
        membership=MembershipResponse.model_validate(membership),
        user_id=user_id,
    )


@router.get("/user-tenants", response_model=list[TenantResponse])
async def get_user_tenants(current_user: CurrentUser, tenants: Tenants):
    """Tenants where the current user is an active member."""
    return [TenantResponse.model_validate(t) for t in await tenants.list_for_user(current_user.id)]


@router.post("/create", response_model=ProvisionedTenantResponse, status_code=status.HTTP_201_CREATED)
async def create_tenant(data: TenantCreate, current_user: CurrentUser, lifecycle: Lifecycle):
    """Create a tenant owned by the current user."""
    tenant, membership = await lifecycle.provision_tenant(data, current_user.id)
    return ProvisionedTenantResponse(
        tenant=TenantResponse.model_validate(tenant),
        membership=MembershipResponse.model_validate(membership),
        user_id=current_user.id,
    )


@router.post("/set-default", response_model=MessageResponse)
async def set_default_tenant(data: DefaultTenantRequest, current_user: CurrentUser, lifecycle: Lifecycle):
    await lifecycle.set_default_tenant(current_user.id, data.tenant_id)
    return MessageResponse(message="Default tenant updated")


@router.post("/clear-default", response_model=MessageResponse)
async def clear_default_tenant(current_user: CurrentUser, lifecycle: Lifecycle):
    await lifecycle.clear_default_tenant(current_user.id)
    return MessageResponse(message="Default tenant cleared")


@router.get("/{tenant_id}", response_model=TenantResponse)
async def get_tenant(tenant_id: UUID, current_user: CurrentUser, tenants: Tenants):
    """Get a tenant by ID."""
    return TenantResponse.model_validate(await tenants.require(tenant_id))


@router.put("/{tenant_id}", response_model=TenantResponse)
async def update_tenant(
    tenant_id: UUID,
    data: TenantUpdate,
    current_user: CurrentUser,
    lifecycle: Lifecycle,
):
    """Update a tenant (owner or admin)."""
    tenant = await lifecycle.update_tenant(tenant_id, data, current_user.id)
    return TenantResponse.model_validate(tenant)


@router.get("/{tenant_id}/membership", response_model=MembershipResponse)
async def get_membership(tenant_id: UUID, current_user: CurrentUser, memberships: Memberships):
    """Current user's active membership in a tenant."""
    membership = await memberships.get_active(current_user.id, tenant_id)
    if not membership:
        raise NotFoundError("Membership")
    return MembershipResponse.model_validate(membership)


@router.delete("/{tenant_id}/members/{user_id}", response_model=MembershipResponse)
async def remove_member(
    tenant_id: UUID,
    user_id: UUID,
    current_user: CurrentUser,
    lifecycle: Lifecycle,
):
    """Deactivate a member and release the seat (owner or admin)."""
    membership = await lifecycle.remove_member(tenant_id, user_id, current_user.id)
    return MembershipResponse.model_validate(membership)


@router.get("/{tenant_id}/modules", response_model=list[ModuleResponse])
async def get_modules(tenant_id: UUID, current_user: CurrentUser, lifecycle: Lifecycle):
    """Enabled modules of a tenant."""
    return [ModuleResponse.model_validate(m) for m in await lifecycle.list_modules(tenant_id)]


@router.post("/{tenant_id}/modules", response_model=ModuleResponse)
async def set_module(
    tenant_id: UUID,
    data: ModuleToggle,
    current_user: CurrentUser,
    lifecycle: Lifecycle,
):
    module = await lifecycle.set_module(tenant_id, data.module_code, data.enabled, current_user.id)
    return ModuleResponse.model_validate(module)


@router.post("/{tenant_id}/modules/bulk", response_model=list[ModuleResponse])
async def enable_modules(
    tenant_id: UUID,
    data: ModuleBulkEnable,
    current_user: CurrentUser,
    lifecycle: Lifecycle,
):
    modules = await lifecycle.enable_modules(tenant_id, data.module_codes, current_user.id)
    return [ModuleResponse.model_validate(m) for m in modules]


@router.get("/{tenant_id}/limits", response_model=TenantLimits)
async def get_limits(tenant_id: UUID, current_user: CurrentUser, lifecycle: Lifecycle):
    return await lifecycle.get_tenant_limits(tenant_id)


@router.get("/{tenant_id}/can-add-user", response_model=CapacityResponse)
async def can_add_user(tenant_id: UUID, current_user: CurrentUser, lifecycle: Lifecycle):
    return CapacityResponse(allowed=await lifecycle.can_add_user(tenant_id))


@router.get("/{tenant_id}/can-add-field", response_model=CapacityResponse)
async def can_add_field(tenant_id: UUID, current_user: CurrentUser, lifecycle: Lifecycle):
    return CapacityResponse(allowed=await lifecycle.can_add_field(tenant_id))
