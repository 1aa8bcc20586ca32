"""
Tenant lifecycle orchestration.

Coordinates the tenant, membership, invitation, profile and module stores
with the identity provider. Operations that touch more than one store or
an external system run as a Saga so completed steps are undone when a
later one fails.
"""
import logging
import re
from datetime import datetime
from typing import Any, Callable, Iterable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from agrohub.config import settings
from agrohub.core.exceptions import (
    ForbiddenError,
    NotFoundError,
    SlugTakenError,
    UnavailableError,
    ValidationError,
)
from agrohub.core.saga import Saga
from agrohub.integrations.identity import IdentityProvider, IdentityProviderError
from agrohub.models.base import utcnow
from agrohub.models.invitation import Invitation
from agrohub.models.membership import MembershipStatus, RoleCode, TenantMembership
from agrohub.models.module import ModuleCode, TenantModule
from agrohub.models.tenant import Tenant
from agrohub.schemas.auth import InviteUserRequest
from agrohub.schemas.tenant import TenantCreate, TenantCreateWithAdmin, TenantUpdate
from agrohub.services.audit_log_service import AuditLogService
from agrohub.services.invitation_service import InvitationService, normalize_email
from agrohub.services.membership_service import MembershipService
from agrohub.services.module_service import ModuleService
from agrohub.services.plan_limits import is_countable_role, plan_limits, resolve_plan
from agrohub.services.profile_service import ProfileService
from agrohub.services.sessions import identity_error, verify_access_token
from agrohub.services.tenant_service import TenantService

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_INVALID_SLUG_CHARS = re.compile(r"[^a-z0-9-]")

# Columns that may not be cleared through an update
_REQUIRED_TENANT_FIELDS = ("name", "plan", "contact_name", "contact_email", "max_users", "max_fields")


def normalize_slug(raw: str | None) -> str:
    """Lowercase, turn whitespace runs into '-', drop anything outside [a-z0-9-]."""
    slug = _WHITESPACE.sub("-", (raw or "").strip().lower())
    return _INVALID_SLUG_CHARS.sub("", slug)


def invite_url(raw_token: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/invitacion/usuario?token={raw_token}"


class TenantLifecycleService:
    """Provisioning, invitations, quotas and membership administration."""

    def __init__(
        self,
        db: AsyncSession,
        identity: IdentityProvider,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.identity = identity
        self.clock = clock
        self.tenants = TenantService(db)
        self.memberships = MembershipService(db)
        self.invitations = InvitationService(db, clock=clock)
        self.profiles = ProfileService(db)
        self.modules = ModuleService(db)
        self.audit = AuditLogService(db)

    # ==================== PROVISIONING ====================

    async def is_slug_available(self, slug: str) -> bool:
        normalized = normalize_slug(slug)
        if not normalized:
            return False
        return await self.tenants.get_by_slug(normalized) is None

    async def _checked_slug(self, raw: str) -> str:
        slug = normalize_slug(raw)
        if not slug:
            raise ValidationError("Slug must contain at least one letter, digit or '-'")
        if await self.tenants.get_by_slug(slug) is not None:
            raise SlugTakenError(slug)
        return slug

    async def provision_tenant(
        self,
        data: TenantCreate,
        owner_user_id: UUID,
        owner_full_name: str | None = None,
        owner_phone: str | None = None,
    ) -> tuple[Tenant, TenantMembership]:
        """Create a tenant owned by an existing identity-provider user.

        Steps commit one by one: tenant, owner membership, default modules,
        owner profile, audit row. A failure deletes whatever was created.
        """
        slug = await self._checked_slug(data.slug)
        plan = resolve_plan(data.plan)
        limits = plan_limits(plan)
        attrs = {
            "name": data.name.strip(),
            "slug": slug,
            "plan": plan,
            "contact_name": data.contact_name.strip(),
            "contact_email": normalize_email(data.contact_email),
            "primary_crop": data.primary_crop,
            "created_by": owner_user_id,
            "max_users": limits.max_users,
            "max_fields": limits.max_fields,
        }

        async def create_tenant(ctx: dict[str, Any]) -> Tenant:
            tenant = await self.tenants.create(attrs)
            await self.db.commit()
            ctx["tenant_id"] = tenant.id
            return tenant

        async def delete_tenant(ctx: dict[str, Any]) -> None:
            await self.db.rollback()
            await self.tenants.delete(ctx["tenant_id"])
            await self.db.commit()

        async def create_owner(ctx: dict[str, Any]) -> TenantMembership:
            membership = await self.memberships.create(
                tenant_id=ctx["tenant_id"],
                user_id=owner_user_id,
                role_code=RoleCode.OWNER,
                accepted_at=self.clock(),
            )
            await self.db.commit()
            ctx["membership_id"] = membership.id
            return membership

        async def delete_owner(ctx: dict[str, Any]) -> None:
            await self.db.rollback()
            await self.memberships.delete(ctx["membership_id"])
            await self.db.commit()

        async def enable_default_modules(ctx: dict[str, Any]) -> list[TenantModule]:
            modules = await self.modules.enable_many(ctx["tenant_id"], settings.default_modules)
            await self.db.commit()
            return modules

        async def set_owner_profile(ctx: dict[str, Any]) -> None:
            previous = await self.profiles.get(owner_user_id)
            ctx["previous_default_tenant_id"] = previous.default_tenant_id if previous else None
            fields: dict[str, Any] = {"default_tenant_id": ctx["tenant_id"]}
            if owner_full_name:
                fields["full_name"] = owner_full_name.strip()
            if owner_phone:
                fields["phone"] = owner_phone.strip()
            await self.profiles.upsert(owner_user_id, **fields)
            await self.db.commit()

        async def restore_owner_profile(ctx: dict[str, Any]) -> None:
            await self.db.rollback()
            await self.profiles.upsert(
                owner_user_id, default_tenant_id=ctx["previous_default_tenant_id"]
            )
            await self.db.commit()

        async def record_creation(ctx: dict[str, Any]) -> None:
            await self.audit.append(
                tenant_id=ctx["tenant_id"],
                actor_user_id=owner_user_id,
                action="tenant_created",
                entity="tenant",
                entity_id=ctx["tenant_id"],
                details={"tenant_name": attrs["name"], "slug": slug, "plan": plan},
            )
            await self.db.commit()

        saga = (
            Saga("provision_tenant")
            .step("tenant", create_tenant, delete_tenant)
            .step("owner_membership", create_owner, delete_owner)
            .step("modules", enable_default_modules)
            .step("profile", set_owner_profile, restore_owner_profile)
            .step("audit", record_creation)
        )
        ctx = await saga.run()

        logger.info(f"Provisioned tenant {slug} ({plan}) for owner {owner_user_id}")
        return ctx["tenant"], ctx["owner_membership"]

    async def create_tenant_with_admin(
        self, data: TenantCreateWithAdmin
    ) -> tuple[Tenant, TenantMembership, UUID]:
        """Create the owner account at the identity provider, then the tenant.

        The account is deleted again when provisioning fails.
        """
        admin = data.admin_account()
        email = normalize_email(admin.email)
        await self._checked_slug(data.slug)

        async def create_user(ctx: dict[str, Any]) -> UUID:
            try:
                return await self.identity.create_user(
                    email,
                    admin.password,
                    metadata={"full_name": admin.full_name.strip(), "phone": admin.phone},
                )
            except IdentityProviderError as e:
                raise identity_error(e, "User creation") from e

        async def delete_user(ctx: dict[str, Any]) -> None:
            await self.identity.delete_user(ctx["user"])

        async def provision(ctx: dict[str, Any]) -> tuple[Tenant, TenantMembership]:
            return await self.provision_tenant(
                data,
                ctx["user"],
                owner_full_name=admin.full_name,
                owner_phone=admin.phone,
            )

        saga = (
            Saga("create_tenant_with_admin")
            .step("user", create_user, delete_user)
            .step("tenant", provision)
        )
        ctx = await saga.run()

        tenant, membership = ctx["tenant"]
        return tenant, membership, ctx["user"]

    async def update_tenant(self, tenant_id: UUID, data: TenantUpdate, actor_id: UUID) -> Tenant:
        """Owner/admin update; a plan change resets limits not given explicitly."""
        await self.tenants.require(tenant_id)
        await self.memberships.require_role(
            actor_id, tenant_id, detail="Only owners and admins can update the tenant"
        )

        changes = data.model_dump(exclude_unset=True)
        for key in _REQUIRED_TENANT_FIELDS:
            if key in changes and changes[key] is None:
                changes.pop(key)

        if "plan" in changes:
            changes["plan"] = resolve_plan(changes["plan"])
            limits = plan_limits(changes["plan"])
            changes.setdefault("max_users", limits.max_users)
            changes.setdefault("max_fields", limits.max_fields)
        if "contact_email" in changes:
            changes["contact_email"] = normalize_email(changes["contact_email"])

        tenant = await self.tenants.update(tenant_id, changes)
        await self.audit.append(
            tenant_id=tenant_id,
            actor_user_id=actor_id,
            action="tenant_updated",
            entity="tenant",
            entity_id=tenant_id,
            details={"fields": sorted(changes)},
        )
        await self.db.commit()
        return tenant

    # ==================== INVITATIONS ====================

    async def invite_user(
        self, data: InviteUserRequest, inviter_id: UUID
    ) -> tuple[Invitation, str]:
        """Create an invitation and email its link.

        Returns the invitation and the accept URL. When the email cannot be
        delivered the invitation is deleted and UnavailableError is raised.
        """
        tenant = await self.tenants.require(data.tenant_id)
        await self.memberships.require_role(
            inviter_id, tenant.id, detail="Only owners and admins can invite users"
        )
        tenant_id, tenant_name = tenant.id, tenant.name
        email = normalize_email(data.email)

        async def create_invitation(ctx: dict[str, Any]) -> Invitation:
            invitation, raw_token = await self.invitations.create(
                tenant_id, email, data.role_code, inviter_id
            )
            await self.db.commit()
            ctx["invitation_id"] = invitation.id
            ctx["raw_token"] = raw_token
            ctx["invite_url"] = invite_url(raw_token)
            return invitation

        async def delete_invitation(ctx: dict[str, Any]) -> None:
            await self.db.rollback()
            await self.invitations.delete(ctx["invitation_id"])
            await self.db.commit()

        async def send_email(ctx: dict[str, Any]) -> None:
            try:
                await self.identity.invite_by_email(
                    email,
                    ctx["invite_url"],
                    metadata={
                        "tenant_id": str(tenant_id),
                        "tenant_name": tenant_name,
                        "role_code": data.role_code.value,
                        "invitation_token": ctx["raw_token"],
                        "invited_by_id": str(inviter_id),
                    },
                )
            except IdentityProviderError as e:
                logger.error(f"Invitation email to {email} failed: {e.message}")
                raise UnavailableError(f"Invitation email could not be sent: {e.message}") from e

        async def record_invitation(ctx: dict[str, Any]) -> None:
            await self.audit.append(
                tenant_id=tenant_id,
                actor_user_id=inviter_id,
                action="user_invited",
                entity="invitation",
                entity_id=ctx["invitation_id"],
                details={"email": email, "role_code": data.role_code.value},
            )
            await self.db.commit()

        saga = (
            Saga("invite_user")
            .step("invitation", create_invitation, delete_invitation)
            .step("email", send_email)
            .step("audit", record_invitation)
        )
        ctx = await saga.run()

        logger.info(f"Invited {email} to tenant {tenant_id} as {data.role_code.value}")
        return ctx["invitation"], ctx["invite_url"]

    async def lookup_invitation(self, raw_token: str) -> Invitation:
        return await self.invitations.lookup(raw_token)

    async def accept_invitation(
        self,
        raw_token: str,
        access_token: str,
        password: str | None = None,
        full_name: str | None = None,
        phone: str | None = None,
    ) -> TenantMembership:
        """Accept an invitation on behalf of the session's user."""
        verified = await verify_access_token(self.identity, access_token, self.clock())
        user_id = verified.user_id

        membership = await self.invitations.accept(raw_token, user_id, verified.email)

        display_name = (full_name or "").strip() or verified.email.split("@")[0]
        if password or full_name or phone:
            try:
                await self.identity.update_user(
                    user_id,
                    password=password,
                    metadata={"full_name": display_name, "phone": phone},
                )
            except IdentityProviderError as e:
                raise identity_error(e, "Account update") from e

        profile = await self.profiles.get(user_id)
        fields: dict[str, Any] = {"default_tenant_id": membership.tenant_id}
        if full_name or profile is None or not profile.full_name:
            fields["full_name"] = display_name
        if phone:
            fields["phone"] = phone
        await self.profiles.upsert(user_id, **fields)
        await self.db.commit()
        return membership

    async def revoke_invitation(self, invitation_id: UUID, actor_id: UUID) -> Invitation:
        invitation = await self.invitations.revoke(invitation_id, actor_id)
        await self.audit.append(
            tenant_id=invitation.tenant_id,
            actor_user_id=actor_id,
            action="invitation_revoked",
            entity="invitation",
            entity_id=invitation.id,
            details={"invited_email": invitation.email, "role_code": invitation.role_code.value},
        )
        await self.db.commit()
        return invitation

    async def list_invitations(self, tenant_id: UUID, actor_id: UUID) -> list[Invitation]:
        await self.tenants.require(tenant_id)
        await self.memberships.require_role(
            actor_id, tenant_id, detail="Only owners and admins can list invitations"
        )
        return await self.invitations.list_for_tenant(tenant_id)

    # ==================== QUOTAS ====================

    async def get_tenant_limits(self, tenant_id: UUID) -> dict[str, Any]:
        tenant = await self.tenants.require(tenant_id)
        return {
            "users": {
                "max": tenant.max_users,
                "current": tenant.current_users,
                "available": max(tenant.max_users - tenant.current_users, 0),
            },
            "fields": {
                "max": tenant.max_fields,
                "current": tenant.current_fields,
                "available": max(tenant.max_fields - tenant.current_fields, 0),
            },
            "plan": tenant.plan,
        }

    async def can_add_user(self, tenant_id: UUID) -> bool:
        limits = await self.get_tenant_limits(tenant_id)
        return limits["users"]["available"] > 0

    async def can_add_field(self, tenant_id: UUID) -> bool:
        limits = await self.get_tenant_limits(tenant_id)
        return limits["fields"]["available"] > 0

    async def reserve_field(self, tenant_id: UUID) -> Tenant:
        """Consume one field slot on behalf of the farm module."""
        tenant = await self.tenants.increment_fields(tenant_id)
        await self.db.commit()
        return tenant

    async def release_field(self, tenant_id: UUID) -> Tenant:
        tenant = await self.tenants.decrement_fields(tenant_id)
        await self.db.commit()
        return tenant

    # ==================== MEMBERS ====================

    async def remove_member(self, tenant_id: UUID, user_id: UUID, actor_id: UUID) -> TenantMembership:
        """Deactivate a membership and give its seat back."""
        await self.tenants.require(tenant_id)
        await self.memberships.require_role(
            actor_id, tenant_id, detail="Only owners and admins can remove members"
        )

        membership = await self.memberships.get_active(user_id, tenant_id)
        if membership is None:
            raise NotFoundError("Membership")
        if membership.role_code == RoleCode.OWNER:
            raise ForbiddenError("The tenant owner cannot be removed")

        membership = await self.memberships.update_status(membership.id, MembershipStatus.INACTIVE)
        if is_countable_role(membership.role_code):
            await self.tenants.decrement_users(tenant_id)

        profile = await self.profiles.get(user_id)
        if profile is not None and profile.default_tenant_id == tenant_id:
            await self.profiles.clear_default_tenant(user_id)

        await self.audit.append(
            tenant_id=tenant_id,
            actor_user_id=actor_id,
            action="member_removed",
            entity="membership",
            entity_id=membership.id,
            details={"user_id": str(user_id), "role_code": membership.role_code.value},
        )
        await self.db.commit()
        logger.info(f"Removed {user_id} from tenant {tenant_id}")
        return membership

    async def set_default_tenant(self, user_id: UUID, tenant_id: UUID) -> None:
        if await self.memberships.get_active(user_id, tenant_id) is None:
            raise ForbiddenError("You do not have access to this tenant")
        await self.profiles.upsert(user_id, default_tenant_id=tenant_id)
        await self.db.commit()

    async def clear_default_tenant(self, user_id: UUID) -> None:
        await self.profiles.clear_default_tenant(user_id)
        await self.db.commit()

    # ==================== MODULES ====================

    async def list_modules(self, tenant_id: UUID) -> list[TenantModule]:
        await self.tenants.require(tenant_id)
        return await self.modules.list_enabled(tenant_id)

    async def set_module(
        self, tenant_id: UUID, module_code: ModuleCode, enabled: bool, actor_id: UUID
    ) -> TenantModule:
        await self.tenants.require(tenant_id)
        await self.memberships.require_role(
            actor_id, tenant_id, detail="Only owners and admins can change modules"
        )
        module = await self.modules.set_enabled(tenant_id, module_code, enabled)
        await self.db.commit()
        return module

    async def enable_modules(
        self, tenant_id: UUID, module_codes: Iterable[ModuleCode], actor_id: UUID
    ) -> list[TenantModule]:
        await self.tenants.require(tenant_id)
        await self.memberships.require_role(
            actor_id, tenant_id, detail="Only owners and admins can change modules"
        )
        modules = await self.modules.enable_many(tenant_id, module_codes)
        await self.db.commit()
        return modules
