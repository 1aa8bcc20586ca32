"""
Invitation engine: create, look up, revoke and accept invitations.

Only the SHA-256 hash of an invitation token is stored. The raw token is
returned once from create() and travels by email.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from agrohub.config import settings
from agrohub.core.exceptions import (
    ConflictError,
    DuplicateInvitationError,
    EmailMismatchError,
    InvitationAlreadyAcceptedError,
    InvitationAlreadyTerminalError,
    InvitationExpiredError,
    InvitationRevokedError,
    NotFoundError,
    QuotaExceededError,
    ValidationError,
)
from agrohub.core.security import generate_invitation_token, hash_token
from agrohub.models.base import utcnow
from agrohub.models.invitation import Invitation
from agrohub.models.membership import RoleCode, TenantMembership
from agrohub.services.audit_log_service import AuditLogService
from agrohub.services.base import translate_db_errors
from agrohub.services.membership_service import MembershipService
from agrohub.services.plan_limits import is_countable_role
from agrohub.services.tenant_service import TenantService

logger = logging.getLogger(__name__)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


class InvitationService:
    """Service for invitation operations."""

    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock
        self.memberships = MembershipService(db)
        self.tenants = TenantService(db)
        self.audit = AuditLogService(db)

    async def get_by_id(self, invitation_id: UUID) -> Invitation | None:
        async with translate_db_errors("invitation lookup"):
            result = await self.db.execute(
                select(Invitation)
                .where(Invitation.id == invitation_id)
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()

    async def get_by_token(self, raw_token: str) -> Invitation | None:
        async with translate_db_errors("invitation lookup"):
            result = await self.db.execute(
                select(Invitation)
                .where(Invitation.token_hash == hash_token(raw_token))
                .execution_options(populate_existing=True)
            )
            return result.scalar_one_or_none()

    async def get_outstanding(self, tenant_id: UUID, email: str) -> Invitation | None:
        """Invitation with neither terminal marker set, expired or not."""
        async with translate_db_errors("invitation lookup"):
            result = await self.db.execute(
                select(Invitation).where(
                    Invitation.tenant_id == tenant_id,
                    Invitation.email == normalize_email(email),
                    Invitation.accepted_at.is_(None),
                    Invitation.revoked_at.is_(None),
                )
            )
            return result.scalar_one_or_none()

    async def list_for_tenant(self, tenant_id: UUID) -> list[Invitation]:
        """All invitations of a tenant, newest first."""
        async with translate_db_errors("invitation listing"):
            result = await self.db.execute(
                select(Invitation)
                .where(Invitation.tenant_id == tenant_id)
                .order_by(Invitation.created_at.desc())
            )
            return list(result.scalars().all())

    async def create(
        self,
        tenant_id: UUID,
        email: str,
        role_code: RoleCode,
        inviter_id: UUID,
    ) -> tuple[Invitation, str]:
        """Create a pending invitation and return it with its raw token.

        An outstanding invitation for the same address that has already
        expired is revoked first; a live one raises DuplicateInvitationError.
        """
        if RoleCode(role_code) == RoleCode.OWNER:
            raise ValidationError("owner role cannot be granted by invitation")

        email = normalize_email(email)
        now = self.clock()

        previous = await self.get_outstanding(tenant_id, email)
        if previous is not None:
            if not previous.is_expired(now):
                raise DuplicateInvitationError(email)
            previous.revoked_at = now
            async with translate_db_errors("invitation supersede"):
                await self.db.flush()
            logger.info(f"Superseding expired invitation {previous.id} for {email}")

        raw_token = generate_invitation_token()
        invitation = Invitation(
            tenant_id=tenant_id,
            email=email,
            role_code=RoleCode(role_code),
            token_hash=hash_token(raw_token),
            invited_by=inviter_id,
            expires_at=now + timedelta(hours=settings.INVITATION_TTL_HOURS),
        )
        self.db.add(invitation)
        try:
            async with translate_db_errors("invitation creation"):
                await self.db.flush()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateInvitationError(email) from e

        await self.db.refresh(invitation)
        logger.info(f"Invitation {invitation.id} created for {email} in tenant {tenant_id}")
        return invitation, raw_token

    async def lookup(self, raw_token: str) -> Invitation:
        """Resolve a token to a pending invitation or the reason it is unusable."""
        invitation = await self.get_by_token(raw_token)
        if invitation is None:
            raise NotFoundError("Invitation")
        if invitation.revoked_at is not None:
            raise InvitationRevokedError()
        if invitation.accepted_at is not None:
            raise InvitationAlreadyAcceptedError()
        if invitation.is_expired(self.clock()):
            raise InvitationExpiredError()
        return invitation

    async def revoke(self, invitation_id: UUID, actor_id: UUID) -> Invitation:
        """Set revoked_at on an invitation that is not yet terminal.

        Expired invitations may still be revoked.
        """
        invitation = await self.get_by_id(invitation_id)
        if invitation is None:
            raise NotFoundError("Invitation")

        await self.memberships.require_role(
            actor_id,
            invitation.tenant_id,
            detail="Only owners and admins can revoke invitations",
        )

        if invitation.is_terminal:
            raise InvitationAlreadyTerminalError()

        async with translate_db_errors("invitation revoke"):
            result = await self.db.execute(
                update(Invitation)
                .where(
                    Invitation.id == invitation_id,
                    Invitation.accepted_at.is_(None),
                    Invitation.revoked_at.is_(None),
                )
                .values(revoked_at=self.clock())
                .execution_options(synchronize_session=False)
            )
        if result.rowcount == 0:
            raise InvitationAlreadyTerminalError()

        logger.info(f"Invitation {invitation_id} revoked by {actor_id}")
        return await self.get_by_id(invitation_id)

    async def delete(self, invitation_id: UUID) -> bool:
        invitation = await self.get_by_id(invitation_id)
        if invitation is None:
            return False
        async with translate_db_errors("invitation deletion"):
            await self.db.delete(invitation)
            await self.db.flush()
        return True

    async def _mark_accepted(self, invitation_id: UUID, now: datetime) -> bool:
        async with translate_db_errors("invitation accept"):
            result = await self.db.execute(
                update(Invitation)
                .where(
                    Invitation.id == invitation_id,
                    Invitation.accepted_at.is_(None),
                    Invitation.revoked_at.is_(None),
                )
                .values(accepted_at=now)
                .execution_options(synchronize_session=False)
            )
        return result.rowcount == 1

    async def accept(
        self,
        raw_token: str,
        user_id: UUID,
        email: str,
        _retry: bool = True,
    ) -> TenantMembership:
        """Turn a pending invitation into an active membership.

        Retrying with the same token and user returns the membership created
        by the first call. The seat charge, membership insert, acceptance
        marker and audit row commit together or not at all.
        """
        invitation = await self.get_by_token(raw_token)
        if invitation is None:
            raise NotFoundError("Invitation")
        if invitation.revoked_at is not None:
            raise InvitationRevokedError()
        if normalize_email(email) != invitation.email:
            raise EmailMismatchError()

        tenant_id = invitation.tenant_id
        if invitation.accepted_at is not None:
            existing = await self.memberships.get_active(user_id, tenant_id)
            if existing is None:
                raise InvitationAlreadyAcceptedError()
            return existing

        now = self.clock()
        if invitation.is_expired(now):
            raise InvitationExpiredError()

        existing = await self.memberships.get_active(user_id, tenant_id)
        if existing is not None:
            # Already a member: close the invitation without charging a seat
            if not await self._mark_accepted(invitation.id, now):
                await self.db.rollback()
                return await self._retry_accept(raw_token, user_id, email, _retry)
            await self.db.commit()
            logger.info(f"Invitation {invitation.id} accepted by existing member {user_id}")
            return existing

        role_code = invitation.role_code
        try:
            if is_countable_role(role_code):
                await self.tenants.increment_users(tenant_id)
            membership = await self.memberships.create(
                tenant_id=tenant_id,
                user_id=user_id,
                role_code=role_code,
                invited_by=invitation.invited_by,
                accepted_at=now,
            )
            if not await self._mark_accepted(invitation.id, now):
                await self.db.rollback()
                return await self._retry_accept(raw_token, user_id, email, _retry)
            await self.audit.append(
                tenant_id=tenant_id,
                actor_user_id=user_id,
                action="invitation_accepted",
                entity="invitation",
                entity_id=invitation.id,
                details={"email": invitation.email, "role_code": role_code.value},
            )
            await self.db.commit()
        except QuotaExceededError:
            await self.db.rollback()
            logger.info(f"Seat quota full for tenant {tenant_id}; invitation {invitation.id} stays pending")
            raise
        except IntegrityError:
            # A concurrent accept inserted the same active membership first
            await self.db.rollback()
            return await self._retry_accept(raw_token, user_id, email, _retry)

        logger.info(f"Invitation {invitation.id} accepted by {user_id} as {role_code.value}")
        return membership

    async def _retry_accept(
        self, raw_token: str, user_id: UUID, email: str, retry: bool
    ) -> TenantMembership:
        if not retry:
            raise ConflictError("Invitation changed while it was being accepted")
        return await self.accept(raw_token, user_id, email, _retry=False)
