"""
Unit tests for the tenant store and its quota counters.
"""
import random
import uuid

import pytest
from sqlalchemy import update

from agrohub.core.exceptions import (
    NotFoundError,
    QuotaExceededError,
    SlugTakenError,
    ValidationError,
)
from agrohub.models.tenant import Tenant
from agrohub.services.tenant_service import TenantService


def tenant_attrs(slug: str = "la-esperanza", max_users: int = 2, max_fields: int = 1) -> dict:
    return {
        "name": "La Esperanza",
        "slug": slug,
        "plan": "basico",
        "contact_name": "Luis Gomez",
        "contact_email": "luis@example.com",
        "created_by": uuid.uuid4(),
        "max_users": max_users,
        "max_fields": max_fields,
    }


class TestTenantCrud:
    """Test tenant persistence."""

    @pytest.mark.asyncio
    async def test_create_starts_counters_at_zero(self, db_session):
        tenant = await TenantService(db_session).create(tenant_attrs())

        assert tenant.id is not None
        assert tenant.current_users == 0
        assert tenant.current_fields == 0

    @pytest.mark.asyncio
    async def test_duplicate_slug_raises_slug_taken(self, db_session):
        service = TenantService(db_session)
        await service.create(tenant_attrs())
        await db_session.commit()

        with pytest.raises(SlugTakenError) as exc_info:
            await service.create(tenant_attrs())

        assert exc_info.value.status_code == 409
        assert await service.get_by_slug("la-esperanza") is not None

    @pytest.mark.asyncio
    async def test_update_ignores_counter_fields(self, db_session):
        service = TenantService(db_session)
        tenant = await service.create(tenant_attrs())

        updated = await service.update(tenant.id, {"name": "Nueva Esperanza", "current_users": 9})

        assert updated.name == "Nueva Esperanza"
        assert updated.current_users == 0

    @pytest.mark.asyncio
    async def test_update_rejects_ceiling_below_usage(self, db_session):
        service = TenantService(db_session)
        tenant = await service.create(tenant_attrs(max_users=2))
        await service.increment_users(tenant.id)
        await service.increment_users(tenant.id)

        with pytest.raises(ValidationError):
            await service.update(tenant.id, {"max_users": 1})

    @pytest.mark.asyncio
    async def test_seat_taken_during_update_is_validation_error(self, db_session, monkeypatch):
        service = TenantService(db_session)
        tenant = await service.create(tenant_attrs(max_users=2))
        await db_session.commit()
        tenant_id = tenant.id
        require = service.require

        async def require_then_seat_taken(tid):
            found = await require(tid)
            await db_session.execute(
                update(Tenant)
                .where(Tenant.id == tid)
                .values(current_users=Tenant.current_users + 1)
                .execution_options(synchronize_session=False)
            )
            return found

        monkeypatch.setattr(service, "require", require_then_seat_taken)

        with pytest.raises(ValidationError) as exc_info:
            await service.update(tenant_id, {"max_users": 0})

        assert exc_info.value.status_code == 422
        reloaded = await TenantService(db_session).get_by_id(tenant_id)
        assert reloaded.max_users == 2

    @pytest.mark.asyncio
    async def test_delete_missing_tenant_returns_false(self, db_session):
        assert await TenantService(db_session).delete(uuid.uuid4()) is False


class TestQuotaCounters:
    """Test conditional increments and decrements."""

    @pytest.mark.asyncio
    async def test_increment_until_full(self, db_session):
        service = TenantService(db_session)
        tenant = await service.create(tenant_attrs(max_users=2))

        assert (await service.increment_users(tenant.id)).current_users == 1
        assert (await service.increment_users(tenant.id)).current_users == 2

        with pytest.raises(QuotaExceededError) as exc_info:
            await service.increment_users(tenant.id)

        error = exc_info.value
        assert error.status_code == 402
        assert error.limit == 2
        assert error.current == 2
        assert (await service.get_by_id(tenant.id)).current_users == 2

    @pytest.mark.asyncio
    async def test_field_counter_is_independent(self, db_session):
        service = TenantService(db_session)
        tenant = await service.create(tenant_attrs(max_users=2, max_fields=1))

        await service.increment_fields(tenant.id)
        with pytest.raises(QuotaExceededError) as exc_info:
            await service.increment_fields(tenant.id)

        assert exc_info.value.resource == "fields"
        refreshed = await service.get_by_id(tenant.id)
        assert refreshed.current_fields == 1
        assert refreshed.current_users == 0

    @pytest.mark.asyncio
    async def test_decrement_floors_at_zero(self, db_session):
        service = TenantService(db_session)
        tenant = await service.create(tenant_attrs())

        await service.increment_users(tenant.id)
        await service.decrement_users(tenant.id)
        result = await service.decrement_users(tenant.id)

        assert result.current_users == 0

    @pytest.mark.asyncio
    async def test_increment_missing_tenant_is_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            await TenantService(db_session).increment_users(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_zero_ceiling_rejects_first_seat(self, db_session):
        service = TenantService(db_session)
        tenant = await service.create(tenant_attrs(max_users=0))

        with pytest.raises(QuotaExceededError):
            await service.increment_users(tenant.id)

    @pytest.mark.asyncio
    async def test_stale_reader_cannot_take_last_seat(self, session_maker):
        """The ceiling is checked by the UPDATE itself, not by an earlier read."""
        async with session_maker() as setup:
            tenant = await TenantService(setup).create(tenant_attrs(max_users=1))
            await setup.commit()
            tenant_id = tenant.id

        async with session_maker() as first, session_maker() as second:
            stale = await TenantService(second).get_by_id(tenant_id)
            assert stale.current_users == 0

            await TenantService(first).increment_users(tenant_id)
            await first.commit()

            with pytest.raises(QuotaExceededError):
                await TenantService(second).increment_users(tenant_id)
            await second.rollback()

        async with session_maker() as check:
            assert (await TenantService(check).get_by_id(tenant_id)).current_users == 1

    @pytest.mark.asyncio
    async def test_random_sequences_keep_counters_in_bounds(self, db_session):
        service = TenantService(db_session)
        tenant = await service.create(tenant_attrs(max_users=3, max_fields=2))
        rng = random.Random(20260110)

        for _ in range(60):
            operation = rng.choice(
                [
                    service.increment_users,
                    service.decrement_users,
                    service.increment_fields,
                    service.decrement_fields,
                ]
            )
            try:
                await operation(tenant.id)
            except QuotaExceededError:
                pass
            current = await service.get_by_id(tenant.id)
            assert 0 <= current.current_users <= current.max_users
            assert 0 <= current.current_fields <= current.max_fields
