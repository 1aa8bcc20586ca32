"""
Integration tests for tenant API endpoints.
"""
import uuid

import pytest
from fastapi import status

from agrohub.models.membership import RoleCode


def bearer(identity, user_id, email) -> dict:
    return {"Authorization": f"Bearer {identity.issue_token(user_id, email)}"}


class TestTenantLookup:
    """Test tenant lookups."""

    @pytest.mark.asyncio
    async def test_check_slug(self, async_client, tenant):
        response = await async_client.get("/api/v1/tenant/check-slug", params={"slug": "Acme Farms"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"slug": "acme-farms", "available": False}

        response = await async_client.get("/api/v1/tenant/check-slug", params={"slug": "finca-sur"})
        assert response.json()["available"] is True

    @pytest.mark.asyncio
    async def test_get_by_slug_and_id(self, async_client, tenant, owner_headers):
        response = await async_client.get("/api/v1/tenant/by-slug/acme-farms")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["id"] == str(tenant.id)

        response = await async_client.get(f"/api/v1/tenant/{tenant.id}", headers=owner_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["name"] == "Acme Farms"

    @pytest.mark.asyncio
    async def test_unknown_tenant(self, async_client, owner_headers):
        response = await async_client.get(f"/api/v1/tenant/{uuid.uuid4()}", headers=owner_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"detail": "Tenant not found", "code": "not_found"}

    @pytest.mark.asyncio
    async def test_modules_and_limits(self, async_client, tenant, owner_headers):
        response = await async_client.get(f"/api/v1/tenant/{tenant.id}/modules", headers=owner_headers)
        assert sorted(m["module_code"] for m in response.json()) == ["dashboard", "usuarios"]

        response = await async_client.get(f"/api/v1/tenant/{tenant.id}/limits", headers=owner_headers)
        assert response.json()["fields"] == {"max": 5, "current": 0, "available": 5}

        response = await async_client.get(
            f"/api/v1/tenant/{tenant.id}/can-add-user", headers=owner_headers
        )
        assert response.json() == {"allowed": True}

        response = await async_client.get(
            f"/api/v1/tenant/{tenant.id}/can-add-field", headers=owner_headers
        )
        assert response.json() == {"allowed": True}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "suffix", ["", "/modules", "/limits", "/can-add-user", "/can-add-field"]
    )
    async def test_tenant_reads_require_auth(self, async_client, tenant, suffix):
        response = await async_client.get(f"/api/v1/tenant/{tenant.id}{suffix}")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "unauthorized"
        assert "contact_email" not in response.text


class TestTenantCreation:
    """Test tenant creation endpoints."""

    @pytest.mark.asyncio
    async def test_create_with_admin(self, async_client, identity):
        response = await async_client.post(
            "/api/v1/tenant/create-with-admin",
            json={
                "name": "Bodega Alta",
                "slug": "bodega-alta",
                "plan": "enterprise",
                "contact_name": "Julia Moreno",
                "contact_email": "julia@example.com",
                "admin_email": "julia@example.com",
                "admin_password": "secret-password",
                "admin_full_name": "Julia Moreno",
            },
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert uuid.UUID(data["user_id"]) in identity.users
        assert data["tenant"]["max_users"] == 100
        assert data["membership"]["role_code"] == "owner"

    @pytest.mark.asyncio
    async def test_create_with_taken_slug(self, async_client, identity, tenant):
        response = await async_client.post(
            "/api/v1/tenant/create-with-admin",
            json={
                "name": "Acme Again",
                "slug": "ACME farms",
                "contact_name": "Julia Moreno",
                "contact_email": "julia@example.com",
                "admin_email": "julia@example.com",
                "admin_password": "secret-password",
                "admin_full_name": "Julia Moreno",
            },
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["code"] == "slug_taken"

    @pytest.mark.asyncio
    async def test_create_for_current_user(self, async_client, tenant, owner_headers):
        response = await async_client.post(
            "/api/v1/tenant/create",
            json={
                "name": "Second Farm",
                "slug": "second-farm",
                "contact_name": "Ana Perez",
                "contact_email": "ana@example.com",
            },
            headers=owner_headers,
        )
        assert response.status_code == status.HTTP_201_CREATED

        response = await async_client.get("/api/v1/tenant/user-tenants", headers=owner_headers)
        assert sorted(t["slug"] for t in response.json()) == ["acme-farms", "second-farm"]


class TestTenantAdministration:
    """Test owner/admin operations."""

    @pytest.mark.asyncio
    async def test_update_tenant(self, async_client, tenant, owner_headers):
        response = await async_client.put(
            f"/api/v1/tenant/{tenant.id}",
            json={"name": "Acme Farms SA", "plan": "profesional"},
            headers=owner_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["name"] == "Acme Farms SA"
        assert data["max_users"] == 30
        assert data["max_fields"] == 20

    @pytest.mark.asyncio
    async def test_worker_cannot_update(self, async_client, identity, tenant, add_member):
        worker = await add_member(tenant.id, RoleCode.CAMPO)

        response = await async_client.put(
            f"/api/v1/tenant/{tenant.id}",
            json={"name": "Hijacked"},
            headers=bearer(identity, worker.user_id, "worker@example.com"),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "forbidden"

    @pytest.mark.asyncio
    async def test_membership_of_current_user(self, async_client, identity, tenant, owner_headers):
        response = await async_client.get(f"/api/v1/tenant/{tenant.id}/membership", headers=owner_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["role_code"] == "owner"

        response = await async_client.get(
            f"/api/v1/tenant/{tenant.id}/membership",
            headers=bearer(identity, uuid.uuid4(), "stranger@example.com"),
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_remove_member(self, async_client, tenant, owner_id, owner_headers, add_member):
        member = await add_member(tenant.id, RoleCode.EMPAQUE)

        response = await async_client.delete(
            f"/api/v1/tenant/{tenant.id}/members/{member.user_id}", headers=owner_headers
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "inactive"

        response = await async_client.delete(
            f"/api/v1/tenant/{tenant.id}/members/{owner_id}", headers=owner_headers
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_toggle_modules(self, async_client, tenant, owner_headers):
        response = await async_client.post(
            f"/api/v1/tenant/{tenant.id}/modules/bulk",
            json={"module_codes": ["campo", "empaque"]},
            headers=owner_headers,
        )
        assert response.status_code == status.HTTP_200_OK

        response = await async_client.post(
            f"/api/v1/tenant/{tenant.id}/modules",
            json={"module_code": "dashboard", "enabled": False},
            headers=owner_headers,
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"module_code": "dashboard", "enabled": False}

        response = await async_client.get(f"/api/v1/tenant/{tenant.id}/modules", headers=owner_headers)
        assert sorted(m["module_code"] for m in response.json()) == ["campo", "empaque", "usuarios"]

    @pytest.mark.asyncio
    async def test_unknown_module_code(self, async_client, tenant, owner_headers):
        response = await async_client.post(
            f"/api/v1/tenant/{tenant.id}/modules",
            json={"module_code": "weather", "enabled": True},
            headers=owner_headers,
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    @pytest.mark.asyncio
    async def test_default_tenant(self, async_client, identity, tenant, owner_headers):
        response = await async_client.post("/api/v1/tenant/clear-default", headers=owner_headers)
        assert response.status_code == status.HTTP_200_OK

        response = await async_client.post(
            "/api/v1/tenant/set-default", json={"tenant_id": str(tenant.id)}, headers=owner_headers
        )
        assert response.status_code == status.HTTP_200_OK

        response = await async_client.post(
            "/api/v1/tenant/set-default",
            json={"tenant_id": str(tenant.id)},
            headers=bearer(identity, uuid.uuid4(), "stranger@example.com"),
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN
