"""
Pytest configuration and fixtures for AgroHub tests.
"""
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator, Optional

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from agrohub.core.deps import get_clock, get_identity_provider
from agrohub.database import get_db
from agrohub.integrations.identity import (
    IdentityProvider,
    IdentityProviderError,
    IdentitySession,
    VerifiedToken,
)
from agrohub.models import Base
from agrohub.models.membership import RoleCode
from agrohub.schemas.tenant import TenantCreate
from agrohub.services.lifecycle_service import TenantLifecycleService
from agrohub.services.membership_service import MembershipService

# Use SQLite for testing (in-memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# 2100-01-01, far beyond any frozen clock used in tests
FAR_FUTURE_EXP = 4102444800


# ============================================================================
# Test doubles
# ============================================================================

class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeIdentityProvider(IdentityProvider):
    """In-memory identity provider recording every call."""

    def __init__(self):
        self.users: dict[uuid.UUID, dict[str, Any]] = {}
        self.tokens: dict[str, VerifiedToken] = {}
        self.otp_codes: dict[str, str] = {}
        self.invites: list[dict[str, Any]] = []
        self.updates: list[dict[str, Any]] = []
        self.deleted_users: list[uuid.UUID] = []
        self.signed_out: list[str] = []
        self.invite_error: Optional[IdentityProviderError] = None

    def register(self, email: str, password: str = "secret-password") -> uuid.UUID:
        user_id = uuid.uuid4()
        self.users[user_id] = {"email": email, "password": password, "metadata": {}}
        return user_id

    def issue_token(
        self,
        user_id: Optional[uuid.UUID],
        email: str,
        exp: int = FAR_FUTURE_EXP,
        aud: str = "authenticated",
    ) -> str:
        token = f"session-{uuid.uuid4().hex}"
        claims = {"sub": str(user_id) if user_id else None, "email": email, "aud": aud, "exp": exp}
        self.tokens[token] = VerifiedToken(user_id=user_id, email=email, claims=claims)
        return token

    def _find_by_email(self, email: str) -> Optional[uuid.UUID]:
        for user_id, user in self.users.items():
            if user["email"] == email:
                return user_id
        return None

    def _session(self, user_id: uuid.UUID) -> IdentitySession:
        email = self.users[user_id]["email"]
        return IdentitySession(
            user_id=user_id,
            email=email,
            access_token=self.issue_token(user_id, email),
            refresh_token=f"refresh-{uuid.uuid4().hex}",
        )

    async def sign_in(self, email: str, password: str) -> IdentitySession:
        user_id = self._find_by_email(email)
        if user_id is None or self.users[user_id]["password"] != password:
            raise IdentityProviderError("Invalid login credentials", status_code=400)
        return self._session(user_id)

    async def send_otp(self, email, metadata=None, create_user=True) -> None:
        self.otp_codes[email] = "123456"

    async def verify_otp(self, email: str, code: str) -> IdentitySession:
        if self.otp_codes.get(email) != code:
            raise IdentityProviderError("Token has expired or is invalid", status_code=403)
        user_id = self._find_by_email(email) or self.register(email)
        return self._session(user_id)

    async def verify_token(self, token: str) -> VerifiedToken:
        if token not in self.tokens:
            raise IdentityProviderError("Invalid token", status_code=401)
        return self.tokens[token]

    async def create_user(self, email, password, metadata=None) -> uuid.UUID:
        if self._find_by_email(email) is not None:
            raise IdentityProviderError(
                "A user with this email address has already been registered", status_code=422
            )
        user_id = self.register(email, password)
        self.users[user_id]["metadata"] = metadata or {}
        return user_id

    async def delete_user(self, user_id: uuid.UUID) -> None:
        self.users.pop(user_id, None)
        self.deleted_users.append(user_id)

    async def update_user(self, user_id, password=None, metadata=None) -> None:
        self.updates.append({"user_id": user_id, "password": password, "metadata": metadata})

    async def invite_by_email(self, email, redirect_url, metadata=None) -> None:
        if self.invite_error is not None:
            raise self.invite_error
        self.invites.append({"email": email, "redirect_url": redirect_url, "metadata": metadata or {}})

    async def sign_out(self, token: str) -> None:
        self.signed_out.append(token)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_maker() as session:
        yield session
        await session.rollback()


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 1, 10, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def identity() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def lifecycle(db_session, identity, clock) -> TenantLifecycleService:
    return TenantLifecycleService(db_session, identity, clock=clock)


@pytest.fixture
def owner_id(identity) -> uuid.UUID:
    return identity.register("owner@example.com")


@pytest.fixture
def tenant_data() -> TenantCreate:
    return TenantCreate(
        name="Acme Farms",
        slug="acme-farms",
        plan="basico",
        contact_name="Ana Perez",
        contact_email="ana@example.com",
        primary_crop="manzana",
    )


@pytest_asyncio.fixture
async def tenant(lifecycle, tenant_data, owner_id):
    """Provisioned basico tenant owned by owner_id."""
    tenant, _ = await lifecycle.provision_tenant(tenant_data, owner_id, owner_full_name="Ana Perez")
    return tenant


@pytest.fixture
def add_member(db_session):
    """Insert an active membership directly, bypassing invitations."""
    async def _add(tenant_id: uuid.UUID, role_code: RoleCode, user_id: Optional[uuid.UUID] = None):
        membership = await MembershipService(db_session).create(
            tenant_id=tenant_id,
            user_id=user_id or uuid.uuid4(),
            role_code=role_code,
        )
        await db_session.commit()
        return membership

    return _add


# ============================================================================
# FastAPI App Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def app(db_session: AsyncSession, identity: FakeIdentityProvider, clock: FrozenClock) -> FastAPI:
    """Create test FastAPI application."""
    from agrohub.main import app as main_app

    async def override_get_db():
        yield db_session

    main_app.dependency_overrides[get_db] = override_get_db
    main_app.dependency_overrides[get_identity_provider] = lambda: identity
    main_app.dependency_overrides[get_clock] = lambda: clock

    yield main_app

    main_app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ============================================================================
# Authentication Fixtures
# ============================================================================

@pytest.fixture
def owner_headers(identity, owner_id) -> dict:
    token = identity.issue_token(owner_id, "owner@example.com")
    return {"Authorization": f"Bearer {token}"}
