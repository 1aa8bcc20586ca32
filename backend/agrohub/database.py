"""
Database connection and session management for AgroHub.
"""
from typing import Any, AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from agrohub.config import settings
from agrohub.models.base import Base


def async_url(url: str) -> str:
    """Point plain postgresql:// and sqlite:// URLs at their async drivers."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def create_engine(url: str) -> AsyncEngine:
    """Engine with pool and timeout options suited to the driver."""
    url = async_url(url)
    options: dict[str, Any] = {"echo": settings.ENVIRONMENT == "development"}
    if url.startswith("postgresql+asyncpg://"):
        options.update(
            pool_pre_ping=True,
            pool_size=10,
            max_overflow=20,
            # Per-statement timeout in seconds
            connect_args={"command_timeout": settings.DB_COMMAND_TIMEOUT_SECONDS},
        )
    return create_async_engine(url, **options)


engine = create_engine(settings.DATABASE_URL)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db() -> None:
    """Create missing tables; migrations own the schema in production."""
    from agrohub import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()
