"""Async engine, session factory and schema bootstrap."""
from typing import Any, AsyncIterator, Dict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from taskhub.config import settings
from taskhub.core.security import ROLE_PERMISSIONS


def _engine_options(url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.DATABASE_ECHO, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        # One shared connection keeps an in-memory database alive across sessions
        options.update(poolclass=StaticPool, connect_args={"check_same_thread": False})
    else:
        options.update(pool_size=10, max_overflow=20)
    return options


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db() -> AsyncIterator[AsyncSession]:
    """Request-scoped session."""
    async with AsyncSessionLocal() as session:
        yield session


async def init_db() -> None:
    """Create missing tables, then seed the built-in roles and the admin account."""
    import taskhub.models  # noqa: F401  registers every table on Base.metadata
    from taskhub.services.bootstrap_service import ensure_default_admin, ensure_roles

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        role_map = await ensure_roles(session, role_names=ROLE_PERMISSIONS.keys())
        await ensure_default_admin(session, role_map=role_map)


async def close_db() -> None:
    await engine.dispose()
