"""Database configuration and session management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool

from realtyflow.config.settings import Settings, get_settings
from realtyflow.db.models.base import Base

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def configure_engine(settings: Settings | None = None) -> AsyncEngine:
    """Create the async engine and session factory for the given settings.

    In-memory SQLite URLs share a single connection so that every session
    sees the same database.
    """
    global _engine, _session_factory

    if settings is None:
        settings = get_settings()

    url = settings.DATABASE_URL
    if url.startswith("sqlite"):
        engine = create_async_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool if ":memory:" in url else NullPool,
        )
    elif settings.ENVIRONMENT == "test":
        engine = create_async_engine(url, echo=False, poolclass=NullPool)
    else:
        engine = create_async_engine(
            url,
            echo=settings.DEBUG,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_pre_ping=True,
        )

    _engine = engine
    _session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    return engine


def get_engine() -> AsyncEngine:
    """Return the configured engine, configuring it from settings on first use."""
    if _engine is None:
        return configure_engine()
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        configure_engine()
    assert _session_factory is not None
    return _session_factory


async def init_db() -> None:
    """Verify connectivity during application startup."""
    async with get_engine().begin() as conn:
        await conn.execute(text("SELECT 1"))


async def create_all() -> None:
    """Create every table. Used for SQLite development and tests; production uses Alembic."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Release all pooled connections."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Context manager for obtaining a database session.

    Use this when you need a session outside of FastAPI dependency injection,
    such as in the automation jobs.

    Usage:
        async with get_async_session() as session:
            result = await session.execute(query)
    """
    async with get_session_factory()() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for FastAPI to inject a request-scoped session.

    The request is one unit of work: the session commits when the handler
    returns and rolls back when any exception escapes it.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
