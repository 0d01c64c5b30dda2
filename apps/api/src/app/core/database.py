"""
Database Configuration

Async SQLAlchemy engine, session factory and declarative base.
PostgreSQL (asyncpg) in deployment, SQLite (aiosqlite) for local runs and tests.
"""

import logging
from collections.abc import AsyncIterator

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from app.core.config import settings

logger = logging.getLogger(__name__)


def _get_engine_kwargs() -> dict:
    """Return dialect-specific engine options for SQLite vs PostgreSQL."""
    kwargs: dict = {"echo": settings.database_echo}
    if settings.is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in settings.database_url:
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    return kwargs


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


def enable_sqlite_foreign_keys(async_engine: AsyncEngine) -> None:
    """Turn on FK enforcement (cascades, SET NULL) for every SQLite connection."""

    @event.listens_for(async_engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(settings.database_url, **_get_engine_kwargs())
if settings.is_sqlite:
    enable_sqlite_foreign_keys(engine)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency yielding a database session.

    Services commit explicitly; anything left uncommitted when a request fails
    is rolled back here.
    """
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """
    Verify database connectivity on startup.

    The schema is owned by Alembic. SQLite databases (local development)
    are created in place since they are never migrated.
    """
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
        if settings.is_sqlite:
            # Import models so every table is registered on the metadata
            import app.modules.auth.models  # noqa: F401
            import app.modules.registrations.models  # noqa: F401
            import app.modules.statuses.models  # noqa: F401
            import app.modules.users.models  # noqa: F401

            await conn.run_sync(Base.metadata.create_all)
            logger.info("SQLite schema created")


async def close_db() -> None:
    """Dispose of the engine connection pool."""
    await engine.dispose()
