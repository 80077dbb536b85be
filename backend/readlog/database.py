"""
Readlog Backend — Database Engine & Session Factory
=====================================================

What:  Async SQLAlchemy engine factory, session factory and declarative Base.
Why:   Centralizes all database connection logic in one place.
How:   Builds an async engine from Settings; the AppContext owns the engine
       and disposes it on shutdown.
Who:   Used by readlog.context (runtime), alembic/env.py and the test fixtures.

Connection Pooling Strategy:
    PostgreSQL (asyncpg):
        pool_size / max_overflow / pool_timeout from settings
        pool_pre_ping:     Validates connections before use
        pool_recycle=3600: Recycles connections every hour
        command_timeout:   Per-statement timeout enforced by asyncpg
    SQLite (aiosqlite):
        No pool sizing; in-memory databases share one connection (StaticPool)
        so every session sees the same tables.
"""

from typing import Any, Dict

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from readlog.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class to register with the shared metadata
    used by Alembic and by `create_all()` when DB_CREATE_ALL is enabled.
    """
    pass


def engine_options(settings: Settings) -> Dict[str, Any]:
    """Keyword arguments for create_async_engine() appropriate to the driver."""
    options: Dict[str, Any] = {
        # Echo SQL queries in DEBUG mode for development visibility
        "echo": settings.log_level == "DEBUG",
    }
    if settings.is_sqlite:
        options["connect_args"] = {"check_same_thread": False}
        if ":memory:" in settings.database_url or settings.database_url.rstrip("/").endswith("sqlite+aiosqlite:"):
            options["poolclass"] = StaticPool
        return options

    options.update(
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=3600,
        connect_args={"command_timeout": settings.db_command_timeout},
    )
    return options


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine. No connection is opened until first use."""
    return create_async_engine(settings.database_url, **engine_options(settings))


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: documents are read off instances after commit
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_all(engine: AsyncEngine) -> None:
    """Create the book and note tables if they do not exist yet."""
    # Import models so they register with Base.metadata
    from readlog.models import Book, Note  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
