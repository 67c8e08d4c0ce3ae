"""
Database connection management.

Provides the async SQLAlchemy engine, session factory and table creation.

Dependencies: sqlalchemy, course_assistant.configs
System role: Database connection lifecycle management
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from course_assistant.boundary.db.base import Base
from course_assistant.configs import get_settings


def get_async_engine(url: str | None = None) -> AsyncEngine:
    """
    Create async SQLAlchemy engine.

    pool_pre_ping=True verifies connections before use to detect
    stale/broken connections early.

    Args:
        url: Optional database URL overriding settings

    Returns:
        AsyncEngine: Configured async engine
    """
    db_config = get_settings().database
    return create_async_engine(
        url or db_config.async_database_url,
        echo=db_config.echo_sql,
        pool_pre_ping=True,
    )


def get_async_session_factory(engine: AsyncEngine | None = None) -> async_sessionmaker:
    """
    Create async session factory for database operations.

    autoflush=False and expire_on_commit=False keep transaction control
    explicit and returned rows usable after commit.

    Args:
        engine: Optional engine (created from settings if None)

    Returns:
        async_sessionmaker: Async session factory

    Usage:
        SessionFactory = get_async_session_factory()
        async with SessionFactory() as session:
            session.add(obj)
            await session.commit()
    """
    return async_sessionmaker(
        bind=engine or get_async_engine(),
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create all registered tables if they do not exist."""
    # Import models so they register with Base.metadata
    from course_assistant.boundary.db import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

