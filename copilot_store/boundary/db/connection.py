"""
Database connection management.

Provides the async SQLAlchemy engine and session factory behind the
document store. The engine is built once per process and shared.

Dependencies: sqlalchemy, copilot_store.configs
System role: Database connection lifecycle management
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from copilot_store.boundary.db.base import Base
from copilot_store.configs.store import StoreSettings


def get_async_engine(config: StoreSettings) -> AsyncEngine:
    """
    Create async SQLAlchemy engine with connection pooling.

    Server databases get a sized pool with pool_pre_ping=True to detect stale
    connections early. SQLite shares one connection through StaticPool so an
    in-memory database survives across sessions.

    Args:
        config: Store settings with URL and pool sizing

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine

    Raises:
        ArgumentError: If database URL is invalid or engine creation fails

    Usage:
        engine = get_async_engine(get_settings().store)
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
    """
    if config.is_sqlite:
        return create_async_engine(
            config.database_url,
            echo=config.echo_sql,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_async_engine(
        config.database_url,
        echo=config.echo_sql,
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        pool_timeout=config.pool_timeout,
        pool_pre_ping=True,
    )


def get_async_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create async session factory for store operations.

    Sessions use autoflush=False for explicit transaction control and
    expire_on_commit=False so rows stay readable after commit.

    Args:
        engine: Shared async engine

    Returns:
        async_sessionmaker: Async session factory

    Usage:
        SessionFactory = get_async_session_factory(engine)
        async with SessionFactory() as session, session.begin():
            session.add(obj)
    """
    return async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


async def create_all_tables(engine: AsyncEngine) -> None:
    """
    Create the document table and indexes.

    Idempotent: CREATE TABLE IF NOT EXISTS semantics, existing tables remain
    unchanged.
    """
    # Import models to register them with Base.metadata
    from copilot_store.boundary.db.models import DocumentModel  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_all_tables(engine: AsyncEngine) -> None:
    """Drop the document table and all stored data."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
