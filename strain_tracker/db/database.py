"""
Async SQLAlchemy engine and session factory setup.
"""
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

# Base class for all models
Base = declarative_base()


def create_engine(database_url: str, debug: bool = False) -> AsyncEngine:
    """
    Create the async engine for ``database_url``.

    NullPool is used in debug mode so that connections are not held between
    requests while iterating locally.
    """
    kwargs = {"echo": debug, "future": True, "pool_pre_ping": True}
    if debug:
        kwargs["poolclass"] = NullPool
    return create_async_engine(database_url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Session factory bound to ``engine``."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """
    Create tables.

    Note: In production, use Alembic migrations instead.
    """
    async with engine.begin() as conn:
        # Register models on Base.metadata
        from strain_tracker.models import document  # noqa: F401

        await conn.run_sync(Base.metadata.create_all)


async def close_db(engine: AsyncEngine) -> None:
    """Dispose of pooled connections."""
    await engine.dispose()
