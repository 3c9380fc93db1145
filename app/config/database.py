"""
Database configuration.

Async SQLAlchemy engine and session factory builders. Callers own the
engine they create and dispose it on shutdown.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from app.config.settings import Settings


def create_db_engine(config: Settings, *, null_pool: bool = False) -> AsyncEngine:
    """
    Create an async engine.

    Args:
        config: Application settings
        null_pool: Disable pooling (dramatiq worker threads own their loops)

    Returns:
        AsyncEngine bound to the asyncpg driver
    """
    if null_pool:
        return create_async_engine(
            config.async_database_url,
            echo=False,
            poolclass=NullPool,
        )
    return create_async_engine(
        config.async_database_url,
        echo=config.database_echo,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=5,
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory that keeps attributes loaded after commit."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
