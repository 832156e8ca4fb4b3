"""
Database engine configuration.

This module builds async SQLAlchemy engines and session factories for the
local SQLite trip store.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from inventory.app.core.config import settings

# Create declarative base for models
Base = declarative_base()


def _is_memory_url(database_url: str) -> bool:
    return database_url.endswith(":memory:") or database_url.endswith("://")


def build_engine(database_url: str = None, echo: bool = None) -> AsyncEngine:
    """
    Create an async engine for the given URL (defaults to settings).

    In-memory SQLite databases live inside a single connection, so they get a
    StaticPool to keep every session on the same database.
    """
    url = database_url or settings.database_url
    kwargs = {
        "echo": settings.db_echo if echo is None else echo,
        "future": True,
    }
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_memory_url(url):
            kwargs["poolclass"] = StaticPool

    return create_async_engine(url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Create an async session factory bound to the engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
