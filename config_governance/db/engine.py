"""
Async SQLAlchemy engine and session factory.
Uses asyncpg for PostgreSQL and aiosqlite for local/test databases.
Engine is lazily created on first use to avoid import-time connection failures.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from config_governance.config.settings import settings

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine with pool settings suited to the backend."""
    if database_url.startswith("sqlite"):
        # one shared connection so in-memory databases survive across sessions
        return create_async_engine(
            database_url, echo=echo, poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
    )


def get_engine() -> AsyncEngine:
    """Lazily create and return the async engine singleton."""
    global _engine
    if _engine is None:
        _engine = build_engine(settings.database_url, echo=settings.db_echo)
        logger.info(f"Created async engine for {settings.database_url.split('@')[-1]}")
    return _engine


def get_session_factory() -> async_sessionmaker:
    """Lazily create and return the session factory singleton."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


async def dispose_engine() -> None:
    """Dispose the engine on shutdown."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("Async engine disposed")


@asynccontextmanager
async def governance_store() -> AsyncIterator["SqlAlchemyGovernanceStore"]:
    """Yield a SQL-backed governance store bound to a fresh session."""
    from config_governance.db.governance_repository import SqlAlchemyGovernanceStore

    factory = get_session_factory()
    async with factory() as session:
        yield SqlAlchemyGovernanceStore(session)
