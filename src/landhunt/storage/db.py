"""Async database engine and session factory.

The engine is built once per process by the service container
(landhunt.services) and disposed on shutdown.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from landhunt.config import Settings
from landhunt.storage.models import Base

logger = logging.getLogger(__name__)


def create_engine(settings: Settings) -> AsyncEngine:
    kwargs: dict = {"echo": False}
    if settings.database_url.startswith("postgresql+asyncpg://"):
        connect_args: dict = {"timeout": settings.database_connect_timeout_s}
        if settings.database_require_ssl:
            import ssl

            connect_args["ssl"] = ssl.create_default_context()
        kwargs["connect_args"] = connect_args
        kwargs["pool_pre_ping"] = True
        kwargs["pool_recycle"] = 300
    return create_async_engine(settings.database_url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables if they don't exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized")
