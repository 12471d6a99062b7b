"""
Database Connection Module
Handles the SQLAlchemy async engine and session factory.

The engine is owned by the application: it is created once at startup
(see ``table_orders.main.lifespan``), kept on ``app.state`` and disposed on
shutdown. Route handlers receive sessions through ``get_db``.
"""

import logging
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from table_orders.core.config import Settings

logger = logging.getLogger(__name__)


# Base class for all our models
class Base(DeclarativeBase):
    pass


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create the async engine described by ``settings``."""
    options = {"echo": settings.db_echo}
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,  # Connection pool size
            max_overflow=settings.db_max_overflow,  # Extra connections when pool is full
            pool_pre_ping=True,
        )
    return create_async_engine(settings.database_url, **options)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory - creates new database sessions bound to ``engine``."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False  # Objects remain accessible after commit
    )


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Dependency injection for FastAPI routes.
    Yields a database session and ensures cleanup.
    """
    session_maker = request.app.state.session_maker
    async with session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def ping_db(engine: AsyncEngine) -> None:
    """Run a trivial query; raises if the database is unreachable."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def init_db(engine: AsyncEngine) -> None:
    """
    Create all tables in database.
    Called once at application startup.
    """
    # Register the mapped tables on Base.metadata
    from table_orders import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready")
