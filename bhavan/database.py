"""
Database Connection Module
Handles the SQLAlchemy async engine used by the API and the synchronous
engine used by Celery pipeline workers. Both point at the same database.
"""

import logging
from typing import AsyncIterator

from sqlalchemy import create_engine, event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from bhavan.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# Async driver -> sync driver used by workers
_SYNC_DRIVERS = {
    "sqlite+aiosqlite": "sqlite",
    "postgresql+asyncpg": "postgresql+psycopg",
}


def sync_database_url(url: str) -> str:
    """Derive the synchronous connection URL for a configured async URL."""
    scheme, sep, rest = url.partition("://")
    return f"{_SYNC_DRIVERS.get(scheme, scheme)}{sep}{rest}"


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_size": 5,  # Connection pool size
        "max_overflow": 10,  # Extra connections when pool is full
        "pool_pre_ping": True,
    }


DATABASE_URL = settings.database_url

# Create async engine
engine = create_async_engine(
    DATABASE_URL,
    echo=settings.database_echo,
    **_engine_options(DATABASE_URL),
)

# Session factory - creates new database sessions
async_session_maker = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False  # Objects remain accessible after commit
)

# Worker-side engine (Celery tasks are synchronous)
sync_engine = create_engine(
    sync_database_url(DATABASE_URL),
    echo=settings.database_echo,
    **_engine_options(DATABASE_URL),
)

sync_session_maker = sessionmaker(bind=sync_engine, expire_on_commit=False)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def enforce_foreign_keys(target_engine) -> None:
    """SQLite ignores ON DELETE clauses unless foreign keys are switched on."""
    sync_target = getattr(target_engine, "sync_engine", target_engine)
    if sync_target.dialect.name == "sqlite":
        event.listen(sync_target, "connect", _enable_sqlite_foreign_keys)


enforce_foreign_keys(engine)
enforce_foreign_keys(sync_engine)


# Base class for all our models
class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Dependency injection for FastAPI routes.
    Yields a database session and ensures cleanup.
    """
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db():
    """
    Create all tables in database.
    Called once at application startup.
    """
    # Register models on Base.metadata
    from bhavan import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("✅ Database tables created successfully!")
