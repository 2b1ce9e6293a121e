"""
Database session configuration.

Builds the async engine for the fleet database and exposes the session
dependency used by every endpoint. PostgreSQL (asyncpg) is the production
target; SQLite (aiosqlite) is accepted for local runs and tests.
"""

from typing import Any, Dict

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from fleetflow.app.core.config import settings


def _engine_options(database_url: str) -> Dict[str, Any]:
    """Pool sizing only applies to server databases; SQLite uses a single-file pool."""
    options: Dict[str, Any] = {"echo": settings.db_echo, "future": True}
    if database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow
        options["pool_pre_ping"] = True
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db():
    """
    FastAPI dependency for database sessions.

    Anything left uncommitted when the request fails is rolled back, so a
    lifecycle transition that raises halfway never leaves partial writes.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
