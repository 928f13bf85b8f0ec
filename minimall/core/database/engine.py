"""
SQLAlchemy async engine configuration for MINIMALL
"""

import asyncio
from typing import Optional

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.pool import NullPool

from minimall.core.config.settings import settings
from minimall.core.exceptions import DatabaseConnectionError
from minimall.core.logging import get_logger

logger = get_logger(__name__)

# Global engine instance
_engine: Optional[AsyncEngine] = None
_engine_lock = asyncio.Lock()


def get_database_url(database_url: Optional[str] = None) -> str:
    """Get the database URL with proper async driver"""
    database_url = database_url or settings.database.DATABASE_URL

    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql+asyncpg://", 1)
    elif database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif database_url.startswith("sqlite://"):
        database_url = database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)

    return database_url


def create_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Create SQLAlchemy async engine"""
    database_url = get_database_url(database_url)
    is_postgres = "postgresql" in database_url

    engine = create_async_engine(
        database_url,
        echo=settings.database.SQLALCHEMY_ECHO,
        poolclass=NullPool,
        connect_args=(
            {
                "command_timeout": settings.database.DATABASE_QUERY_TIMEOUT,
                "server_settings": {"application_name": "minimall"},
            }
            if is_postgres
            else {}
        ),
    )

    if "sqlite" in database_url:

        @event.listens_for(engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


async def get_engine() -> AsyncEngine:
    """Get or lazily create the shared async engine"""
    global _engine

    if _engine is None:
        async with _engine_lock:
            if _engine is None:
                _engine = create_engine()
                logger.info("Database engine created")

    return _engine


async def _health_check_engine(engine: AsyncEngine) -> bool:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    return True


async def verify_connection() -> None:
    """Raise DatabaseConnectionError when the database is unreachable"""
    engine = await get_engine()
    try:
        await asyncio.wait_for(
            _health_check_engine(engine),
            timeout=settings.database.DATABASE_CONNECT_TIMEOUT,
        )
    except Exception as e:
        raise DatabaseConnectionError(f"Database is not available: {e}", cause=e)


async def close_engine() -> None:
    """Dispose the shared engine"""
    global _engine

    if _engine is not None:
        try:
            await _engine.dispose()
        except Exception as e:
            logger.warning(f"Error disposing engine: {e}")
        finally:
            _engine = None


async def check_engine_health() -> bool:
    """Check if the database engine is healthy"""
    try:
        engine = await get_engine()
        return await asyncio.wait_for(_health_check_engine(engine), timeout=5)
    except Exception as e:
        logger.warning(f"Database engine health check failed: {e}")
        return False
