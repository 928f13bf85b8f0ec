"""
SQLAlchemy async session management for MINIMALL
"""

import asyncio
from typing import AsyncGenerator, Optional
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from minimall.core.logging import get_logger
from .engine import get_engine

logger = get_logger(__name__)

# Global session factory
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None
_session_factory_lock = asyncio.Lock()


async def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the async session factory"""
    global _session_factory

    if _session_factory is None:
        async with _session_factory_lock:
            if _session_factory is None:
                engine = await get_engine()
                _session_factory = async_sessionmaker(
                    bind=engine,
                    class_=AsyncSession,
                    expire_on_commit=False,  # Keep objects accessible after commit
                    autoflush=True,
                )

    return _session_factory


def reset_session_factory() -> None:
    """Drop the cached factory so the next call binds to a fresh engine"""
    global _session_factory
    _session_factory = None


async def get_session() -> AsyncSession:
    """
    Get a new async database session.

    The session should be used within a context manager or properly closed.
    """
    session_factory = await get_session_factory()
    return session_factory()


@asynccontextmanager
async def get_session_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Context manager for database sessions with automatic cleanup.

    Usage:
        async with get_session_context() as session:
            result = await session.execute(query)
    """
    session = await get_session()
    try:
        yield session
    except Exception as e:
        logger.error(f"Database session error: {e}")
        await session.rollback()
        raise
    finally:
        await session.close()


@asynccontextmanager
async def get_transaction_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Context manager for database transactions with automatic rollback on error.

    Usage:
        async with get_transaction_context() as session:
            session.add(obj)  # committed on exit
    """
    session = await get_session()
    try:
        yield session
        await session.commit()
    except Exception as e:
        logger.error(f"Database transaction error: {type(e).__name__}: {e}")
        await session.rollback()
        raise
    finally:
        await session.close()
