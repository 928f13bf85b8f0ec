"""
Database package for MINIMALL
"""

from .engine import get_engine, close_engine, check_engine_health, verify_connection
from .session import (
    get_session,
    get_session_context,
    get_transaction_context,
    get_session_factory,
)


async def create_all_tables() -> None:
    """Create every mapped table that does not exist yet"""
    from .models import Base

    engine = await get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def check_database_health() -> bool:
    return await check_engine_health()


__all__ = [
    "get_engine",
    "close_engine",
    "check_engine_health",
    "check_database_health",
    "verify_connection",
    "get_session",
    "get_session_context",
    "get_transaction_context",
    "get_session_factory",
    "create_all_tables",
]
