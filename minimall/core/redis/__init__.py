"""
Redis package for MINIMALL
"""

from .client import (
    RedisClient,
    get_redis_client,
    close_redis_client,
    check_redis_health,
)

__all__ = [
    "RedisClient",
    "get_redis_client",
    "close_redis_client",
    "check_redis_health",
]
