"""
Custom exceptions for MINIMALL
"""

from .base import MinimallException
from .config import ConfigurationError, EnvironmentVariableError
from .database import DatabaseError, DatabaseConnectionError, DatabaseQueryError
from .redis import RedisError, RedisConnectionError
from .validation import ValidationError
from .storage import (
    StorageError,
    ObjectNotFoundError,
    StorageNotConfiguredError,
    ConfigNotFoundError,
)
from .shopify import AuthenticationError, ShopifyAPIError, WebhookError

__all__ = [
    "MinimallException",
    "ConfigurationError",
    "EnvironmentVariableError",
    "DatabaseError",
    "DatabaseConnectionError",
    "DatabaseQueryError",
    "RedisError",
    "RedisConnectionError",
    "ValidationError",
    "StorageError",
    "ObjectNotFoundError",
    "StorageNotConfiguredError",
    "ConfigNotFoundError",
    "AuthenticationError",
    "ShopifyAPIError",
    "WebhookError",
]
