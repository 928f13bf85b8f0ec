"""
Database-related exceptions
"""

from .base import MinimallException
from typing import Optional, Dict, Any


class DatabaseError(MinimallException):
    """Base exception for database errors"""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        error_code: str = "DATABASE_ERROR",
    ):
        super().__init__(
            message=message, error_code=error_code, details=details, cause=cause
        )


class DatabaseConnectionError(DatabaseError):
    """Raised when database connection fails"""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(
            message=message, error_code="DATABASE_CONNECTION_ERROR", cause=cause
        )


class DatabaseQueryError(DatabaseError):
    """Raised when a database query fails"""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(
            message=message,
            error_code="DATABASE_QUERY_ERROR",
            details={"operation": operation},
            cause=cause,
        )
