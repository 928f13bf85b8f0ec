"""
Object storage exceptions
"""

from typing import List, Optional
from .base import MinimallException


class StorageError(MinimallException):
    """Raised when an R2 request fails"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        key: Optional[str] = None,
        error_code: str = "STORAGE_ERROR",
        cause: Optional[Exception] = None,
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            details={"status_code": status_code, "key": key},
            cause=cause,
        )
        self.status_code = status_code
        self.key = key


class ObjectNotFoundError(StorageError):
    """Raised when an object key does not exist in the bucket"""

    def __init__(self, key: str):
        super().__init__(
            message=f"Object not found: {key}",
            status_code=404,
            key=key,
            error_code="OBJECT_NOT_FOUND",
        )


class StorageNotConfiguredError(StorageError):
    """Raised when R2 credentials are missing from the environment"""

    def __init__(self, missing_vars: List[str]):
        super().__init__(
            message=(
                "R2 storage is not configured. Missing environment variables: "
                f"{', '.join(missing_vars)}. "
                "Please configure R2 credentials to enable storage."
            ),
            error_code="STORAGE_NOT_CONFIGURED",
        )
        self.details["missing_variables"] = missing_vars
        self.missing_vars = missing_vars


class ConfigNotFoundError(MinimallException):
    """Raised when a site configuration cannot be found"""

    def __init__(self, config_id: str, cause: Optional[Exception] = None):
        super().__init__(
            message=f"Configuration not found: {config_id}",
            error_code="CONFIG_NOT_FOUND",
            details={"config_id": config_id},
            cause=cause,
        )
        self.config_id = config_id
