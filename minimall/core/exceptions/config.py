"""
Configuration-related exceptions
"""

from .base import MinimallException
from typing import Optional


class ConfigurationError(MinimallException):
    """Raised when there's a configuration error"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        details: Optional[dict] = None,
        cause: Optional[Exception] = None,
    ):
        config_details = {"config_key": config_key}
        if details:
            config_details.update(details)
        super().__init__(
            message,
            "CONFIG_ERROR",
            config_details,
            cause,
        )


class EnvironmentVariableError(ConfigurationError):
    """Raised when a required environment variable is missing"""

    def __init__(
        self,
        var_name: str,
        details: Optional[dict] = None,
        cause: Optional[Exception] = None,
    ):
        env_details = {"missing_variable": var_name}
        if details:
            env_details.update(details)
        super().__init__(
            message=f"Required environment variable '{var_name}' is not set",
            config_key=var_name,
            details=env_details,
            cause=cause,
        )
