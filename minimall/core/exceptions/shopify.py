"""
Shopify integration exceptions
"""

from typing import Any, Dict, Optional
from .base import MinimallException


class AuthenticationError(MinimallException):
    """Raised when OAuth or session token validation fails"""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(
            message=message,
            error_code="AUTHENTICATION_ERROR",
            details=details,
            cause=cause,
        )


class ShopifyAPIError(MinimallException):
    """Raised when a Shopify API call fails or returns user errors"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(
            message=message,
            error_code="SHOPIFY_API_ERROR",
            details={"status_code": status_code},
            cause=cause,
        )
        self.status_code = status_code


class WebhookError(MinimallException):
    """Raised when webhook verification or processing fails"""

    def __init__(
        self,
        message: str,
        error_code: str = "WEBHOOK_ERROR",
        status_code: int = 500,
        topic: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            details={"topic": topic},
            cause=cause,
        )
        self.status_code = status_code
        self.topic = topic
