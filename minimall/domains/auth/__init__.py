"""
Shopify OAuth, session tokens, CSRF and attempt limiting
"""

from .csrf import CSRFProtection, CSRFTokenData
from .rate_limiter import RateLimiter, auth_rate_limiter, install_rate_limiter
from .shopify_auth import (
    RedisTokenStore,
    ShopifyAuth,
    ShopifyAuthConfig,
    ShopifySession,
    get_shopify_auth,
)

__all__ = [
    "CSRFProtection",
    "CSRFTokenData",
    "RateLimiter",
    "auth_rate_limiter",
    "install_rate_limiter",
    "RedisTokenStore",
    "ShopifyAuth",
    "ShopifyAuthConfig",
    "ShopifySession",
    "get_shopify_auth",
]
