"""
Object storage domain: R2 client, config storage, media assets and edge cache
"""

from .r2_client import R2Client, R2Config
from .config_service import (
    R2ConfigService,
    config_key,
    get_r2_service,
    get_r2_service_required,
)
from .edge_cache import EdgeCache, edge_cache, get_edge_cache
from .assets import AssetService

__all__ = [
    "R2Client",
    "R2Config",
    "R2ConfigService",
    "config_key",
    "get_r2_service",
    "get_r2_service_required",
    "EdgeCache",
    "edge_cache",
    "get_edge_cache",
    "AssetService",
]
