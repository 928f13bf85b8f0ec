"""
SiteConfig domain
"""

from .defaults import (
    create_default_site_config,
    create_demo_config,
    generate_config_id,
)
from .schemas import SiteConfig, validate_site_config
from .service import ConfigService, extract_shop_from_domain

__all__ = [
    "create_default_site_config",
    "create_demo_config",
    "generate_config_id",
    "SiteConfig",
    "validate_site_config",
    "ConfigService",
    "extract_shop_from_domain",
]
