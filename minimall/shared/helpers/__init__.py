"""
Helper functions for MINIMALL
"""

from .datetime_utils import now_utc, now_ms, to_iso_z, parse_iso_timestamp
from .shop_utils import extract_shop_from_domain, shop_identifiers
from .crypto_utils import (
    hmac_sha256_hex,
    hmac_sha256_base64,
    sha256_hex,
    timing_safe_equal,
)

__all__ = [
    "now_utc",
    "now_ms",
    "to_iso_z",
    "parse_iso_timestamp",
    "hmac_sha256_hex",
    "hmac_sha256_base64",
    "sha256_hex",
    "timing_safe_equal",
    "extract_shop_from_domain",
    "shop_identifiers",
]
