"""
Shopify webhook signature verification

Shopify signs the raw request body with HMAC-SHA256 and sends the base64
digest in X-Shopify-Hmac-Sha256.
"""

from typing import Optional, Union

from minimall.core.logging import get_logger
from minimall.shared.helpers import hmac_sha256_base64, timing_safe_equal

logger = get_logger(__name__)

HMAC_HEADER = "x-shopify-hmac-sha256"
SHOP_HEADER = "x-shopify-shop-domain"
TOPIC_HEADER = "x-shopify-topic"


def calculate_signature(raw_body: Union[str, bytes], secret: str) -> str:
    return hmac_sha256_base64(secret, raw_body)


def verify_webhook_signature(
    raw_body: Union[str, bytes], signature: Optional[str], secret: Optional[str]
) -> bool:
    """True when signature matches the body; a `sha256=` prefix is tolerated"""
    if not signature or not secret:
        return False

    clean_signature = signature[len("sha256=") :] if signature.startswith("sha256=") else signature
    expected = calculate_signature(raw_body, secret)
    if not timing_safe_equal(clean_signature, expected):
        logger.warning("Webhook signature mismatch")
        return False
    return True
