"""
Generic Shopify webhook receiver: validation pipeline and topic dispatch
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from minimall.core.config.settings import settings
from minimall.core.exceptions import WebhookError
from minimall.core.logging import get_logger
from .handlers import WEBHOOK_HANDLERS
from .rate_limiter import WebhookRateLimiter, webhook_rate_limiter
from .verification import HMAC_HEADER, SHOP_HEADER, TOPIC_HEADER, verify_webhook_signature

logger = get_logger(__name__)


@dataclass
class ValidatedWebhook:
    shop: str
    topic: str
    body: Any


def validate_webhook(
    headers: Mapping[str, str],
    raw_body: bytes,
    secret: Optional[str] = None,
    rate_limiter: Optional[WebhookRateLimiter] = None,
) -> ValidatedWebhook:
    """
    Run the receiver checks in order: headers, secret, signature, rate limit, JSON.

    Raises WebhookError carrying the error code and HTTP status of the
    first failing check.
    """
    signature = headers.get(HMAC_HEADER)
    shop = headers.get(SHOP_HEADER)
    topic = headers.get(TOPIC_HEADER)

    if not signature or not shop or not topic:
        raise WebhookError(
            "Missing required webhook headers", error_code="MISSING_HEADERS", status_code=401
        )

    if secret is None:
        secret = settings.shopify.SHOPIFY_WEBHOOK_SECRET
    if not secret:
        logger.error("SHOPIFY_WEBHOOK_SECRET not configured")
        raise WebhookError(
            "Webhook secret not configured", error_code="CONFIG_ERROR", status_code=500
        )

    if not verify_webhook_signature(raw_body, signature, secret):
        logger.warning("Invalid webhook signature", shop=shop, topic=topic)
        raise WebhookError(
            "Invalid webhook signature",
            error_code="INVALID_SIGNATURE",
            status_code=401,
            topic=topic,
        )

    limiter = rate_limiter or webhook_rate_limiter
    if not limiter.check(shop, topic):
        raise WebhookError(
            "Too many requests", error_code="RATE_LIMITED", status_code=429, topic=topic
        )

    try:
        body = json.loads(raw_body)
    except (ValueError, UnicodeDecodeError):
        raise WebhookError(
            "Invalid JSON body", error_code="INVALID_JSON", status_code=400, topic=topic
        )

    return ValidatedWebhook(shop=shop, topic=topic, body=body)


async def dispatch_webhook(webhook: ValidatedWebhook) -> Dict[str, Any]:
    handler = WEBHOOK_HANDLERS.get(webhook.topic)
    if handler is None:
        logger.warning(f"No handler for webhook topic: {webhook.topic}")
        return {"received": True}

    await handler(webhook.shop, webhook.body)
    return {"success": True}
