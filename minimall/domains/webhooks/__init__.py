"""
Shopify webhook domain
"""

from .attribution import (
    build_line_item_attribution,
    extract_attribution_data,
    process_order_attributions,
)
from .handlers import WEBHOOK_HANDLERS
from .processor import WebhookProcessor, get_webhook_processor
from .rate_limiter import WebhookRateLimiter, get_rate_limit_for_topic
from .receiver import ValidatedWebhook, dispatch_webhook, validate_webhook
from .verification import verify_webhook_signature

__all__ = [
    "build_line_item_attribution",
    "extract_attribution_data",
    "process_order_attributions",
    "WEBHOOK_HANDLERS",
    "WebhookProcessor",
    "get_webhook_processor",
    "WebhookRateLimiter",
    "get_rate_limit_for_topic",
    "ValidatedWebhook",
    "dispatch_webhook",
    "validate_webhook",
    "verify_webhook_signature",
]
