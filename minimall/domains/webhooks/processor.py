"""
Webhook processing for app lifecycle and GDPR compliance topics

Every delivery is stored as unprocessed, routed by topic and then marked
processed. Failures propagate so Shopify retries the delivery.
"""

from typing import Any, Dict, Optional, Union

from minimall.core.config.settings import settings
from minimall.core.exceptions import ConfigurationError
from minimall.core.logging import get_logger
from minimall.repository.AnalyticsRepository import AnalyticsRepository
from minimall.repository.ConfigRepository import ConfigRepository
from minimall.repository.FeatureFlagRepository import FeatureFlagRepository
from minimall.repository.RevenueAttributionRepository import RevenueAttributionRepository
from minimall.repository.ShopRepository import ShopRepository
from minimall.repository.UserRepository import UserRepository
from minimall.repository.WebhookRepository import WebhookRepository
from .verification import verify_webhook_signature

logger = get_logger(__name__)


class WebhookProcessor:
    def __init__(
        self,
        secret_key: str,
        webhook_repository: Optional[WebhookRepository] = None,
        config_repository: Optional[ConfigRepository] = None,
        user_repository: Optional[UserRepository] = None,
        feature_flag_repository: Optional[FeatureFlagRepository] = None,
        shop_repository: Optional[ShopRepository] = None,
        analytics_repository: Optional[AnalyticsRepository] = None,
        revenue_repository: Optional[RevenueAttributionRepository] = None,
    ):
        self.secret_key = secret_key
        self.webhooks = webhook_repository or WebhookRepository()
        self.configs = config_repository or ConfigRepository()
        self.users = user_repository or UserRepository()
        self.feature_flags = feature_flag_repository or FeatureFlagRepository()
        self.shops = shop_repository or ShopRepository()
        self.analytics = analytics_repository or AnalyticsRepository()
        self.revenue = revenue_repository or RevenueAttributionRepository()

    def verify_signature(self, raw_body: Union[str, bytes], signature: str) -> bool:
        return verify_webhook_signature(raw_body, signature, self.secret_key)

    async def process_webhook(
        self, topic: str, shop: str, payload: Dict[str, Any]
    ) -> None:
        try:
            await self.webhooks.store(shop, topic, payload)
            await self._route(topic, shop, payload)
            await self.webhooks.mark_processed(shop, topic)
            logger.info(f"Processed webhook: {topic}", shop=shop)
        except Exception as e:
            logger.error(f"Webhook processing failed for {topic}: {e}", shop=shop)
            raise

    async def _route(self, topic: str, shop: str, payload: Dict[str, Any]) -> None:
        if topic == "app/uninstalled":
            await self.handle_app_uninstall(shop)
        elif topic in ("products/create", "products/update", "products/delete"):
            logger.info(f"Product {topic} for shop {shop}", product_id=payload.get("id"))
        elif topic == "customers/data_request":
            await self.handle_customer_data_request(shop, payload)
        elif topic == "customers/redact":
            await self.handle_customer_redact(shop, payload)
        elif topic == "shop/redact":
            await self.handle_shop_redact(shop)
        else:
            logger.info(f"Unhandled webhook topic: {topic}")

    async def handle_app_uninstall(self, shop: str) -> Dict[str, int]:
        """
        Remove the shop's users, configs, feature flags and storefront analytics.

        Analytics rows only reference a config id, so they go before the
        configs do. Webhook records stay until shop/redact.
        """
        logger.info(f"Processing app uninstall for shop: {shop}")
        config_ids = await self.configs.get_config_ids_for_shop(shop)
        removed = {
            "users": await self.users.delete_by_shop(shop),
            "analytics_events": await self.analytics.delete_events_for_configs(config_ids),
            "performance_metrics": await self.analytics.delete_performance_for_configs(
                config_ids
            ),
            "configs": await self.configs.delete_configs_for_shop(shop),
            "feature_flags": await self.feature_flags.delete_by_shop(shop),
        }
        await self.shops.deactivate(shop)
        logger.info(f"App uninstall cleanup completed for shop: {shop}", **removed)
        return removed

    async def handle_customer_data_request(
        self, shop: str, payload: Dict[str, Any]
    ) -> None:
        customer = payload.get("customer") or {}
        logger.info(
            f"Customer data request for shop {shop}",
            customer_id=customer.get("id") if isinstance(customer, dict) else customer,
        )

    async def handle_customer_redact(self, shop: str, payload: Dict[str, Any]) -> None:
        customer = payload.get("customer")
        if not customer:
            return
        customer_id = customer.get("id") if isinstance(customer, dict) else customer
        # Analytics rows are keyed by session, not customer, so there is nothing to erase
        logger.info(
            f"Customer redaction request for shop {shop}",
            customer_id=customer_id,
            orders_to_redact=len(payload.get("orders_to_redact") or []),
        )

    async def handle_shop_redact(self, shop: str) -> Dict[str, int]:
        """Sent 48 hours after uninstall: drop everything still held for the shop"""
        logger.info(f"Shop redaction request for shop: {shop}")
        config_ids = await self.configs.get_config_ids_for_shop(shop)
        removed = {
            "webhooks": await self.webhooks.delete_by_shop(shop),
            "analytics_events": await self.analytics.delete_events_for_configs(config_ids),
            "performance_metrics": await self.analytics.delete_performance_for_configs(
                config_ids
            ),
            "configs": await self.configs.delete_configs_for_shop(shop),
            "revenue_attributions": await self.revenue.delete_by_shop(shop),
            "users": await self.users.delete_by_shop(shop),
            "feature_flags": await self.feature_flags.delete_by_shop(shop),
            "shops": int(await self.shops.delete_by_domain(shop)),
        }
        logger.info(f"Shop redaction completed for shop: {shop}", **removed)
        return removed


_processor: Optional[WebhookProcessor] = None


def get_webhook_processor() -> WebhookProcessor:
    global _processor

    if _processor is None:
        secret_key = settings.shopify.SHOPIFY_API_SECRET
        if not secret_key:
            raise ConfigurationError(
                "SHOPIFY_API_SECRET environment variable is required for webhook handling",
                config_key="SHOPIFY_API_SECRET",
            )
        _processor = WebhookProcessor(secret_key)

    return _processor


def reset_webhook_processor() -> None:
    global _processor
    _processor = None
