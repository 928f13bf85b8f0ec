"""
Topic handlers for the generic webhook receiver
"""

from typing import Any, Awaitable, Callable, Dict

from minimall.core.logging import get_logger
from .attribution import process_order_attributions
from .processor import get_webhook_processor

logger = get_logger(__name__)

WebhookHandler = Callable[[str, Dict[str, Any]], Awaitable[None]]


async def handle_app_uninstalled(shop: str, payload: Dict[str, Any]) -> None:
    await get_webhook_processor().handle_app_uninstall(shop)
    logger.info(f"Successfully processed app uninstall for {shop}")


async def handle_order_create(shop: str, payload: Dict[str, Any]) -> None:
    logger.info(f"Processing order #{payload.get('order_number')} from {shop}")
    attributions = await process_order_attributions(payload, shop)
    logger.info(
        f"Order processed: {payload.get('name')}",
        order_id=payload.get("id"),
        total=payload.get("total_price"),
        items=len(payload.get("line_items") or []),
        attributions=len(attributions),
    )


async def handle_product_create(shop: str, payload: Dict[str, Any]) -> None:
    logger.info(f"Product created: {payload.get('title')} in {shop}", product_id=payload.get("id"))


async def handle_product_update(shop: str, payload: Dict[str, Any]) -> None:
    logger.info(f"Product updated: {payload.get('title')} in {shop}", product_id=payload.get("id"))


async def handle_product_delete(shop: str, payload: Dict[str, Any]) -> None:
    logger.info(f"Product deleted: {payload.get('id')} in {shop}")


async def handle_customer_create(shop: str, payload: Dict[str, Any]) -> None:
    logger.info(f"Customer created in {shop}", customer_id=payload.get("id"))


async def handle_customer_update(shop: str, payload: Dict[str, Any]) -> None:
    logger.info(f"Customer updated in {shop}", customer_id=payload.get("id"))


WEBHOOK_HANDLERS: Dict[str, WebhookHandler] = {
    "app/uninstalled": handle_app_uninstalled,
    "orders/create": handle_order_create,
    "products/create": handle_product_create,
    "products/update": handle_product_update,
    "products/delete": handle_product_delete,
    "customers/create": handle_customer_create,
    "customers/update": handle_customer_update,
}
