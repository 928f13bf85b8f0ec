"""
Shopify webhook endpoints
"""

import json

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from minimall.core.config import settings
from minimall.core.exceptions import WebhookError
from minimall.core.logging import get_logger
from minimall.domains.webhooks import (
    dispatch_webhook,
    get_webhook_processor,
    process_order_attributions,
    validate_webhook,
    verify_webhook_signature,
)
from minimall.domains.webhooks.verification import HMAC_HEADER, SHOP_HEADER, TOPIC_HEADER

logger = get_logger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


@router.post("/shopify")
async def receive_webhook(request: Request):
    """Generic receiver that dispatches by the X-Shopify-Topic header"""
    raw_body = await request.body()
    try:
        webhook = validate_webhook(request.headers, raw_body)
    except WebhookError as e:
        return JSONResponse(
            status_code=e.status_code,
            content={"error": e.message, "code": e.error_code},
        )

    try:
        result = await dispatch_webhook(webhook)
    except Exception as e:
        logger.error(
            f"Webhook handler failed: {e}", shop=webhook.shop, topic=webhook.topic
        )
        return JSONResponse(status_code=500, content={"error": "Webhook processing failed"})

    logger.info(f"Webhook handled: {webhook.topic}", shop=webhook.shop)
    return result


async def _process_topic(request: Request, expected_topic: str) -> JSONResponse:
    """Verify and hand a single-topic webhook to the processor"""
    raw_body = await request.body()
    signature = request.headers.get(HMAC_HEADER)
    topic = request.headers.get(TOPIC_HEADER)
    shop = request.headers.get(SHOP_HEADER)

    if not signature:
        return JSONResponse(status_code=401, content={"error": "Missing webhook signature"})
    if not shop:
        return JSONResponse(status_code=400, content={"error": "Missing shop domain"})
    if topic != expected_topic:
        return JSONResponse(status_code=400, content={"error": "Invalid webhook topic"})

    try:
        processor = get_webhook_processor()
        if not processor.verify_signature(raw_body, signature):
            return JSONResponse(
                status_code=401, content={"error": "Invalid webhook signature"}
            )

        payload = json.loads(raw_body)
        await processor.process_webhook(topic, shop, payload)
    except Exception as e:
        logger.error(f"{expected_topic} webhook error: {e}", shop=shop)
        return JSONResponse(status_code=500, content={"error": "Webhook processing failed"})

    return JSONResponse(content={"success": True})


@router.post("/customers/data_request")
async def customers_data_request(request: Request):
    return await _process_topic(request, "customers/data_request")


@router.post("/customers/redact")
async def customers_redact(request: Request):
    return await _process_topic(request, "customers/redact")


@router.post("/shop/redact")
async def shop_redact(request: Request):
    return await _process_topic(request, "shop/redact")


@router.post("/app/uninstalled")
async def app_uninstalled(request: Request):
    return await _process_topic(request, "app/uninstalled")


def _verify_order_webhook(raw_body: bytes, signature: str) -> bool:
    if not signature:
        return False
    secret = settings.shopify.SHOPIFY_WEBHOOK_SECRET
    if not secret:
        logger.warning("SHOPIFY_WEBHOOK_SECRET not configured - skipping signature verification")
        return True
    return verify_webhook_signature(raw_body, signature, secret)


@router.post("/orders/create")
async def orders_create(request: Request):
    """Attribute order revenue back to storefront configs and blocks"""
    raw_body = await request.body()
    shop = request.headers.get(SHOP_HEADER)

    if not shop:
        logger.error("Missing Shopify shop domain in webhook")
        return JSONResponse(status_code=400, content={"error": "Missing shop domain"})

    if not _verify_order_webhook(raw_body, request.headers.get(HMAC_HEADER)):
        logger.error("Invalid webhook signature", shop=shop)
        return JSONResponse(status_code=401, content={"error": "Invalid signature"})

    try:
        order = json.loads(raw_body)
        logger.info(
            f"Processing order webhook for order #{order.get('order_number')} from {shop}"
        )
        attributions = await process_order_attributions(order, shop)
    except Exception as e:
        logger.error(f"Order webhook processing failed: {e}", shop=shop)
        return JSONResponse(
            status_code=500, content={"error": "Failed to process order webhook"}
        )

    return {
        "success": True,
        "message": "Order processed successfully",
        "data": {"orderId": order.get("id"), "attributionsProcessed": len(attributions)},
    }
