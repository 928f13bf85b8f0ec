"""
Public product lookup backed by the Shopify Storefront API
"""

from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from minimall.core.config import settings
from minimall.core.logging import get_logger
from minimall.domains.storefront import (
    MOCK_PRODUCT_WARNING,
    create_storefront_client,
    get_mock_product,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/shopify/products", tags=["products"])


@router.get("/{product_id}")
async def get_product(product_id: str, shop: Optional[str] = None):
    shop_domain = shop or settings.shopify.SHOPIFY_DOMAIN
    if not shop_domain:
        return JSONResponse(status_code=400, content={"error": "Shop domain is required"})

    try:
        client = create_storefront_client(shop_domain)
        if client is None:
            product = get_mock_product(product_id)
            if product is None:
                return JSONResponse(
                    status_code=404,
                    content={"error": "Product not found and Shopify not configured"},
                )
            return {"product": product, "source": "mock", "warning": MOCK_PRODUCT_WARNING}

        product = await client.get_product(product_id)
    except Exception as e:
        logger.error(f"Product API error: {e}", shop=shop_domain, product_id=product_id)
        return JSONResponse(status_code=500, content={"error": "Failed to fetch product"})

    if product is None:
        return JSONResponse(status_code=404, content={"error": "Product not found"})
    return {"product": product, "source": "shopify"}
