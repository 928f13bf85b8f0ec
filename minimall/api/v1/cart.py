"""
Storefront cart endpoints backed by the Shopify Storefront API
"""

from typing import List, Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from minimall.core.logging import get_logger
from minimall.domains.storefront import create_storefront_client, mock_cart
from minimall.domains.storefront.cart import MOCK_CART_WARNING

logger = get_logger(__name__)

router = APIRouter(prefix="/api/shopify/cart", tags=["cart"])


class CartLine(BaseModel):
    merchandiseId: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)


class CartRequest(BaseModel):
    shopDomain: Optional[str] = None
    lines: Optional[List[CartLine]] = None


def _mock_response(cart):
    return {"cart": cart, "source": "mock", "warning": MOCK_CART_WARNING}


@router.post("")
async def create_cart(request: CartRequest):
    if not request.shopDomain:
        return JSONResponse(status_code=400, content={"error": "Shop domain is required"})

    lines = [line.model_dump() for line in request.lines or []]
    try:
        client = create_storefront_client(request.shopDomain)
        if client is None:
            return _mock_response(mock_cart(lines))
        cart = await client.create_cart(lines)
    except Exception as e:
        logger.error(f"Cart creation error: {e}", shop=request.shopDomain)
        return JSONResponse(status_code=500, content={"error": "Failed to create cart"})
    return {"cart": cart, "source": "shopify"}


@router.get("/{cart_id}")
async def get_cart(cart_id: str, shop: Optional[str] = None):
    if not shop:
        return JSONResponse(status_code=400, content={"error": "Shop domain is required"})

    try:
        client = create_storefront_client(shop)
        if client is None:
            return _mock_response(mock_cart([], cart_id=cart_id))
        cart = await client.get_cart(cart_id)
    except Exception as e:
        logger.error(f"Cart fetch error: {e}", shop=shop)
        return JSONResponse(status_code=500, content={"error": "Failed to fetch cart"})
    return {"cart": cart, "source": "shopify"}


@router.post("/{cart_id}")
async def add_to_cart(cart_id: str, request: CartRequest):
    if not request.shopDomain or not request.lines:
        return JSONResponse(
            status_code=400, content={"error": "Shop domain and lines are required"}
        )

    lines = [line.model_dump() for line in request.lines]
    try:
        client = create_storefront_client(request.shopDomain)
        if client is None:
            return _mock_response(mock_cart(lines, cart_id=cart_id, added=True))
        cart = await client.add_to_cart(cart_id, lines)
    except Exception as e:
        logger.error(f"Add to cart error: {e}", shop=request.shopDomain)
        return JSONResponse(status_code=500, content={"error": "Failed to add to cart"})
    return {"cart": cart, "source": "shopify"}
