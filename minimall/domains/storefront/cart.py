"""
Shopify Storefront API client for carts and products
"""

import asyncio
import re
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from minimall.core.config.settings import settings
from minimall.core.exceptions import ShopifyAPIError
from minimall.core.logging import get_logger
from minimall.shared.constants.shopify import STOREFRONT_API_VERSION
from minimall.shared.helpers import now_ms
from .products import PRODUCT_QUERY, flatten_product, to_product_gid

logger = get_logger(__name__)

MOCK_LINE_PRICE = 25
MOCK_CART_WARNING = "Using mock cart - configure Shopify credentials"

_CART_FIELDS = """
          id
          createdAt
          updatedAt
          checkoutUrl
          totalQuantity
          estimatedCost {
            totalAmount { amount currencyCode }
            subtotalAmount { amount currencyCode }
            totalTaxAmount { amount currencyCode }
          }
          lines(first: 100) {
            nodes {
              id
              quantity
              merchandise {
                ... on ProductVariant {
                  id
                  title
                  price { amount currencyCode }
                  product { id title handle }
                  image { url altText }
                }
              }
            }
          }
"""

CART_CREATE_MUTATION = f"""
mutation cartCreate($input: CartInput!) {{
  cartCreate(input: $input) {{
    cart {{{_CART_FIELDS}    }}
    userErrors {{ field message }}
  }}
}}
"""

CART_LINES_ADD_MUTATION = f"""
mutation cartLinesAdd($cartId: ID!, $lines: [CartLineInput!]!) {{
  cartLinesAdd(cartId: $cartId, lines: $lines) {{
    cart {{{_CART_FIELDS}    }}
    userErrors {{ field message }}
  }}
}}
"""

CART_QUERY = f"""
query getCart($cartId: ID!) {{
  cart(id: $cartId) {{{_CART_FIELDS}  }}
}}
"""


def normalize_shop_domain(domain: str) -> str:
    """Strip protocol and path, and make sure the domain ends in .myshopify.com"""
    clean = re.sub(r"^https?://", "", domain).split("/")[0] or domain
    if not clean.endswith(".myshopify.com"):
        return f"{clean}.myshopify.com"
    return clean


def to_variant_gid(merchandise_id: str) -> str:
    if str(merchandise_id).startswith("gid://"):
        return str(merchandise_id)
    return f"gid://shopify/ProductVariant/{merchandise_id}"


def _cart_lines(lines: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {"merchandiseId": to_variant_gid(line["merchandiseId"]), "quantity": line["quantity"]}
        for line in lines
    ]


def _user_error_message(user_errors: List[Dict[str, Any]]) -> str:
    return ", ".join(e.get("message", "") for e in user_errors)


class StorefrontClient:
    """GraphQL client for a single shop's Storefront API"""

    def __init__(
        self,
        shop_domain: str,
        access_token: str,
        http_client: Optional[httpx.AsyncClient] = None,
        max_retries: int = 3,
        retry_backoff: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.shop_domain = shop_domain
        self.access_token = access_token
        self.endpoint = (
            f"https://{shop_domain}/api/{STOREFRONT_API_VERSION}/graphql.json"
        )
        self._http_client = http_client
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self._sleep = sleep

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-Shopify-Storefront-Access-Token": self.access_token,
        }

    async def _post(self, body: Dict[str, Any]) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(
                self.endpoint, json=body, headers=self._get_headers()
            )
        async with httpx.AsyncClient(timeout=httpx.Timeout(30.0, connect=10.0)) as client:
            return await client.post(self.endpoint, json=body, headers=self._get_headers())

    async def _execute(self, body: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._post(body)
        if response.status_code >= 400:
            raise ShopifyAPIError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
            )
        result = response.json()
        if result.get("errors"):
            messages = ", ".join(e.get("message", "") for e in result["errors"])
            raise ShopifyAPIError(f"GraphQL Error: {messages}")
        if not result.get("data"):
            raise ShopifyAPIError("No data returned from GraphQL query")
        return result["data"]

    def _log_retry(self, retry_state: RetryCallState) -> None:
        logger.warning(
            f"Shopify API attempt {retry_state.attempt_number}/{self.max_retries} failed: "
            f"{retry_state.outcome.exception()}",
            shop=self.shop_domain,
        )

    async def query(
        self, query: str, variables: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Run a GraphQL document, retrying failures with exponential backoff"""
        body: Dict[str, Any] = {"query": query.strip()}
        if variables:
            body["variables"] = variables

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.retry_backoff),
            retry=retry_if_exception_type((ShopifyAPIError, httpx.HTTPError)),
            before_sleep=self._log_retry,
            sleep=self._sleep,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self._execute(body)
        except httpx.HTTPError as e:
            raise ShopifyAPIError(str(e), cause=e) from e

    async def create_cart(self, lines: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        cart_input: Dict[str, Any] = {}
        if lines:
            cart_input["lines"] = _cart_lines(lines)

        data = await self.query(CART_CREATE_MUTATION, {"input": cart_input})
        payload = data["cartCreate"]
        if payload.get("userErrors"):
            raise ShopifyAPIError(
                f"Cart creation failed: {_user_error_message(payload['userErrors'])}"
            )
        return payload["cart"]

    async def add_to_cart(self, cart_id: str, lines: List[Dict[str, Any]]) -> Dict[str, Any]:
        data = await self.query(
            CART_LINES_ADD_MUTATION, {"cartId": cart_id, "lines": _cart_lines(lines)}
        )
        payload = data["cartLinesAdd"]
        if payload.get("userErrors"):
            raise ShopifyAPIError(
                f"Add to cart failed: {_user_error_message(payload['userErrors'])}"
            )
        return payload["cart"]

    async def get_cart(self, cart_id: str) -> Optional[Dict[str, Any]]:
        data = await self.query(CART_QUERY, {"cartId": cart_id})
        return data.get("cart")

    async def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        """Product by numeric id or gid, with images and variants as plain lists"""
        data = await self.query(PRODUCT_QUERY, {"id": to_product_gid(product_id)})
        product = data.get("product")
        return flatten_product(product) if product else None


def create_storefront_client(
    shop_domain: str, access_token: Optional[str] = None
) -> Optional[StorefrontClient]:
    """Client for the shop, or None when no storefront token is configured"""
    token = access_token or settings.shopify.SHOPIFY_STOREFRONT_ACCESS_TOKEN
    if not token:
        logger.warning("Shopify Storefront API access token not found")
        return None
    return StorefrontClient(normalize_shop_domain(shop_domain), token)


def _mock_line(line: Dict[str, Any], line_id: str) -> Dict[str, Any]:
    return {
        "node": {
            "id": line_id,
            "quantity": line.get("quantity", 1),
            "merchandise": {
                "id": line.get("merchandiseId"),
                "title": "Mock Product",
                "image": {
                    "url": "https://via.placeholder.com/300x300",
                    "altText": "Mock Product",
                },
                "product": {"title": "Mock Product", "handle": "mock-product"},
                "price": {"amount": f"{MOCK_LINE_PRICE:.2f}", "currencyCode": "USD"},
            },
        }
    }


def _mock_cost(amount: float) -> Dict[str, Any]:
    money = {"amount": f"{amount:.2f}", "currencyCode": "USD"}
    return {"totalAmount": dict(money), "subtotalAmount": dict(money)}


def mock_cart(
    lines: List[Dict[str, Any]], cart_id: Optional[str] = None, added: bool = False
) -> Dict[str, Any]:
    """
    Development cart used when no storefront token is configured.

    A new cart is priced per line; lines added to an existing cart are
    priced per unit.
    """
    stamp = now_ms()
    cart_id = cart_id or f"mock_cart_{stamp}"
    if added:
        line_ids = [f"mock_line_{stamp}_{i}" for i in range(len(lines))]
        total = sum(line.get("quantity", 1) for line in lines) * MOCK_LINE_PRICE
    else:
        line_ids = [f"mock_line_{i}" for i in range(len(lines))]
        total = len(lines) * MOCK_LINE_PRICE

    return {
        "id": cart_id,
        "lines": {"edges": [_mock_line(line, lid) for line, lid in zip(lines, line_ids)]},
        "cost": _mock_cost(total),
        "checkoutUrl": f"https://checkout.example.com/{cart_id}",
    }
