"""
Tests for the Storefront API client, the mock cart and products, and experiment routing
"""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from minimall.core.config.settings import settings
from minimall.core.exceptions import ShopifyAPIError
from minimall.domains.storefront import (
    StorefrontClient,
    create_storefront_client,
    get_experiment_variant,
    get_mock_product,
    mock_cart,
    normalize_shop_domain,
    route_experiment,
    track_experiment_exposure,
)
from minimall.domains.storefront.cart import to_variant_gid
from minimall.domains.storefront.products import to_product_gid

SHOP = "demo-shop.myshopify.com"


def cart_payload(cart_id="gid://shopify/Cart/1"):
    return {"id": cart_id, "checkoutUrl": "https://demo-shop.myshopify.com/cart/c/1"}


def make_client(handler, max_retries=3):
    sleep = AsyncMock()
    client = StorefrontClient(
        SHOP,
        "storefront-token",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        max_retries=max_retries,
        retry_backoff=1.0,
        sleep=sleep,
    )
    return client, sleep


class TestHelpers:
    @pytest.mark.parametrize(
        "domain,expected",
        [
            ("demo-shop", SHOP),
            (SHOP, SHOP),
            ("https://demo-shop.myshopify.com/admin", SHOP),
            ("http://demo-shop", SHOP),
        ],
    )
    def test_normalize_shop_domain(self, domain, expected):
        assert normalize_shop_domain(domain) == expected

    def test_to_variant_gid(self):
        assert to_variant_gid("123") == "gid://shopify/ProductVariant/123"
        assert to_variant_gid("gid://shopify/ProductVariant/9") == "gid://shopify/ProductVariant/9"


class TestStorefrontClient:
    @pytest.mark.asyncio
    async def test_create_cart_sends_variant_gids(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["token"] = request.headers["x-shopify-storefront-access-token"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200, json={"data": {"cartCreate": {"cart": cart_payload(), "userErrors": []}}}
            )

        client, _ = make_client(handler)
        cart = await client.create_cart([{"merchandiseId": "42", "quantity": 2}])

        assert cart == cart_payload()
        assert seen["url"] == f"https://{SHOP}/api/2024-10/graphql.json"
        assert seen["token"] == "storefront-token"
        assert seen["body"]["query"].startswith("mutation cartCreate")
        assert seen["body"]["variables"] == {
            "input": {
                "lines": [{"merchandiseId": "gid://shopify/ProductVariant/42", "quantity": 2}]
            }
        }

    @pytest.mark.asyncio
    async def test_user_errors_raise(self):
        def handler(request):
            return httpx.Response(
                200,
                json={
                    "data": {
                        "cartLinesAdd": {
                            "cart": None,
                            "userErrors": [
                                {"field": ["lines"], "message": "Variant is sold out"}
                            ],
                        }
                    }
                },
            )

        client, _ = make_client(handler)

        with pytest.raises(ShopifyAPIError) as exc_info:
            await client.add_to_cart("gid://shopify/Cart/1", [{"merchandiseId": "1", "quantity": 1}])

        assert exc_info.value.message == "Add to cart failed: Variant is sold out"

    @pytest.mark.asyncio
    async def test_retries_with_exponential_backoff(self):
        responses = iter(
            [
                httpx.Response(502),
                httpx.Response(200, json={"errors": [{"message": "Throttled"}]}),
                httpx.Response(200, json={"data": {"cart": cart_payload()}}),
            ]
        )
        client, sleep = make_client(lambda request: next(responses))

        cart = await client.get_cart("gid://shopify/Cart/1")

        assert cart == cart_payload()
        assert [call.args[0] for call in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        client, sleep = make_client(lambda request: httpx.Response(500), max_retries=2)

        with pytest.raises(ShopifyAPIError) as exc_info:
            await client.get_cart("gid://shopify/Cart/1")

        assert exc_info.value.status_code == 500
        assert exc_info.value.message.startswith("HTTP 500")
        assert sleep.await_count == 1

    @pytest.mark.asyncio
    async def test_transport_errors_are_wrapped(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        client, _ = make_client(handler, max_retries=1)

        with pytest.raises(ShopifyAPIError) as exc_info:
            await client.get_cart("gid://shopify/Cart/1")

        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_empty_data_is_an_error(self):
        client, _ = make_client(lambda request: httpx.Response(200, json={"data": None}), max_retries=1)

        with pytest.raises(ShopifyAPIError) as exc_info:
            await client.get_cart("gid://shopify/Cart/1")

        assert exc_info.value.message == "No data returned from GraphQL query"

    @pytest.mark.asyncio
    async def test_get_product_flattens_connections(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "data": {
                        "product": {
                            "id": "gid://shopify/Product/7",
                            "title": "Essential Tee",
                            "images": {"nodes": [{"id": "img_1", "url": "https://cdn/1.jpg"}]},
                            "variants": {"nodes": [{"id": "gid://shopify/ProductVariant/8"}]},
                        }
                    }
                },
            )

        client, _ = make_client(handler)
        product = await client.get_product("7")

        assert seen["body"]["query"].startswith("query getProductById")
        assert seen["body"]["variables"] == {"id": "gid://shopify/Product/7"}
        assert product["images"] == [{"id": "img_1", "url": "https://cdn/1.jpg"}]
        assert product["variants"] == [{"id": "gid://shopify/ProductVariant/8"}]

    @pytest.mark.asyncio
    async def test_get_product_missing_returns_none(self):
        def handler(request):
            return httpx.Response(200, json={"data": {"product": None}})

        client, _ = make_client(handler)

        assert await client.get_product("gid://shopify/Product/404") is None

    def test_factory_requires_token(self):
        with patch.object(settings.shopify, "SHOPIFY_STOREFRONT_ACCESS_TOKEN", ""):
            assert create_storefront_client("demo-shop") is None

        client = create_storefront_client("demo-shop", access_token="token")
        assert client.shop_domain == SHOP
        assert client.endpoint == f"https://{SHOP}/api/2024-10/graphql.json"


class TestMockCart:
    def test_new_cart_priced_per_line(self):
        cart = mock_cart(
            [{"merchandiseId": "a", "quantity": 3}, {"merchandiseId": "b", "quantity": 1}]
        )

        assert cart["id"].startswith("mock_cart_")
        assert cart["checkoutUrl"] == f"https://checkout.example.com/{cart['id']}"
        edges = cart["lines"]["edges"]
        assert [e["node"]["id"] for e in edges] == ["mock_line_0", "mock_line_1"]
        assert edges[0]["node"]["quantity"] == 3
        assert cart["cost"]["totalAmount"] == {"amount": "50.00", "currencyCode": "USD"}

    def test_added_lines_priced_per_unit(self):
        cart = mock_cart(
            [{"merchandiseId": "a", "quantity": 3}, {"merchandiseId": "b", "quantity": 1}],
            cart_id="mock_cart_1",
            added=True,
        )

        assert cart["id"] == "mock_cart_1"
        assert cart["cost"]["subtotalAmount"]["amount"] == "100.00"
        assert cart["lines"]["edges"][1]["node"]["id"].endswith("_1")

    def test_empty_cart(self):
        cart = mock_cart([], cart_id="mock_cart_1")

        assert cart["lines"]["edges"] == []
        assert cart["cost"]["totalAmount"]["amount"] == "0.00"


class TestExperiments:
    def test_route_returns_first_variant(self):
        context = route_experiment("hero-layout", ["control", "grid"], {"source": "test"})

        assert context.key == "hero-layout"
        assert context.variant == "control"
        assert context.config_id == "default-config"
        assert context.session_id == "anonymous"
        assert context.device == "desktop"
        assert context.metadata == {"source": "test"}

    def test_defaults(self):
        assert route_experiment("hero-layout").variant == "default"
        assert route_experiment("hero-layout", [""]).variant == "default"
        assert get_experiment_variant("hero-layout") == "default"
        assert get_experiment_variant("hero-layout", "grid") == "grid"

    def test_track_exposure_does_not_raise(self):
        track_experiment_exposure("hero-layout", "control", {"configId": "abc123"})
        track_experiment_exposure("hero-layout", "control")


class TestMockProducts:
    def test_known_product(self):
        product = get_mock_product("prod_abc")

        assert product["title"] == "Essential Tee"
        assert product["variants"][0]["price"] == {"amount": "29.00", "currencyCode": "USD"}

    def test_unknown_product(self):
        assert get_mock_product("prod_missing") is None

    def test_to_product_gid(self):
        assert to_product_gid("7") == "gid://shopify/Product/7"
        assert to_product_gid("gid://shopify/Product/7") == "gid://shopify/Product/7"
