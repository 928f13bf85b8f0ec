"""
Tests for the HTTP routes
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from pydantic import TypeAdapter, ValidationError

from minimall.api.v1.analytics import get_analytics_service
from minimall.api.v1.assets import get_asset_service
from minimall.api.v1.configs import get_config_service
from minimall.api.v1.public import get_analytics_service as get_public_analytics_service
from minimall.api.v1.public import get_edge_cache
from minimall.core.config import settings
from minimall.core.exceptions import AuthenticationError, ConfigNotFoundError, StorageError
from minimall.domains.auth import ShopifyAuth, ShopifyAuthConfig, ShopifySession
from minimall.domains.storage import AssetService, EdgeCache
from minimall.domains.webhooks.verification import calculate_signature
from minimall.main import app
from minimall.shared.helpers import hmac_sha256_hex

SHOP = "demo-shop.myshopify.com"
WEBHOOK_SECRET = "whsec_api_tests"


def validation_error():
    try:
        TypeAdapter(int).validate_python("not-a-number")
    except ValidationError as e:
        return e


@pytest.fixture
def client():
    # Not used as a context manager so the lifespan (database, Redis) does not run
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestConfigRoutes:
    @pytest.fixture
    def service(self):
        service = MagicMock()
        app.dependency_overrides[get_config_service] = lambda: service
        return service

    def test_list_configs(self, client, service):
        service.list_configs = AsyncMock(return_value=[{"id": "abc123"}])

        response = client.get("/api/configs", params={"shop": SHOP})

        assert response.status_code == 200
        assert response.json() == {"success": True, "items": [{"id": "abc123"}]}
        service.list_configs.assert_awaited_once_with(shop=SHOP)

    def test_create_requires_shop(self, client, service):
        response = client.post("/api/configs", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "shopDomain is required"}

    def test_create_config(self, client, service):
        service.create_config = AsyncMock(return_value={"id": "abc123", "shopDomain": SHOP})

        response = client.post("/api/configs", json={"shopDomain": SHOP})

        assert response.status_code == 200
        assert response.json()["configId"] == "abc123"
        service.create_config.assert_awaited_once_with(SHOP)

    def test_create_config_shop_from_header(self, client, service):
        service.create_config = AsyncMock(return_value={"id": "abc123"})

        client.post("/api/configs", headers={"x-shopify-shop-domain": SHOP})

        service.create_config.assert_awaited_once_with(SHOP)

    def test_get_config(self, client, service):
        service.get_editor_config = AsyncMock(return_value=({"id": "abc123"}, "database"))

        response = client.get("/api/configs/abc123")

        assert response.json() == {
            "success": True,
            "config": {"id": "abc123"},
            "source": "database",
        }

    def test_get_missing_config(self, client, service):
        service.get_editor_config = AsyncMock(side_effect=ConfigNotFoundError("nope"))

        response = client.get("/api/configs/nope")

        assert response.status_code == 404
        assert response.json() == {"error": "Configuration not found"}

    def test_update_with_invalid_data(self, client, service):
        service.update_config = AsyncMock(side_effect=validation_error())

        response = client.put("/api/configs/abc123", json={"id": "abc123"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Invalid configuration data"
        assert body["details"][0]["type"] == "int_parsing"

    def test_update_config(self, client, service):
        service.update_config = AsyncMock(return_value={"id": "abc123"})

        response = client.put("/api/configs/abc123", json={"id": "abc123"})

        assert response.json()["message"] == "Configuration updated successfully"
        service.update_config.assert_awaited_once_with("abc123", {"id": "abc123"})

    def test_delete_config(self, client, service):
        service.delete_config = AsyncMock()

        response = client.delete("/api/configs/abc123")

        assert response.json()["success"] is True
        service.delete_config.assert_awaited_once_with("abc123")

    def test_publish(self, client, service):
        service.publish_latest_draft = AsyncMock(
            return_value={"id": "v2", "published_at": "2024-05-01T12:00:00+00:00"}
        )

        response = client.post("/api/configs/abc123/publish")

        body = response.json()
        assert body["success"] is True
        assert body["version"]["id"] == "v2"
        assert body["publishedAt"] == "2024-05-01T12:00:00+00:00"

    def test_publish_without_draft(self, client, service):
        service.publish_latest_draft = AsyncMock(return_value=None)

        response = client.post("/api/configs/abc123/publish")

        assert response.status_code == 404
        assert response.json() == {"error": "No draft version found to publish"}

    def test_publish_storage_failure(self, client, service):
        service.publish_latest_draft = AsyncMock(
            side_effect=StorageError(
                "Failed to publish to production storage", error_code="PUBLISH_FAILED"
            )
        )

        response = client.post("/api/configs/abc123/publish")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to publish to production storage"}

    def test_publish_rejects_invalid_document(self, client, service):
        service.publish_latest_draft = AsyncMock(side_effect=validation_error())
        service.publish_version = AsyncMock(side_effect=validation_error())

        latest = client.post("/api/configs/abc123/publish")
        specific = client.post("/api/configs/abc123/versions/v9/publish")

        for response in (latest, specific):
            assert response.status_code == 400
            assert response.json()["error"] == "Invalid configuration data"
            assert response.json()["details"]

    def test_versions(self, client, service):
        service.list_versions = AsyncMock(return_value=[{"id": "v1"}])
        service.publish_version = AsyncMock(return_value=None)

        listed = client.get("/api/configs/abc123/versions", params={"limit": 5})
        missing = client.post("/api/configs/abc123/versions/v9/publish")

        assert listed.json() == {"success": True, "versions": [{"id": "v1"}]}
        service.list_versions.assert_awaited_once_with("abc123", limit=5)
        assert missing.status_code == 404
        assert missing.json() == {"error": "Version not found"}


class TestPublicConfigRoutes:
    @pytest.fixture
    def cache(self):
        cache = EdgeCache()
        app.dependency_overrides[get_edge_cache] = lambda: cache
        return cache

    def test_served_from_cache(self, client, cache):
        cache.set("config:abc123", {"id": "abc123"}, 300)

        response = client.get("/api/config/abc123")

        assert response.status_code == 200
        assert response.json() == {"id": "abc123"}
        assert response.headers["cache-control"] == (
            "public, s-maxage=300, stale-while-revalidate=3600"
        )

    def test_fetched_from_r2_and_cached(self, client, cache):
        r2 = MagicMock()
        r2.get_config = AsyncMock(return_value={"id": "abc123", "version": "v2"})

        with patch("minimall.api.v1.public.get_r2_service", return_value=r2):
            first = client.get("/api/config/abc123", params={"draft": "v2"})
            second = client.get("/api/config/abc123", params={"draft": "v2"})

        assert first.json() == second.json() == {"id": "abc123", "version": "v2"}
        r2.get_config.assert_awaited_once_with("abc123", "v2")
        assert cache.get("config:abc123:v2") == {"id": "abc123", "version": "v2"}

    def test_demo_fallback(self, client, cache):
        with patch("minimall.api.v1.public.get_r2_service", return_value=None):
            response = client.get("/api/config/demo")

        assert response.status_code == 200
        assert response.json()["id"] == "demo"

    def test_missing_config_outside_development(self, client, cache):
        with patch("minimall.api.v1.public.get_r2_service", return_value=None), patch.object(
            settings, "ENVIRONMENT", "production"
        ):
            response = client.get("/api/config/abc123")

        assert response.status_code == 404
        assert response.json() == {"error": "Configuration not found"}


class TestRevalidateRoute:
    @pytest.fixture
    def cache(self):
        cache = EdgeCache()
        app.dependency_overrides[get_edge_cache] = lambda: cache
        return cache

    @pytest.fixture
    def auth_header(self):
        with patch.object(settings.security, "INTERNAL_API_TOKEN", "internal-token"):
            yield {"Authorization": "Bearer internal-token"}

    def test_requires_bearer_token(self, client, cache, auth_header):
        response = client.post(
            "/api/revalidate",
            json={"configId": "abc123"},
            headers={"Authorization": "Bearer wrong"},
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_invalid_body(self, client, cache, auth_header):
        response = client.post("/api/revalidate", content="not json", headers=auth_header)

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_revalidates_config(self, client, cache, auth_header):
        tags = ["config:abc123", "config:abc123:current"]
        cache.set("config:abc123", {"id": "abc123"}, 300, tags=tags)
        cache.set("config:abc123:v2", {"id": "abc123"}, 300, tags=tags)
        cache.set("config:other", {"id": "other"}, 300, tags=["config:other"])

        response = client.post("/api/revalidate", json={"configId": "abc123"}, headers=auth_header)

        body = response.json()
        assert body["summary"] == {
            "configId": "abc123",
            "pathsRevalidated": ["/g/abc123", "/g/abc123/"],
            "tagsRevalidated": [
                "config:abc123",
                "config:abc123:current",
                "config:abc123:published",
            ],
            "successCount": 5,
            "failureCount": 0,
        }
        assert body["results"][0] == {
            "type": "path",
            "target": "/g/abc123",
            "success": True,
            "removed": 2,
        }
        assert cache.get("config:abc123") is None
        assert cache.get("config:other") == {"id": "other"}

    def test_explicit_paths_and_tags(self, client, cache, auth_header):
        cache.set("/custom", "page", 300)

        response = client.post(
            "/api/revalidate",
            json={"paths": ["/custom"], "tags": ["config:x"]},
            headers=auth_header,
        )

        body = response.json()
        assert body["message"] == "Cache revalidation completed: 2/2 successful"
        assert body["results"][0]["removed"] == 1
        assert body["summary"]["configId"] is None

    def test_status(self, client):
        response = client.get("/api/revalidate")

        assert response.json()["endpoints"] == {"revalidate": "POST /api/revalidate"}


class TestEventRoutes:
    @pytest.fixture
    def service(self):
        service = MagicMock()
        app.dependency_overrides[get_public_analytics_service] = lambda: service
        app.dependency_overrides[get_analytics_service] = lambda: service
        return service

    def test_public_event(self, client, service):
        service.record_public_event = AsyncMock(return_value=True)

        response = client.post(
            "/api/events",
            json={"event": "page_view", "sessionId": "s1"},
            headers={"user-agent": "test-agent", "referer": "https://instagram.com"},
        )

        assert response.json() == {"success": True, "stored": True}
        kwargs = service.record_public_event.await_args.kwargs
        assert kwargs == {
            "header_user_agent": "test-agent",
            "header_referrer": "https://instagram.com",
        }

    def test_public_event_rejects_invalid_data(self, client, service):
        service.record_public_event = AsyncMock()

        response = client.post("/api/events", json={"sessionId": "s1"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid event data"
        service.record_public_event.assert_not_awaited()

    def test_track_failure(self, client, service):
        service.track_event = AsyncMock(side_effect=RuntimeError("db down"))

        response = client.post(
            "/api/analytics/track",
            json={"event": "page_view", "configId": "abc123", "sessionId": "s1"},
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to track event"}

    def test_reports_use_config_id_alias(self, client, service):
        service.get_summary = AsyncMock(return_value={"totalEvents": 3})
        service.get_revenue = AsyncMock(return_value={"totalRevenue": 0})

        summary = client.get("/api/analytics/summary", params={"configId": "abc123"})
        revenue = client.get("/api/analytics/revenue", params={"configId": "abc123"})
        missing = client.get("/api/analytics/summary")

        assert summary.json() == {"success": True, "summary": {"totalEvents": 3}}
        assert service.get_summary.await_args.args[0] == "abc123"
        assert revenue.json()["revenue"] == {"totalRevenue": 0}
        assert missing.status_code == 422


class TestWebhookRoutes:
    def headers(self, body, topic, secret=WEBHOOK_SECRET):
        return {
            "x-shopify-hmac-sha256": calculate_signature(body, secret),
            "x-shopify-shop-domain": SHOP,
            "x-shopify-topic": topic,
            "content-type": "application/json",
        }

    def test_generic_receiver_acknowledges_unknown_topic(self, client):
        body = json.dumps({"id": 1}).encode()

        with patch.object(settings.shopify, "SHOPIFY_WEBHOOK_SECRET", WEBHOOK_SECRET):
            response = client.post(
                "/api/webhooks/shopify",
                content=body,
                headers=self.headers(body, "collections/create"),
            )

        assert response.status_code == 200
        assert response.json() == {"received": True}

    def test_generic_receiver_rejects_bad_signature(self, client):
        body = json.dumps({"id": 1}).encode()

        with patch.object(settings.shopify, "SHOPIFY_WEBHOOK_SECRET", WEBHOOK_SECRET):
            response = client.post(
                "/api/webhooks/shopify",
                content=body,
                headers=self.headers(body, "products/update", secret="other-secret"),
            )

        assert response.status_code == 401
        assert response.json()["code"] == "INVALID_SIGNATURE"

    def test_gdpr_topic(self, client):
        processor = MagicMock()
        processor.verify_signature.return_value = True
        processor.process_webhook = AsyncMock(return_value={"webhooks": 0})
        body = json.dumps({"shop_domain": SHOP}).encode()

        with patch("minimall.api.v1.webhooks.get_webhook_processor", return_value=processor):
            response = client.post(
                "/api/webhooks/shop/redact", content=body, headers=self.headers(body, "shop/redact")
            )

        assert response.json() == {"success": True}
        processor.process_webhook.assert_awaited_once_with(
            "shop/redact", SHOP, {"shop_domain": SHOP}
        )

    def test_gdpr_topic_mismatch(self, client):
        body = b"{}"

        response = client.post(
            "/api/webhooks/customers/redact",
            content=body,
            headers=self.headers(body, "shop/redact"),
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid webhook topic"}

    def test_gdpr_invalid_signature(self, client):
        processor = MagicMock()
        processor.verify_signature.return_value = False
        body = b"{}"

        with patch("minimall.api.v1.webhooks.get_webhook_processor", return_value=processor):
            response = client.post(
                "/api/webhooks/app/uninstalled",
                content=body,
                headers=self.headers(body, "app/uninstalled"),
            )

        assert response.status_code == 401

    def test_order_create(self, client):
        order = {"id": 1001, "order_number": 7, "line_items": []}
        body = json.dumps(order).encode()
        process = AsyncMock(return_value=[{"blockId": "hero"}, {"blockId": "grid"}])

        with patch.object(
            settings.shopify, "SHOPIFY_WEBHOOK_SECRET", WEBHOOK_SECRET
        ), patch("minimall.api.v1.webhooks.process_order_attributions", process):
            response = client.post(
                "/api/webhooks/orders/create",
                content=body,
                headers=self.headers(body, "orders/create"),
            )

        assert response.json()["data"] == {"orderId": 1001, "attributionsProcessed": 2}
        process.assert_awaited_once_with(order, SHOP)

    def test_order_create_requires_signature(self, client):
        response = client.post(
            "/api/webhooks/orders/create",
            content=b"{}",
            headers={"x-shopify-shop-domain": SHOP},
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid signature"}


class TestCartRoutes:
    @pytest.fixture(autouse=True)
    def no_storefront_token(self):
        with patch.object(settings.shopify, "SHOPIFY_STOREFRONT_ACCESS_TOKEN", ""):
            yield

    def test_create_requires_shop(self, client):
        response = client.post("/api/shopify/cart", json={"lines": []})

        assert response.status_code == 400
        assert response.json() == {"error": "Shop domain is required"}

    def test_mock_cart_without_token(self, client):
        response = client.post(
            "/api/shopify/cart",
            json={"shopDomain": "demo-shop", "lines": [{"merchandiseId": "1", "quantity": 2}]},
        )

        body = response.json()
        assert body["source"] == "mock"
        assert "warning" in body
        assert body["cart"]["cost"]["totalAmount"]["amount"] == "25.00"

    def test_add_requires_lines(self, client):
        response = client.post("/api/shopify/cart/mock_cart_1", json={"shopDomain": "demo-shop"})

        assert response.status_code == 400

    def test_get_mock_cart(self, client):
        response = client.get("/api/shopify/cart/mock_cart_1", params={"shop": "demo-shop"})

        assert response.json()["cart"]["id"] == "mock_cart_1"

    def test_storefront_cart(self, client):
        storefront = MagicMock()
        storefront.add_to_cart = AsyncMock(return_value={"id": "gid://shopify/Cart/1"})

        with patch("minimall.api.v1.cart.create_storefront_client", return_value=storefront):
            response = client.post(
                "/api/shopify/cart/gid-1",
                json={"shopDomain": "demo-shop", "lines": [{"merchandiseId": "1"}]},
            )

        assert response.json() == {"cart": {"id": "gid://shopify/Cart/1"}, "source": "shopify"}
        storefront.add_to_cart.assert_awaited_once_with(
            "gid-1", [{"merchandiseId": "1", "quantity": 1}]
        )


class TestProductRoutes:
    @pytest.fixture(autouse=True)
    def no_storefront_token(self):
        with patch.object(settings.shopify, "SHOPIFY_STOREFRONT_ACCESS_TOKEN", ""), patch.object(
            settings.shopify, "SHOPIFY_DOMAIN", ""
        ):
            yield

    def test_requires_shop(self, client):
        response = client.get("/api/shopify/products/prod_abc")

        assert response.status_code == 400
        assert response.json() == {"error": "Shop domain is required"}

    def test_mock_product_without_token(self, client):
        response = client.get("/api/shopify/products/prod_abc", params={"shop": "demo-shop"})

        body = response.json()
        assert body["source"] == "mock"
        assert body["product"]["handle"] == "essential-tee"
        assert "warning" in body

    def test_unknown_mock_product(self, client):
        response = client.get("/api/shopify/products/prod_zzz", params={"shop": "demo-shop"})

        assert response.status_code == 404
        assert response.json() == {"error": "Product not found and Shopify not configured"}

    def test_shop_falls_back_to_configured_domain(self, client):
        with patch.object(settings.shopify, "SHOPIFY_DOMAIN", SHOP):
            response = client.get("/api/shopify/products/prod_abc")

        assert response.json()["source"] == "mock"

    def test_storefront_product(self, client):
        storefront = MagicMock()
        storefront.get_product = AsyncMock(return_value={"id": "gid://shopify/Product/7"})

        with patch("minimall.api.v1.products.create_storefront_client", return_value=storefront):
            response = client.get("/api/shopify/products/7", params={"shop": SHOP})

        assert response.json() == {"product": {"id": "gid://shopify/Product/7"}, "source": "shopify"}
        storefront.get_product.assert_awaited_once_with("7")

    def test_storefront_product_missing(self, client):
        storefront = MagicMock()
        storefront.get_product = AsyncMock(return_value=None)

        with patch("minimall.api.v1.products.create_storefront_client", return_value=storefront):
            response = client.get("/api/shopify/products/7", params={"shop": SHOP})

        assert response.status_code == 404
        assert response.json() == {"error": "Product not found"}

    def test_storefront_failure(self, client):
        storefront = MagicMock()
        storefront.get_product = AsyncMock(side_effect=RuntimeError("boom"))

        with patch("minimall.api.v1.products.create_storefront_client", return_value=storefront):
            response = client.get("/api/shopify/products/7", params={"shop": SHOP})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch product"}


class TestAssetRoutes:
    @pytest.fixture
    def storage(self):
        storage = MagicMock()
        storage.list_objects = AsyncMock(return_value=["uploads/1714560000000-aaaaaa.png"])
        storage.put_object = AsyncMock()
        storage.delete_object = AsyncMock()
        storage.get_object_url.side_effect = lambda key: f"https://r2.test/{key}"
        storage.get_public_url.side_effect = lambda key: f"https://r2.test/{key}"
        app.dependency_overrides[get_asset_service] = lambda: AssetService(storage)
        return storage

    def test_not_configured(self, client):
        app.dependency_overrides[get_asset_service] = lambda: None

        response = client.get("/api/assets")

        assert response.status_code == 503
        assert response.json() == {"error": "R2 service not configured"}

    def test_list_assets(self, client, storage):
        response = client.get("/api/assets", params={"type": "image"})

        body = response.json()
        assert body["success"] is True
        assert body["total"] == 1
        assert body["assets"][0]["url"] == "https://r2.test/uploads/1714560000000-aaaaaa.png"

    def test_upload_asset(self, client, storage):
        response = client.post(
            "/api/assets/upload",
            files={"file": ("hero.jpg", b"jpeg-bytes", "image/jpeg")},
            data={"folder": "media"},
        )

        body = response.json()
        assert body["success"] is True
        assert body["asset"]["mimeType"] == "image/jpeg"
        assert body["asset"]["id"].startswith("media/")
        storage.put_object.assert_awaited_once()

    def test_upload_rejects_disallowed_type(self, client, storage):
        response = client.post(
            "/api/assets/upload",
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "File type text/plain not allowed"}
        storage.put_object.assert_not_awaited()

    def test_upload_requires_file(self, client, storage):
        response = client.post("/api/assets/upload", data={"folder": "media"})

        assert response.status_code == 400
        assert response.json() == {"error": "No file provided"}

    def test_upload_url(self, client, storage):
        storage.generate_upload_url.return_value = {
            "url": "https://signed",
            "key": "uploads/demo/1714560000000-hero.png",
        }

        response = client.get(
            "/api/assets/upload-url", params={"filename": "hero.png", "contentType": "image/png"}
        )

        assert response.json()["uploadUrl"] == "https://signed"
        storage.generate_upload_url.assert_called_once_with("demo", "hero.png", "image/png")

    def test_upload_url_requires_params(self, client, storage):
        response = client.get("/api/assets/upload-url", params={"filename": "hero.png"})

        assert response.status_code == 400

    def test_delete_nested_key(self, client, storage):
        response = client.delete("/api/assets/uploads/1714560000000-aaaaaa.png")

        assert response.json() == {"success": True, "message": "Asset deleted successfully"}
        storage.delete_object.assert_awaited_once_with("uploads/1714560000000-aaaaaa.png")


class TestGeoRoutes:
    def test_geo_from_edge_headers(self, client):
        response = client.get("/api/geo", headers={"cf-ipcountry": "DE"})

        body = response.json()
        assert body["location"]["countryCode"] == "DE"
        assert body["market"]["currency"] == "EUR"
        assert body["compliance"]["gdpr"] is True

    def test_compliance(self, client):
        response = client.get("/api/compliance", params={"country": "de"})

        body = response.json()
        assert [r["id"] for r in body["status"]["applicableRules"]] == ["gdpr"]
        assert body["status"]["riskLevel"] == "high"
        assert body["policySections"][0]["title"] == "Information We Collect"

    def test_compliance_validates_business_size(self, client):
        response = client.get(
            "/api/compliance", params={"country": "US", "businessSize": "huge"}
        )

        assert response.status_code == 422


class TestHealthRoutes:
    def test_live_and_ready(self, client):
        assert client.get("/health/live").json()["status"] == "alive"
        assert client.get("/health/ready").json()["status"] == "ready"
        assert client.get("/health/").json()["status"] == "healthy"

    def test_detailed_healthy(self, client):
        with patch(
            "minimall.api.v1.health.check_database_health", AsyncMock(return_value=True)
        ), patch("minimall.api.v1.health.check_redis_health", AsyncMock(return_value=True)):
            response = client.get("/health/detailed")

        assert response.status_code == 200
        assert response.json()["checks"]["database"]["status"] == "healthy"

    def test_detailed_unhealthy(self, client):
        with patch(
            "minimall.api.v1.health.check_database_health", AsyncMock(return_value=True)
        ), patch(
            "minimall.api.v1.health.check_redis_health",
            AsyncMock(side_effect=RuntimeError("connection refused")),
        ):
            response = client.get("/health/detailed")

        assert response.status_code == 503
        checks = response.json()["detail"]["checks"]
        assert checks["redis"] == {"status": "error", "error": "connection refused"}


class TestAuthRoutes:
    @pytest.fixture
    def auth(self):
        auth = ShopifyAuth(
            ShopifyAuthConfig(
                api_key="api-key",
                api_secret="shpss_test_secret_value_for_unit_tests_only",
                host_name="https://app.minimall.test",
            ),
            token_store=MagicMock(),
        )
        with patch("minimall.api.v1.auth.get_shopify_auth", return_value=auth):
            yield auth

    def test_install_requires_shop(self, client):
        response = client.get("/api/auth/shopify/install")

        assert response.status_code == 400
        assert response.json() == {"error": "Missing shop parameter"}

    def test_install_rejects_invalid_shop(self, client, auth):
        response = client.get(
            "/api/auth/shopify/install",
            params={"shop": "evil.example.com"},
            headers={"x-forwarded-for": "198.51.100.10"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid shop domain"}

    def test_install_redirects_to_shopify(self, client, auth):
        response = client.get(
            "/api/auth/shopify/install",
            params={"shop": SHOP},
            headers={"x-forwarded-for": "198.51.100.11"},
            follow_redirects=False,
        )

        assert response.status_code == 307
        assert response.headers["location"].startswith(f"https://{SHOP}/admin/oauth/authorize?")
        assert response.cookies["oauth_shop"] == SHOP
        assert len(response.cookies["oauth_state"]) == 32

    def test_session_without_token(self, client):
        response = client.get("/api/auth/session")

        assert response.status_code == 401
        assert response.json() == {"authenticated": False}

    def test_session_with_bearer_token(self, client, auth):
        session = ShopifySession(shop=SHOP, access_token="shpat_123", scope="read_products")
        auth.verify_session_token = AsyncMock(return_value=session)

        response = client.get("/api/auth/session", headers={"Authorization": "Bearer tok"})

        assert response.json()["authenticated"] is True
        assert response.json()["shop"] == SHOP
        auth.verify_session_token.assert_awaited_once_with("tok")

    def test_logout_revokes_token(self, client, auth):
        auth.revoke_session_token = AsyncMock(return_value=True)

        response = client.delete("/api/auth/session", headers={"Authorization": "Bearer tok"})

        assert response.json() == {"success": True}
        auth.revoke_session_token.assert_awaited_once_with("tok")

    def signed_callback_params(self, auth, **overrides):
        params = {
            "code": "auth-code",
            "shop": SHOP,
            "state": "state-123",
            "timestamp": "1700000000",
        }
        params.update(overrides)
        message = "&".join(f"{key}={params[key]}" for key in sorted(params))
        params["hmac"] = hmac_sha256_hex(auth.config.api_secret, message)
        return params

    def callback(self, client, params, ip, cookies=None):
        for name, value in (cookies or {"oauth_state": "state-123", "oauth_shop": SHOP}).items():
            client.cookies.set(name, value)
        return client.get(
            "/api/auth/shopify/callback",
            params=params,
            headers={"x-forwarded-for": ip},
            follow_redirects=False,
        )

    def test_callback_rate_limited(self, client, auth):
        with patch("minimall.api.v1.auth.auth_rate_limiter") as limiter:
            limiter.is_allowed.return_value = False
            response = self.callback(client, self.signed_callback_params(auth), "198.51.100.20")

        assert response.status_code == 307
        assert response.headers["location"] == (
            f"{settings.shopify.SHOPIFY_APP_URL}/admin/auth/error?error=rate_limit_exceeded"
        )

    def test_callback_missing_params(self, client, auth):
        response = self.callback(client, {"code": "auth-code"}, "198.51.100.21")
        assert response.headers["location"].endswith("error=no_shop_provided")

        response = self.callback(client, {"shop": SHOP}, "198.51.100.21")
        assert response.headers["location"].endswith("error=authentication_failed")

    def test_callback_rejects_invalid_shop(self, client, auth):
        params = self.signed_callback_params(auth, shop="evil.example.com")

        response = self.callback(client, params, "198.51.100.22")

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid shop domain"}

    def test_callback_rejects_state_mismatch(self, client, auth):
        response = self.callback(
            client,
            self.signed_callback_params(auth),
            "198.51.100.23",
            cookies={"oauth_state": "other-state", "oauth_shop": SHOP},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid state parameter"}

    def test_callback_rejects_shop_mismatch(self, client, auth):
        response = self.callback(
            client,
            self.signed_callback_params(auth),
            "198.51.100.24",
            cookies={"oauth_state": "state-123", "oauth_shop": "other.myshopify.com"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Shop mismatch"}

    def test_callback_rejects_bad_hmac(self, client, auth):
        params = self.signed_callback_params(auth)
        params["hmac"] = "0" * 64

        response = self.callback(client, params, "198.51.100.25")

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid HMAC signature"}

    def test_callback_success_sets_session_cookies(self, client, auth):
        session = ShopifySession(shop=SHOP, access_token="shpat_123", scope="read_products")
        auth.exchange_code_for_token = AsyncMock(return_value=session)

        with patch(
            "minimall.api.v1.auth._store_installation", new=AsyncMock()
        ) as store_installation:
            response = self.callback(client, self.signed_callback_params(auth), "198.51.100.26")

        assert response.status_code == 307
        location = response.headers["location"]
        assert location.startswith(f"{settings.shopify.SHOPIFY_APP_URL}/?shop=")
        assert "host=" in location
        set_cookies = " ".join(response.headers.get_list("set-cookie"))
        for name in ("shopify_session=", "shopify_session_fallback=", "session_fingerprint="):
            assert name in set_cookies
        auth.exchange_code_for_token.assert_awaited_once_with(SHOP, "auth-code")
        store_installation.assert_awaited_once_with(session, SHOP)

    def test_callback_exchange_failure_redirects(self, client, auth):
        auth.exchange_code_for_token = AsyncMock(
            side_effect=AuthenticationError("Failed to exchange code for token")
        )

        response = self.callback(client, self.signed_callback_params(auth), "198.51.100.27")

        assert response.status_code == 307
        assert response.headers["location"].endswith("error=authentication_failed")
