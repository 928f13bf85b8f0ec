"""
Tests for SiteConfig documents and the config service
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError

from minimall.core.exceptions import ConfigNotFoundError, StorageError
from minimall.domains.configs import (
    ConfigService,
    create_default_site_config,
    create_demo_config,
    extract_shop_from_domain,
    generate_config_id,
    validate_site_config,
)
from minimall.domains.configs.defaults import (
    find_category_by_id,
    flatten_categories,
    reorder_categories,
)
from minimall.repository.ConfigRepository import ConfigRepository

SHOP_DOMAIN = "demo-shop.myshopify.com"


class TestDefaults:
    def test_generate_config_id(self):
        config_id = generate_config_id()
        assert len(config_id) == 10
        assert config_id.isalnum()

    def test_default_config_is_valid(self):
        config = create_default_site_config(SHOP_DOMAIN)

        validated = validate_site_config(config)

        assert validated["settings"]["shopDomain"] == SHOP_DOMAIN
        assert validated["settings"]["checkoutLink"] == f"https://{SHOP_DOMAIN}/cart"
        assert [c["id"] for c in validated["categories"]] == ["instagram", "shop", "lookbook"]

    def test_demo_config_is_stable(self):
        first = create_demo_config()
        second = create_demo_config()

        assert first == second
        assert first["id"] == "demo"
        assert first["createdAt"] == "2024-01-01T00:00:00.000Z"
        assert create_demo_config("abc123")["id"] == "abc123"

    def test_category_helpers(self):
        tree = [
            {"id": "a", "children": [{"id": "a1", "children": [{"id": "a1x"}]}]},
            {"id": "b"},
        ]

        assert find_category_by_id(tree, "a1x") == {"id": "a1x"}
        assert find_category_by_id(tree, "zzz") is None
        assert [c["id"] for c in flatten_categories(tree)] == ["a", "a1", "a1x", "b"]

    def test_reorder_categories_renumbers(self):
        categories = [{"id": "a"}, {"id": "b"}, {"id": "c"}]

        reordered = reorder_categories(categories, 2, 0)

        assert [(c["id"], c["order"]) for c in reordered] == [("c", 1), ("a", 2), ("b", 3)]
        assert reorder_categories(categories, 5, 0) == categories


class TestSiteConfigValidation:
    @pytest.fixture
    def config(self):
        return create_default_site_config(SHOP_DOMAIN, config_id="abc123")

    def test_rejects_bad_checkout_link(self, config):
        config["settings"]["checkoutLink"] = "not-a-url"

        with pytest.raises(ValidationError):
            validate_site_config(config)

    def test_rejects_bad_timestamp(self, config):
        config["createdAt"] = "yesterday"

        with pytest.raises(ValidationError):
            validate_site_config(config)

    def test_rejects_empty_shop_domain(self, config):
        config["settings"]["shopDomain"] = ""

        with pytest.raises(ValidationError):
            validate_site_config(config)

    def test_rejects_out_of_range_layout(self, config):
        config["categories"][0]["layout"] = {
            "preset": "grid",
            "rows": 9,
            "columns": 2,
            "gutter": 8,
            "outerMargin": 16,
            "borderRadius": 0,
            "hoverZoom": False,
            "aspect": "1:1",
            "mediaFilter": "all",
            "blockId": "instagram",
        }

        with pytest.raises(ValidationError):
            validate_site_config(config)


class TestExtractShop:
    def test_myshopify_domain(self):
        assert extract_shop_from_domain("my-shop.myshopify.com") == "my-shop"

    def test_custom_domain(self):
        assert extract_shop_from_domain("shop.example.com") == "shop"
        assert extract_shop_from_domain("") == ""


class TestConfigService:
    @pytest.fixture
    def repository(self, session_factory):
        return ConfigRepository(session_factory)

    @pytest.fixture
    def r2(self):
        r2 = MagicMock()
        r2.get_config = AsyncMock(side_effect=ConfigNotFoundError("missing"))
        r2.save_config = AsyncMock()
        r2.publish_config = AsyncMock()
        r2.delete_config = AsyncMock()
        return r2

    @pytest.fixture
    def service(self, repository, r2):
        return ConfigService(repository, r2_service_factory=lambda: r2)

    @pytest.fixture
    def local_service(self, repository):
        return ConfigService(repository, r2_service_factory=lambda: None)

    @pytest.mark.asyncio
    async def test_create_config_stores_draft(self, local_service, repository):
        config = await local_service.create_config(SHOP_DOMAIN)

        stored = await repository.get_config(config["id"])
        assert stored.shop == "demo-shop"

        current = await repository.get_current_version(config["id"])
        assert current.data == config
        assert current.is_published is False
        assert current.version.startswith("v")

    @pytest.mark.asyncio
    async def test_get_config_prefers_database(self, local_service):
        config = await local_service.create_config(SHOP_DOMAIN)

        resolved, source = await local_service.get_config(config["id"])

        assert source == "database"
        assert resolved["id"] == config["id"]

    @pytest.mark.asyncio
    async def test_get_config_falls_back_to_r2_then_demo(self, service, r2):
        r2.get_config = AsyncMock(return_value={"id": "remote"})
        resolved, source = await service.get_config("remote")
        assert (resolved, source) == ({"id": "remote"}, "r2")

        r2.get_config = AsyncMock(side_effect=ConfigNotFoundError("x"))
        resolved, source = await service.get_config("x")
        assert source == "demo"
        assert resolved["id"] == "x"

    @pytest.mark.asyncio
    async def test_get_config_survives_database_errors(self):
        repository = MagicMock()
        repository.get_current_version = AsyncMock(side_effect=RuntimeError("db down"))
        service = ConfigService(repository, r2_service_factory=lambda: None)

        resolved, source = await service.get_config("abc123")

        assert source == "demo"
        assert resolved["id"] == "abc123"

    @pytest.mark.asyncio
    async def test_get_editor_config(self, service, local_service, r2):
        with pytest.raises(ConfigNotFoundError):
            await service.get_editor_config("nothing")

        config = await local_service.create_config(SHOP_DOMAIN)
        resolved, source = await service.get_editor_config(config["id"])
        assert source == "database"
        assert resolved["id"] == config["id"]

        r2.get_config = AsyncMock(return_value={"id": config["id"], "from": "r2"})
        resolved, source = await service.get_editor_config(config["id"])
        assert source == "r2"

    @pytest.mark.asyncio
    async def test_update_config_adds_draft_and_backs_up(self, service, repository, r2):
        config = create_default_site_config(SHOP_DOMAIN, config_id="abc123")

        updated = await service.update_config("abc123", config)

        assert updated["updatedAt"].endswith("Z")
        r2.save_config.assert_awaited_once_with("abc123", updated)

        stored = await repository.get_config("abc123")
        assert stored.shop == "demo-shop"
        assert stored.slug == "abc123"

    @pytest.mark.asyncio
    async def test_update_config_requires_identity(self, service):
        with pytest.raises(ValidationError):
            await service.update_config("abc123", {"id": "abc123"})

    @pytest.mark.asyncio
    async def test_update_config_ignores_r2_failure(self, service, repository, r2):
        r2.save_config.side_effect = RuntimeError("r2 down")
        config = create_default_site_config(SHOP_DOMAIN, config_id="abc123")

        await service.update_config("abc123", config)

        assert await repository.get_current_version("abc123") is not None

    @pytest.mark.asyncio
    async def test_publish_latest_draft(self, service, repository, r2):
        config = create_default_site_config(SHOP_DOMAIN, config_id="abc123")
        await service.update_config("abc123", config)

        published = await service.publish_latest_draft("abc123")

        assert published["is_published"] is True
        assert "data" not in published
        r2.publish_config.assert_awaited_once()
        args = r2.publish_config.await_args.args
        assert args[0] == "abc123"
        assert args[2] == published["version"]

        # Nothing left to publish
        assert await service.publish_latest_draft("abc123") is None

    @pytest.mark.asyncio
    async def test_publish_rolls_back_when_r2_fails(self, service, repository, r2):
        config = create_default_site_config(SHOP_DOMAIN, config_id="abc123")
        await service.update_config("abc123", config)
        draft = await repository.get_current_version("abc123")
        r2.publish_config.side_effect = RuntimeError("r2 down")

        with pytest.raises(StorageError) as exc_info:
            await service.publish_latest_draft("abc123")

        assert exc_info.value.error_code == "PUBLISH_FAILED"
        versions = await repository.list_versions("abc123")
        assert all(not v.is_published for v in versions)
        assert (await repository.get_current_version("abc123")).id == draft.id

    @pytest.mark.asyncio
    async def test_publish_rejects_invalid_draft(self, service, repository, r2):
        await repository.add_version(
            "abc123", "demo-shop", "abc123", {"id": "abc123", "categories": "oops"}, "v1"
        )

        with pytest.raises(ValidationError):
            await service.publish_latest_draft("abc123")

        r2.publish_config.assert_not_awaited()
        versions = await repository.list_versions("abc123")
        assert all(not v.is_published for v in versions)

        with pytest.raises(ValidationError):
            await service.publish_version("abc123", versions[0].id)
        assert not (await repository.get_version_by_id("abc123", versions[0].id)).is_published

    @pytest.mark.asyncio
    async def test_publish_version_and_list(self, local_service, repository):
        config = await local_service.create_config(SHOP_DOMAIN)
        version = await repository.get_current_version(config["id"])

        assert await local_service.publish_version(config["id"], "missing") is None
        summary = await local_service.publish_version(config["id"], version.id)
        assert summary["id"] == version.id
        assert summary["is_published"] is True

        versions = await local_service.list_versions(config["id"])
        assert len(versions) == 1
        assert "data" not in versions[0]

        items = await local_service.list_configs(shop="demo-shop")
        assert items[0]["id"] == config["id"]
        assert items[0]["current_version"]["id"] == version.id

    @pytest.mark.asyncio
    async def test_save_config_publishes_immediately(self, service, r2):
        saved = await service.save_config("abc123", {"id": "abc123"}, shop="demo")

        assert saved["is_published"] is True
        assert saved["config_id"] == "abc123"
        r2.save_config.assert_awaited_once_with("abc123", {"id": "abc123"})

    @pytest.mark.asyncio
    async def test_delete_config(self, service, repository, r2):
        await service.save_config("abc123", {"id": "abc123"})
        r2.delete_config.side_effect = RuntimeError("r2 down")

        await service.delete_config("abc123")

        assert await repository.get_config("abc123") is None
