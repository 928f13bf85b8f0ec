"""
SiteConfig orchestration across the database, R2 and the demo fallback

The database holds every version; R2 holds what the public storefront
serves. Drafts are written to the database first and backed up to R2.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple

from minimall.core.exceptions import ConfigNotFoundError, StorageError
from minimall.core.logging import get_logger
from minimall.domains.storage.config_service import R2ConfigService, get_r2_service
from minimall.repository.ConfigRepository import ConfigRepository
from minimall.shared.helpers import extract_shop_from_domain, now_ms, now_utc, to_iso_z
from .defaults import create_default_site_config, create_demo_config
from .schemas import ConfigIdentity, validate_site_config

logger = get_logger(__name__)


def new_version_name() -> str:
    return f"v{now_ms()}"


def _version_summary(config_version) -> Dict[str, Any]:
    data = config_version.to_dict()
    data.pop("data", None)
    return data


class ConfigService:
    """Create, update, publish and resolve SiteConfig documents"""

    def __init__(
        self,
        repository: Optional[ConfigRepository] = None,
        r2_service_factory: Callable[[], Optional[R2ConfigService]] = get_r2_service,
    ):
        self.repository = repository or ConfigRepository()
        self._r2_service_factory = r2_service_factory

    @property
    def r2(self) -> Optional[R2ConfigService]:
        return self._r2_service_factory()

    async def get_config(
        self, config_id: str, version: Optional[str] = None
    ) -> Tuple[Dict[str, Any], str]:
        """
        Resolve a config for rendering.

        Tries the database (named version, else the current one, else the
        newest), then R2, then the demo storefront. Returns the document and
        the source it came from.
        """
        try:
            if version:
                config_version = await self.repository.get_version_by_name(
                    config_id, version
                )
            else:
                config_version = await self.repository.get_current_version(config_id)
                if config_version is None:
                    config_version = await self.repository.get_latest_version(config_id)
            if config_version is not None:
                return config_version.data, "database"
        except Exception as e:
            logger.warning(f"Database config lookup failed: {e}", config_id=config_id)

        r2 = self.r2
        if r2 is not None:
            try:
                return await r2.get_config(config_id, version), "r2"
            except Exception as e:
                logger.warning(f"R2 config lookup failed: {e}", config_id=config_id)

        return create_demo_config(config_id), "demo"

    async def get_editor_config(self, config_id: str) -> Tuple[Dict[str, Any], str]:
        """Published R2 copy first, then the newest database version"""
        r2 = self.r2
        if r2 is not None:
            try:
                return await r2.get_config(config_id), "r2"
            except Exception:
                logger.debug(f"Config {config_id} not in R2, checking database")

        config_version = await self.repository.get_latest_version(config_id)
        if config_version is None:
            raise ConfigNotFoundError(config_id)
        return config_version.data, "database"

    async def create_config(self, shop_domain: str) -> Dict[str, Any]:
        config = create_default_site_config(shop_domain)
        await self.repository.add_version(
            config_id=config["id"],
            shop=extract_shop_from_domain(shop_domain),
            slug=config["id"],
            data=config,
            version=new_version_name(),
            is_published=False,
        )
        logger.info(f"Created config {config['id']}", shop=shop_domain)
        return config

    async def update_config(self, config_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Store an editor save as a new draft version and back it up to R2.

        Raises pydantic.ValidationError when identity fields are missing.
        """
        identity = ConfigIdentity.model_validate(data)
        config = dict(data)
        config["updatedAt"] = to_iso_z(now_utc())

        await self.repository.add_version(
            config_id=config_id,
            shop=identity.shop or extract_shop_from_domain(identity.settings.shopDomain),
            slug=identity.slug or config_id,
            data=config,
            version=new_version_name(),
            is_published=False,
        )

        r2 = self.r2
        if r2 is not None:
            try:
                await r2.save_config(config_id, config)
            except Exception as e:
                logger.error(f"Failed to save to R2: {e}", config_id=config_id)

        return config

    async def save_config(
        self, config_id: str, config: Dict[str, Any], shop: str = "demo"
    ) -> Dict[str, Any]:
        """Store a config as a published version; the R2 copy is best effort"""
        config_version = await self.repository.add_version(
            config_id=config_id,
            shop=shop,
            slug=config_id,
            data=config,
            version=new_version_name(),
            is_published=True,
        )

        r2 = self.r2
        if r2 is not None:
            try:
                await r2.save_config(config_id, config)
            except Exception as e:
                logger.warning(f"R2 backup failed: {e}", config_id=config_id)

        return config_version.to_dict()

    async def list_configs(
        self, shop: Optional[str] = None, limit: int = 50, offset: int = 0
    ) -> List[Dict[str, Any]]:
        rows = await self.repository.list_configs(shop=shop, limit=limit, offset=offset)
        items = []
        for config, current in rows:
            item = config.to_dict()
            item["current_version"] = _version_summary(current) if current else None
            items.append(item)
        return items

    async def list_versions(self, config_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        versions = await self.repository.list_versions(config_id, limit=limit)
        return [_version_summary(v) for v in versions]

    async def publish_version(
        self, config_id: str, version_id: str
    ) -> Optional[Dict[str, Any]]:
        """
        Publish a specific stored version; the R2 copy is best effort.

        Returns None for an unknown version. Raises pydantic.ValidationError
        when the stored document is not a valid SiteConfig.
        """
        stored = await self.repository.get_version_by_id(config_id, version_id)
        if stored is None:
            return None
        validate_site_config(stored.data)

        config_version = await self.repository.publish_version(config_id, version_id)
        if config_version is None:
            return None

        r2 = self.r2
        if r2 is not None:
            try:
                await r2.publish_config(
                    config_id, config_version.data, config_version.version
                )
            except Exception as e:
                logger.warning(f"R2 backup update failed: {e}", config_id=config_id)

        return _version_summary(config_version)

    async def publish_latest_draft(self, config_id: str) -> Optional[Dict[str, Any]]:
        """
        Publish the newest unpublished version to production.

        Returns None when there is no draft. A draft that is not a valid
        SiteConfig raises pydantic.ValidationError before anything changes.
        When R2 is configured and the write fails, the publish flags are
        restored and StorageError is raised.
        """
        draft = await self.repository.get_latest_version(config_id, unpublished_only=True)
        if draft is None:
            return None
        validate_site_config(draft.data)

        current_version_id, flags = await self.repository.get_publish_state(config_id)
        published = await self.repository.publish_version(config_id, draft.id)

        r2 = self.r2
        if r2 is not None:
            try:
                await r2.publish_config(config_id, draft.data, draft.version)
            except Exception as e:
                logger.error(f"Failed to publish to R2: {e}", config_id=config_id)
                await self.repository.restore_publish_state(
                    config_id, current_version_id, flags
                )
                raise StorageError(
                    "Failed to publish to production storage",
                    key=config_id,
                    error_code="PUBLISH_FAILED",
                    cause=e,
                )

        logger.info(
            f"Published configuration {config_id}",
            version_id=draft.id,
            version=draft.version,
        )
        return _version_summary(published)

    async def delete_config(self, config_id: str) -> None:
        r2 = self.r2
        if r2 is not None:
            try:
                await r2.delete_config(config_id)
            except Exception as e:
                logger.warning(f"Failed to delete from R2: {e}", config_id=config_id)

        await self.repository.delete_config(config_id)
