"""
Versioned SiteConfig storage on top of the R2 client
"""

import json
from typing import Any, Dict, List, Optional

from minimall.core.config.settings import settings
from minimall.core.exceptions import (
    ConfigNotFoundError,
    ObjectNotFoundError,
    StorageNotConfiguredError,
)
from minimall.core.logging import get_logger
from minimall.shared.helpers import now_ms
from .r2_client import R2Client, R2Config

logger = get_logger(__name__)

CONFIG_CONTENT_TYPE = "application/json"


def config_key(config_id: str, version: Optional[str] = None) -> str:
    if version:
        return f"configs/{config_id}/versions/{version}.json"
    return f"configs/{config_id}/current.json"


class R2ConfigService:
    """Reads and writes SiteConfig documents and merchant uploads"""

    def __init__(self, client: R2Client):
        self.client = client

    async def save_config(
        self, config_id: str, config: Dict[str, Any], version: Optional[str] = None
    ) -> str:
        key = config_key(config_id, version)
        await self.client.put_object(
            key, json.dumps(config, indent=2), content_type=CONFIG_CONTENT_TYPE
        )
        logger.info(f"Saved config {config_id} to R2", key=key)
        return key

    async def get_config(
        self, config_id: str, version: Optional[str] = None
    ) -> Dict[str, Any]:
        try:
            raw = await self.client.get_object_text(config_key(config_id, version))
        except ObjectNotFoundError as e:
            raise ConfigNotFoundError(config_id, cause=e)
        return json.loads(raw)

    async def publish_config(
        self, config_id: str, config: Dict[str, Any], version: str
    ) -> None:
        """Write the immutable version snapshot, then point current.json at it"""
        await self.save_config(config_id, config, version)
        await self.save_config(config_id, config)

    async def delete_config(self, config_id: str) -> None:
        await self.client.delete_object(config_key(config_id))

    async def list_config_versions(self, config_id: str) -> List[str]:
        prefix = f"configs/{config_id}/versions/"
        keys = await self.client.list_objects(prefix)
        return [k[len(prefix) : -len(".json")] for k in keys if k.endswith(".json")]

    def generate_upload_url(
        self,
        shop_id: str,
        filename: str,
        content_type: str = "application/octet-stream",
    ) -> Dict[str, str]:
        """Presigned PUT URL for a merchant media upload"""
        key = f"uploads/{shop_id}/{now_ms()}-{filename}"
        url = self.client.generate_presigned_url(
            key, method="PUT", expires_in=settings.storage.R2_PRESIGN_EXPIRES
        )
        logger.debug("Generated upload URL", key=key, content_type=content_type)
        return {"url": url, "key": key}

    async def put_object(
        self,
        key: str,
        body: bytes,
        content_type: str = "application/octet-stream",
    ) -> None:
        await self.client.put_object(key, body, content_type=content_type)

    async def get_object(self, key: str) -> bytes:
        return await self.client.get_object(key)

    async def delete_object(self, key: str) -> None:
        await self.client.delete_object(key)

    async def list_objects(self, prefix: str = "", max_keys: int = 1000) -> List[str]:
        return await self.client.list_objects(prefix, max_keys)

    def get_object_url(self, key: str) -> str:
        return self.client.get_public_url(key)

    def get_public_url(self, key: str) -> str:
        return self.client.get_public_url(key)


def _missing_storage_vars() -> List[str]:
    storage = settings.storage
    required = {
        "R2_ENDPOINT": storage.R2_ENDPOINT,
        "R2_ACCESS_KEY": storage.R2_ACCESS_KEY,
        "R2_SECRET": storage.R2_SECRET,
        "R2_BUCKET_NAME": storage.R2_BUCKET_NAME,
    }
    return [name for name, value in required.items() if not value]


def get_r2_service() -> Optional[R2ConfigService]:
    """Build the service from settings, or None when R2 is not configured"""
    missing = _missing_storage_vars()
    if missing:
        logger.warning(
            f"R2 storage not configured. Missing environment variables: {', '.join(missing)}"
        )
        return None

    storage = settings.storage
    return R2ConfigService(
        R2Client(
            R2Config(
                endpoint=storage.R2_ENDPOINT,
                access_key_id=storage.R2_ACCESS_KEY,
                secret_access_key=storage.R2_SECRET,
                bucket_name=storage.R2_BUCKET_NAME,
            )
        )
    )


def get_r2_service_required() -> R2ConfigService:
    service = get_r2_service()
    if service is None:
        raise StorageNotConfiguredError(_missing_storage_vars())
    return service
