"""
Merchant media assets stored in R2

Uploads are keyed `{folder}/{ms}-{random}.{ext}`, so listing can order
assets by upload time from the key alone.
"""

import re
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from minimall.core.exceptions import ValidationError
from minimall.core.logging import get_logger
from minimall.shared.helpers import now_ms, to_iso_z
from .config_service import R2ConfigService

logger = get_logger(__name__)

DEFAULT_ASSET_FOLDER = "uploads"
MAX_ASSET_BYTES = 10 * 1024 * 1024

ALLOWED_ASSET_TYPES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
    "video/mp4",
    "video/webm",
    "video/quicktime",
)

MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mov": "video/quicktime",
    "avi": "video/x-msvideo",
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

_IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp", "svg"}
_VIDEO_EXTENSIONS = {"mp4", "webm", "mov", "avi"}
_UPLOAD_STAMP_RE = re.compile(r"^(\d{13})-")


def file_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def strip_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[0] if "." in filename else filename


def mime_type_for_extension(extension: str) -> str:
    return MIME_TYPES.get(extension, "application/octet-stream")


def asset_type_for_extension(extension: str) -> str:
    if extension in _IMAGE_EXTENSIONS:
        return "image"
    if extension in _VIDEO_EXTENSIONS:
        return "video"
    return "document"


def asset_type_for_mime(mime_type: str) -> str:
    if mime_type.startswith("image/"):
        return "image"
    if mime_type.startswith("video/"):
        return "video"
    return "document"


def validate_asset(content_type: Optional[str], size: int) -> None:
    if content_type not in ALLOWED_ASSET_TYPES:
        raise ValidationError(
            f"File type {content_type} not allowed", field="type", value=content_type
        )
    if size > MAX_ASSET_BYTES:
        raise ValidationError("File size exceeds 10MB limit", field="size", value=size)


def build_asset_key(folder: str, filename: str) -> str:
    extension = file_extension(filename)
    name = f"{now_ms()}-{secrets.token_hex(3)}"
    return f"{folder}/{name}.{extension}" if extension else f"{folder}/{name}"


def uploaded_at_from_key(key: str) -> Optional[str]:
    match = _UPLOAD_STAMP_RE.match(key.rsplit("/", 1)[-1])
    if not match:
        return None
    stamp = datetime.fromtimestamp(int(match.group(1)) / 1000, tz=timezone.utc)
    return to_iso_z(stamp)


def asset_from_key(key: str, folder: str, url: str) -> Dict[str, Any]:
    file_name = key.rsplit("/", 1)[-1]
    extension = file_extension(file_name)
    return {
        "id": key,
        "name": strip_extension(file_name),
        "originalName": file_name,
        "type": asset_type_for_extension(extension),
        "mimeType": mime_type_for_extension(extension),
        "url": url,
        "folder": folder,
        "uploadedAt": uploaded_at_from_key(key),
    }


class AssetService:
    def __init__(self, storage: R2ConfigService):
        self.storage = storage

    async def list_assets(
        self, folder: str = DEFAULT_ASSET_FOLDER, asset_type: str = "all", limit: int = 50
    ) -> Dict[str, Any]:
        """Assets under a folder, newest first; keys without an upload stamp sort last"""
        keys = await self.storage.list_objects(f"{folder}/")
        assets = [
            asset_from_key(key, folder, self.storage.get_object_url(key)) for key in keys
        ]
        if asset_type != "all":
            assets = [asset for asset in assets if asset["type"] == asset_type]

        assets.sort(key=lambda asset: asset["uploadedAt"] or "", reverse=True)
        return {"assets": assets[:limit], "total": len(assets)}

    async def upload_asset(
        self,
        filename: str,
        content_type: Optional[str],
        body: bytes,
        folder: str = DEFAULT_ASSET_FOLDER,
    ) -> Dict[str, Any]:
        """Raises ValidationError for disallowed types or oversized files"""
        validate_asset(content_type, len(body))

        key = build_asset_key(folder, filename)
        await self.storage.put_object(key, body, content_type=content_type)
        logger.info(f"Uploaded asset: {filename}", key=key, size=len(body))

        return {
            "id": key,
            "name": strip_extension(filename),
            "originalName": filename,
            "type": asset_type_for_mime(content_type),
            "mimeType": content_type,
            "size": len(body),
            "url": self.storage.get_object_url(key),
            "folder": folder,
            "uploadedAt": uploaded_at_from_key(key),
        }

    async def delete_asset(self, key: str) -> None:
        await self.storage.delete_object(key)
        logger.info("Deleted asset", key=key)

    def create_upload_url(
        self, shop_id: str, filename: str, content_type: str
    ) -> Dict[str, str]:
        """Presigned PUT for direct browser uploads of allowed media types"""
        if content_type not in ALLOWED_ASSET_TYPES:
            raise ValidationError(
                f"File type {content_type} not allowed", field="type", value=content_type
            )
        upload = self.storage.generate_upload_url(shop_id, filename, content_type)
        return {
            "uploadUrl": upload["url"],
            "key": upload["key"],
            "publicUrl": self.storage.get_public_url(upload["key"]),
        }
