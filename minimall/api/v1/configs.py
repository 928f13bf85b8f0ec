"""
SiteConfig admin endpoints: CRUD, versions and publishing
"""

import base64
import binascii
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from minimall.core.exceptions import ConfigNotFoundError, StorageError
from minimall.core.logging import get_logger
from minimall.domains.configs import ConfigService

logger = get_logger(__name__)

router = APIRouter(prefix="/api/configs", tags=["configs"])


def get_config_service() -> ConfigService:
    return ConfigService()


async def _json_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def resolve_shop_domain(request: Request, body: Dict[str, Any]) -> Optional[str]:
    """Shop from the body, the query, the base64 `host` param, then the Shopify header"""
    shop = body.get("shopDomain")
    if shop:
        return shop

    params = request.query_params
    shop = params.get("shopDomain") or params.get("shop")
    if shop:
        return shop

    host = params.get("host")
    if host:
        try:
            decoded = base64.b64decode(host + "=" * (-len(host) % 4)).decode("utf-8")
            if decoded:
                return decoded.replace("/admin", "")
        except (binascii.Error, UnicodeDecodeError):
            pass

    return request.headers.get("x-shopify-shop-domain") or None



def _invalid_config(error: PydanticValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid configuration data",
            "details": error.errors(include_url=False, include_context=False),
        },
    )

@router.get("")
async def list_configs(
    shop: Optional[str] = None,
    service: ConfigService = Depends(get_config_service),
):
    try:
        items = await service.list_configs(shop=shop)
    except Exception as e:
        logger.error(f"Failed to list configs: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to list configs"})
    return {"success": True, "items": items}


@router.post("")
async def create_config(
    request: Request, service: ConfigService = Depends(get_config_service)
):
    body = await _json_body(request)
    shop_domain = resolve_shop_domain(request, body)
    if not shop_domain:
        return JSONResponse(status_code=400, content={"error": "shopDomain is required"})

    try:
        config = await service.create_config(shop_domain)
    except Exception as e:
        logger.error(f"Failed to create config: {e}", shop=shop_domain)
        return JSONResponse(status_code=500, content={"error": "Failed to create config"})
    return {"success": True, "configId": config["id"], "config": config}


@router.get("/{config_id}")
async def get_config(config_id: str, service: ConfigService = Depends(get_config_service)):
    try:
        config, source = await service.get_editor_config(config_id)
    except ConfigNotFoundError:
        return JSONResponse(status_code=404, content={"error": "Configuration not found"})
    except Exception as e:
        logger.error(f"Failed to get configuration: {e}", config_id=config_id)
        return JSONResponse(
            status_code=500, content={"error": "Failed to get configuration"}
        )
    return {"success": True, "config": config, "source": source}


@router.put("/{config_id}")
async def update_config(
    config_id: str, request: Request, service: ConfigService = Depends(get_config_service)
):
    body = await _json_body(request)
    try:
        config = await service.update_config(config_id, body)
    except PydanticValidationError as e:
        return _invalid_config(e)
    except Exception as e:
        logger.error(f"Failed to update configuration: {e}", config_id=config_id)
        return JSONResponse(
            status_code=500, content={"error": "Failed to update configuration"}
        )
    return {
        "success": True,
        "config": config,
        "message": "Configuration updated successfully",
    }


@router.delete("/{config_id}")
async def delete_config(
    config_id: str, service: ConfigService = Depends(get_config_service)
):
    try:
        await service.delete_config(config_id)
    except Exception as e:
        logger.error(f"Failed to delete configuration: {e}", config_id=config_id)
        return JSONResponse(
            status_code=500, content={"error": "Failed to delete configuration"}
        )
    return {"success": True, "message": "Configuration deleted successfully"}


@router.post("/{config_id}/publish")
async def publish_config(
    config_id: str, service: ConfigService = Depends(get_config_service)
):
    """Publish the newest draft to the database and production storage"""
    try:
        published = await service.publish_latest_draft(config_id)
    except PydanticValidationError as e:
        return _invalid_config(e)
    except StorageError as e:
        return JSONResponse(status_code=500, content={"error": e.message})
    except Exception as e:
        logger.error(f"Failed to publish configuration: {e}", config_id=config_id)
        return JSONResponse(
            status_code=500, content={"error": "Failed to publish configuration"}
        )

    if published is None:
        return JSONResponse(
            status_code=404, content={"error": "No draft version found to publish"}
        )

    return {
        "success": True,
        "message": "Configuration published successfully",
        "version": published,
        "publishedAt": published.get("published_at"),
    }


@router.get("/{config_id}/versions")
async def list_versions(
    config_id: str,
    limit: int = Query(10, ge=1, le=100),
    service: ConfigService = Depends(get_config_service),
):
    versions = await service.list_versions(config_id, limit=limit)
    return {"success": True, "versions": versions}


@router.post("/{config_id}/versions/{version_id}/publish")
async def publish_version(
    config_id: str,
    version_id: str,
    service: ConfigService = Depends(get_config_service),
):
    try:
        published = await service.publish_version(config_id, version_id)
    except PydanticValidationError as e:
        return _invalid_config(e)
    if published is None:
        return JSONResponse(status_code=404, content={"error": "Version not found"})
    return {"success": True, "version": published}
