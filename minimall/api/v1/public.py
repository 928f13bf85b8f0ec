"""
Public storefront endpoints: config delivery, cache revalidation and event capture
"""

import re
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from minimall.core.config import settings
from minimall.core.logging import get_logger
from minimall.domains.analytics import AnalyticsService, PublicEventRequest
from minimall.domains.configs import create_demo_config
from minimall.domains.storage import EdgeCache, get_edge_cache, get_r2_service

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["public"])

DEMO_CONFIG_ID = "demo"
CACHE_CONTROL = "public, s-maxage=300, stale-while-revalidate=3600"
_STOREFRONT_PATH = re.compile(r"^/g/([^/]+)/?$")


class RevalidateRequest(BaseModel):
    configId: Optional[str] = None
    paths: Optional[List[str]] = None
    tags: Optional[List[str]] = None


def config_cache_key(config_id: str, draft: Optional[str] = None) -> str:
    return f"config:{config_id}:{draft}" if draft else f"config:{config_id}"


async def load_config_with_cache(
    config_id: str, draft: Optional[str], cache: EdgeCache
) -> Optional[Dict[str, Any]]:
    """
    Edge cache, then R2, then the demo fallback.

    Demo is always served for the `demo` id; any other id gets the demo
    document only in development. Returns None when nothing applies.
    """
    cache_key = config_cache_key(config_id, draft)
    cached = cache.get(cache_key)
    if cached is not None:
        logger.debug(f"Cache HIT for {cache_key}")
        return cached

    logger.debug(f"Cache MISS for {cache_key}, fetching from R2")
    try:
        r2 = get_r2_service()
        if r2 is None:
            raise RuntimeError("R2 storage is not configured")
        config = await r2.get_config(config_id, draft)
        cache.set(
            cache_key,
            config,
            settings.storage.CONFIG_CACHE_TTL,
            tags=[f"config:{config_id}", f"config:{config_id}:current"],
        )
        return config
    except Exception as e:
        logger.warning(f"R2 FAILED for {cache_key}: {e}")

    if config_id == DEMO_CONFIG_ID:
        return create_demo_config(DEMO_CONFIG_ID)
    if settings.is_development:
        logger.info(f"DEV MODE: Serving demo config for {config_id}")
        return create_demo_config(config_id)
    return None


@router.get("/config/{config_id}")
async def get_public_config(
    config_id: str,
    draft: Optional[str] = None,
    cache: EdgeCache = Depends(get_edge_cache),
):
    config = await load_config_with_cache(config_id, draft, cache)
    if config is None:
        return JSONResponse(status_code=404, content={"error": "Configuration not found"})
    return JSONResponse(content=config, headers={"Cache-Control": CACHE_CONTROL})


def _revalidate_path(path: str, cache: EdgeCache) -> int:
    match = _STOREFRONT_PATH.match(path)
    if match:
        return cache.invalidate_by_tags([f"config:{match.group(1)}"])
    return int(cache.delete(path))


@router.post("/revalidate")
async def revalidate(request: Request, cache: EdgeCache = Depends(get_edge_cache)):
    """Invalidate edge cache entries for a config, or explicit paths and tags"""
    expected = f"Bearer {settings.security.INTERNAL_API_TOKEN}"
    if request.headers.get("authorization") != expected:
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    try:
        body = RevalidateRequest.model_validate(await request.json())
    except (ValueError, PydanticValidationError) as e:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Invalid revalidation request", "details": str(e)},
        )

    config_id = body.configId
    paths = body.paths or ([f"/g/{config_id}", f"/g/{config_id}/"] if config_id else [])
    tags = body.tags or (
        [f"config:{config_id}", f"config:{config_id}:current", f"config:{config_id}:published"]
        if config_id
        else []
    )

    results = []
    for path in paths:
        try:
            removed = _revalidate_path(path, cache)
            results.append({"type": "path", "target": path, "success": True, "removed": removed})
        except Exception as e:
            logger.error(f"Failed to revalidate path {path}: {e}")
            results.append({"type": "path", "target": path, "success": False, "error": str(e)})

    for tag in tags:
        try:
            removed = cache.invalidate_by_tags([tag])
            results.append({"type": "tag", "target": tag, "success": True, "removed": removed})
        except Exception as e:
            logger.error(f"Failed to revalidate tag {tag}: {e}")
            results.append({"type": "tag", "target": tag, "success": False, "error": str(e)})

    success_count = sum(1 for r in results if r["success"])
    total = len(results)
    logger.info(
        f"Cache revalidated for config: {config_id}",
        success_count=success_count,
        failure_count=total - success_count,
    )
    return {
        "success": True,
        "message": f"Cache revalidation completed: {success_count}/{total} successful",
        "results": results,
        "summary": {
            "configId": config_id,
            "pathsRevalidated": paths,
            "tagsRevalidated": tags,
            "successCount": success_count,
            "failureCount": total - success_count,
        },
    }


@router.get("/revalidate")
async def revalidate_status():
    return {
        "success": True,
        "message": "Cache revalidation endpoint is healthy",
        "endpoints": {"revalidate": "POST /api/revalidate"},
    }


def get_analytics_service() -> AnalyticsService:
    return AnalyticsService()


@router.post("/events")
async def capture_event(
    request: Request, service: AnalyticsService = Depends(get_analytics_service)
):
    """Storefront analytics beacon; storage failures do not fail the request"""
    try:
        event = PublicEventRequest.model_validate(await request.json())
    except (ValueError, PydanticValidationError) as e:
        details = (
            e.errors(include_url=False, include_context=False)
            if isinstance(e, PydanticValidationError)
            else str(e)
        )
        return JSONResponse(
            status_code=400, content={"error": "Invalid event data", "details": details}
        )

    stored = await service.record_public_event(
        event,
        header_user_agent=request.headers.get("user-agent"),
        header_referrer=request.headers.get("referer"),
    )
    return {"success": True, "stored": stored}
