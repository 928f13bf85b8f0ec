"""
Health check endpoints
"""

import asyncio
from typing import Awaitable, Callable, Dict

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from minimall.core.config import settings
from minimall.core.database import check_database_health
from minimall.core.redis import check_redis_health
from minimall.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model"""

    status: str
    service: str
    version: str
    timestamp: float
    checks: dict


async def _run_check(check: Callable[[], Awaitable[bool]]) -> Dict[str, object]:
    loop = asyncio.get_event_loop()
    start = loop.time()
    try:
        healthy = await asyncio.wait_for(check(), timeout=settings.HEALTH_CHECK_TIMEOUT)
    except asyncio.TimeoutError:
        return {"status": "timeout", "duration_ms": settings.HEALTH_CHECK_TIMEOUT * 1000}
    except Exception as e:
        return {"status": "error", "error": str(e)}
    return {
        "status": "healthy" if healthy else "unhealthy",
        "duration_ms": (loop.time() - start) * 1000,
    }


@router.get("/", response_model=HealthResponse)
async def health_check():
    """Basic health check endpoint"""
    return HealthResponse(
        status="healthy",
        service=settings.PROJECT_NAME,
        version=settings.VERSION,
        timestamp=asyncio.get_event_loop().time(),
        checks={},
    )


@router.get("/detailed", response_model=HealthResponse)
async def detailed_health_check():
    """Detailed health check with database and Redis status"""
    checks = {
        "database": await _run_check(check_database_health),
        "redis": await _run_check(check_redis_health),
    }
    overall_status = (
        "healthy"
        if all(c["status"] == "healthy" for c in checks.values())
        else "unhealthy"
    )

    response = HealthResponse(
        status=overall_status,
        service=settings.PROJECT_NAME,
        version=settings.VERSION,
        timestamp=asyncio.get_event_loop().time(),
        checks=checks,
    )

    if overall_status != "healthy":
        logger.warning("Health check failed", checks=checks)
        raise HTTPException(status_code=503, detail=response.model_dump())

    return response


@router.get("/ready")
async def readiness_check():
    """Readiness check for container orchestration"""
    return {
        "status": "ready",
        "service": settings.PROJECT_NAME,
        "timestamp": asyncio.get_event_loop().time(),
    }


@router.get("/live")
async def liveness_check():
    """Liveness check for container orchestration"""
    return {
        "status": "alive",
        "service": settings.PROJECT_NAME,
        "timestamp": asyncio.get_event_loop().time(),
    }
