"""
Analytics ingestion and reporting endpoints
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from minimall.core.logging import get_logger
from minimall.domains.analytics import (
    AnalyticsService,
    PerformanceMetricsRequest,
    TrackEventRequest,
    WebVitalRequest,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


def get_analytics_service() -> AnalyticsService:
    return AnalyticsService()


@router.post("/track")
async def track_event(
    request: TrackEventRequest,
    service: AnalyticsService = Depends(get_analytics_service),
):
    try:
        await service.track_event(request)
    except Exception as e:
        logger.error(f"Failed to track event: {e}", config_id=request.configId)
        return JSONResponse(status_code=500, content={"error": "Failed to track event"})
    return {"success": True}


@router.post("/performance")
async def track_performance(
    request: PerformanceMetricsRequest,
    service: AnalyticsService = Depends(get_analytics_service),
):
    try:
        await service.track_performance(request)
    except Exception as e:
        logger.error(f"Failed to track performance: {e}", config_id=request.configId)
        return JSONResponse(
            status_code=500, content={"error": "Failed to track performance metrics"}
        )
    return {"success": True}


@router.post("/web-vitals")
async def track_web_vital(
    request: WebVitalRequest,
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Single web-vitals beacon; storage is best effort"""
    stored = await service.record_web_vital(request)
    return {"success": True, "stored": stored}


@router.get("/events")
async def get_events(
    config_id: str = Query(..., alias="configId"),
    event: Optional[str] = None,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    service: AnalyticsService = Depends(get_analytics_service),
):
    events = await service.get_events(
        config_id, event, start_date, end_date, limit=limit, offset=offset
    )
    return {"success": True, "events": events}


@router.get("/performance")
async def get_performance(
    config_id: str = Query(..., alias="configId"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    limit: int = Query(100, ge=1, le=1000),
    service: AnalyticsService = Depends(get_analytics_service),
):
    metrics = await service.get_performance(config_id, start_date, end_date, limit=limit)
    return {"success": True, "metrics": metrics}


@router.get("/summary")
async def get_summary(
    config_id: str = Query(..., alias="configId"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    service: AnalyticsService = Depends(get_analytics_service),
):
    summary = await service.get_summary(config_id, start_date, end_date)
    return {"success": True, "summary": summary}


@router.get("/revenue")
async def get_revenue(
    config_id: str = Query(..., alias="configId"),
    service: AnalyticsService = Depends(get_analytics_service),
):
    revenue = await service.get_revenue(config_id)
    return {"success": True, "revenue": revenue}
