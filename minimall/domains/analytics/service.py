"""
Analytics ingestion and reporting
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from minimall.core.logging import get_logger
from minimall.repository.AnalyticsRepository import AnalyticsRepository
from minimall.repository.RevenueAttributionRepository import (
    RevenueAttributionRepository,
)
from minimall.shared.helpers import now_utc, parse_iso_timestamp
from .schemas import (
    PerformanceMetricsRequest,
    PublicEventRequest,
    TrackEventRequest,
    WebVitalRequest,
)

logger = get_logger(__name__)

UNKNOWN_CONFIG_ID = "unknown"
CLS_SCALE = 1000


def detect_device(user_agent: Optional[str]) -> str:
    """mobile, tablet or desktop from a user agent string"""
    if not user_agent:
        return "desktop"
    ua = user_agent.lower()
    if "mobile" in ua or "android" in ua or "iphone" in ua:
        return "mobile"
    if "tablet" in ua or "ipad" in ua:
        return "tablet"
    return "desktop"


def _round(value: Optional[float]) -> Optional[int]:
    if value is None:
        return None
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def scale_cls(value: Optional[float]) -> Optional[int]:
    return _round(value * CLS_SCALE) if value is not None else None


class AnalyticsService:
    def __init__(
        self,
        repository: Optional[AnalyticsRepository] = None,
        revenue_repository: Optional[RevenueAttributionRepository] = None,
    ):
        self.repository = repository or AnalyticsRepository()
        self.revenue_repository = revenue_repository or RevenueAttributionRepository()

    async def track_event(self, request: TrackEventRequest) -> None:
        utm = request.utm
        await self.repository.add_event(
            event=request.event,
            config_id=request.configId,
            user_id=request.userId,
            session_id=request.sessionId,
            properties=request.properties,
            user_agent=request.userAgent,
            referrer=request.referrer,
            utm_source=utm.source if utm else None,
            utm_medium=utm.medium if utm else None,
            utm_campaign=utm.campaign if utm else None,
            utm_term=utm.term if utm else None,
            utm_content=utm.content if utm else None,
            timestamp=now_utc(),
        )

    async def track_performance(self, request: PerformanceMetricsRequest) -> None:
        await self.repository.add_performance_metric(
            config_id=request.configId,
            lcp=_round(request.lcp),
            fid=_round(request.fid),
            cls=scale_cls(request.cls),
            ttfb=_round(request.ttfb),
            load_time=_round(request.loadTime),
            user_agent=request.userAgent,
            connection=request.connection,
            viewport_width=request.viewport.width if request.viewport else None,
            viewport_height=request.viewport.height if request.viewport else None,
            timestamp=now_utc(),
        )

    async def record_public_event(
        self,
        request: PublicEventRequest,
        header_user_agent: Optional[str] = None,
        header_referrer: Optional[str] = None,
    ) -> bool:
        """Store a storefront event; storage failures are logged and reported as False"""
        logger.info(
            f"Analytics Event: {request.event}",
            config_id=request.configId,
            session_id=request.sessionId,
        )
        user_agent = request.userAgent or header_user_agent
        properties = dict(request.properties)
        properties.setdefault("device", detect_device(header_user_agent))

        timestamp = None
        if request.timestamp:
            timestamp = parse_iso_timestamp(request.timestamp)

        try:
            await self.repository.add_event(
                event=request.event,
                config_id=request.configId or UNKNOWN_CONFIG_ID,
                user_id=request.userId,
                session_id=request.sessionId,
                properties=properties,
                user_agent=user_agent,
                referrer=request.referrer or header_referrer,
                utm_source=request.utmSource,
                utm_medium=request.utmMedium,
                utm_campaign=request.utmCampaign,
                utm_term=request.utmTerm,
                utm_content=request.utmContent,
                timestamp=timestamp or now_utc(),
            )
        except Exception as e:
            logger.warning(f"Failed to save analytics event to database: {e}")
            return False

        if request.event.startswith(("rum_javascript_error", "rum_unhandled_rejection")):
            logger.warning(f"RUM Error: {request.event}", config_id=request.configId)
        return True

    async def record_web_vital(self, request: WebVitalRequest) -> bool:
        """Store one web vital in its column; FCP shares the ttfb column"""
        logger.debug(
            f"Performance Metric: {request.metric} = {request.value}ms ({request.rating})",
            config_id=request.configId,
            url=request.url,
        )
        if request.rating == "poor":
            logger.warning(
                f"Poor Web Vital: {request.metric} = {request.value}ms on {request.configId or 'unknown'}"
            )
        if not request.configId:
            return False

        values: Dict[str, Any] = {"lcp": None, "fid": None, "cls": None, "ttfb": None}
        if request.metric == "LCP":
            values["lcp"] = _round(request.value)
        elif request.metric == "FID":
            values["fid"] = _round(request.value)
        elif request.metric == "CLS":
            values["cls"] = scale_cls(request.value)
        else:
            values["ttfb"] = _round(request.value)

        try:
            await self.repository.add_performance_metric(
                config_id=request.configId,
                timestamp=parse_iso_timestamp(request.timestamp) or now_utc(),
                user_agent=request.userAgent,
                connection=request.connection,
                viewport_width=request.viewport.width if request.viewport else None,
                viewport_height=request.viewport.height if request.viewport else None,
                **values,
            )
        except Exception as e:
            logger.warning(f"Failed to save performance metric to database: {e}")
            return False
        return True

    async def get_events(
        self,
        config_id: str,
        event: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        events = await self.repository.get_events(
            config_id, event, start_date, end_date, limit=limit, offset=offset
        )
        return [e.to_dict() for e in events]

    async def get_performance(
        self,
        config_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        metrics = await self.repository.get_performance(
            config_id, start_date, end_date, limit=limit
        )
        return [m.to_dict() for m in metrics]

    async def get_summary(
        self,
        config_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        summary = await self.repository.get_summary(config_id, start_date, end_date)
        avg_cls = summary["avg_cls_scaled"]
        return {
            "totalEvents": summary["total_events"],
            "uniqueUsers": summary["unique_users"],
            "avgLCP": summary["avg_lcp"],
            "avgFID": summary["avg_fid"],
            "avgCLS": avg_cls / CLS_SCALE if avg_cls is not None else None,
            "topEvents": summary["top_events"],
        }

    async def get_revenue(self, config_id: str) -> Dict[str, Any]:
        """Revenue in cents grouped by block and by layout preset"""
        return {
            "configId": config_id,
            "totalRevenue": await self.revenue_repository.total_revenue(config_id),
            "byBlock": await self.revenue_repository.revenue_by_block(config_id),
            "byLayoutPreset": await self.revenue_repository.revenue_by_layout_preset(
                config_id
            ),
        }
