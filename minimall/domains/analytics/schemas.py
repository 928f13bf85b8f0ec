"""
Request models for analytics ingestion
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


class UTMData(BaseModel):
    source: Optional[str] = None
    medium: Optional[str] = None
    campaign: Optional[str] = None
    term: Optional[str] = None
    content: Optional[str] = None


class Viewport(BaseModel):
    width: int
    height: int


class TrackEventRequest(BaseModel):
    """Admin-side event tracking with UTM as a nested object"""

    event: str
    configId: str
    userId: Optional[str] = None
    sessionId: str
    properties: Dict[str, Any] = Field(default_factory=dict)
    userAgent: Optional[str] = None
    referrer: Optional[str] = None
    utm: Optional[UTMData] = None


class PerformanceMetricsRequest(BaseModel):
    configId: str
    lcp: Optional[float] = None
    fid: Optional[float] = None
    cls: Optional[float] = None
    ttfb: Optional[float] = None
    loadTime: Optional[float] = None
    userAgent: Optional[str] = None
    connection: Optional[str] = None
    viewport: Optional[Viewport] = None


class PublicEventRequest(BaseModel):
    """Storefront beacon; UTM fields arrive flattened"""

    event: str
    configId: Optional[str] = None
    userId: Optional[str] = None
    sessionId: str
    properties: Dict[str, Any] = Field(default_factory=dict)
    userAgent: Optional[str] = None
    referrer: Optional[str] = None
    utmSource: Optional[str] = None
    utmMedium: Optional[str] = None
    utmCampaign: Optional[str] = None
    utmTerm: Optional[str] = None
    utmContent: Optional[str] = None
    timestamp: Optional[str] = None


class WebVitalRequest(BaseModel):
    """A single web-vitals measurement reported by the storefront"""

    configId: Optional[str] = None
    metric: Literal["LCP", "FID", "CLS", "FCP", "TTFB"]
    value: float
    rating: Literal["good", "needs-improvement", "poor"]
    delta: float
    id: str
    navigationType: str
    timestamp: str
    url: str
    userAgent: Optional[str] = None
    connection: Optional[str] = None
    viewport: Optional[Viewport] = None
