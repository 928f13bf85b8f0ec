"""
Analytics domain
"""

from .schemas import (
    PerformanceMetricsRequest,
    PublicEventRequest,
    TrackEventRequest,
    WebVitalRequest,
)
from .service import AnalyticsService, detect_device

__all__ = [
    "PerformanceMetricsRequest",
    "PublicEventRequest",
    "TrackEventRequest",
    "WebVitalRequest",
    "AnalyticsService",
    "detect_device",
]
