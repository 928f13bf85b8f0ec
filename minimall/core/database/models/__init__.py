"""
SQLAlchemy models for MINIMALL
"""

from .base import Base, BaseModel, IDMixin, TimestampMixin
from .config import Config, ConfigVersion
from .user import User, Shop, FeatureFlag
from .analytics import AnalyticsEvent, PerformanceMetric, RevenueAttribution
from .webhook import Webhook, CartSession

__all__ = [
    "Base",
    "BaseModel",
    "IDMixin",
    "TimestampMixin",
    "Config",
    "ConfigVersion",
    "User",
    "Shop",
    "FeatureFlag",
    "AnalyticsEvent",
    "PerformanceMetric",
    "RevenueAttribution",
    "Webhook",
    "CartSession",
]
