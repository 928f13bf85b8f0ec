"""
Analytics, performance and revenue attribution tables
"""

from sqlalchemy import Column, Index, Integer, JSON, String, Text, TIMESTAMP, func

from .base import Base, IDMixin, SerializableMixin


class AnalyticsEvent(Base, IDMixin, SerializableMixin):
    """Storefront interaction event"""

    __tablename__ = "analytics_events"

    event = Column(String(100), nullable=False)
    # Public clients may post for unknown configs, so no foreign key here
    config_id = Column(Text, nullable=False)
    user_id = Column(Text, nullable=True)
    session_id = Column(Text, nullable=False)
    properties = Column(JSON, default=dict, nullable=False)
    user_agent = Column(Text, nullable=True)
    referrer = Column(Text, nullable=True)
    utm_source = Column(String(100), nullable=True)
    utm_medium = Column(String(100), nullable=True)
    utm_campaign = Column(String(100), nullable=True)
    utm_term = Column(String(100), nullable=True)
    utm_content = Column(String(100), nullable=True)
    timestamp = Column(
        TIMESTAMP(timezone=True), default=func.current_timestamp(), nullable=False
    )

    __table_args__ = (
        Index("analytics_config_id_idx", "config_id"),
        Index("analytics_event_idx", "event"),
        Index("analytics_timestamp_idx", "timestamp"),
        Index("analytics_session_idx", "session_id"),
    )


class PerformanceMetric(Base, SerializableMixin):
    """Core web vitals sample; cls is stored multiplied by 1000"""

    __tablename__ = "performance_metrics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    config_id = Column(Text, nullable=False)
    lcp = Column(Integer, nullable=True)
    fid = Column(Integer, nullable=True)
    cls = Column(Integer, nullable=True)
    ttfb = Column(Integer, nullable=True)
    load_time = Column(Integer, nullable=True)
    user_agent = Column(Text, nullable=True)
    connection = Column(String(50), nullable=True)
    viewport_width = Column(Integer, nullable=True)
    viewport_height = Column(Integer, nullable=True)
    timestamp = Column(
        TIMESTAMP(timezone=True), default=func.current_timestamp(), nullable=False
    )

    __table_args__ = (
        Index("perf_config_id_idx", "config_id"),
        Index("perf_timestamp_idx", "timestamp"),
    )


class RevenueAttribution(Base, IDMixin, SerializableMixin):
    """Order line item revenue credited to a storefront block"""

    __tablename__ = "revenue_attributions"

    order_id = Column(Text, nullable=False)
    line_item_id = Column(Text, nullable=False)
    shop_domain = Column(Text, nullable=False)
    config_id = Column(Text, nullable=False)
    block_id = Column(Text, nullable=False)
    layout_preset = Column(String(50), nullable=False, default="unknown")
    experiment_key = Column(Text, nullable=True)
    product_id = Column(Text, nullable=False)
    variant_id = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False)
    # Amounts in cents
    price = Column(Integer, nullable=False)
    revenue = Column(Integer, nullable=False)
    utm_source = Column(String(100), nullable=True)
    utm_medium = Column(String(100), nullable=True)
    utm_campaign = Column(String(100), nullable=True)
    utm_term = Column(String(100), nullable=True)
    utm_content = Column(String(100), nullable=True)
    session_id = Column(Text, nullable=False, default="unknown")
    device = Column(String(20), nullable=False, default="unknown")
    timestamp = Column(TIMESTAMP(timezone=True), nullable=False)
    created_at = Column(
        TIMESTAMP(timezone=True), default=func.current_timestamp(), nullable=False
    )

    __table_args__ = (
        Index("revenue_config_id_idx", "config_id"),
        Index("revenue_order_id_idx", "order_id"),
        Index("revenue_shop_domain_idx", "shop_domain"),
    )
