"""
Webhook delivery log and cart session tables
"""

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    JSON,
    String,
    Text,
    TIMESTAMP,
    func,
)

from .base import Base, IDMixin, TimestampMixin, SerializableMixin


class Webhook(Base, IDMixin, SerializableMixin):
    """Received Shopify webhook, marked processed once handled"""

    __tablename__ = "webhooks"

    shop_domain = Column(Text, nullable=False)
    event = Column(String(100), nullable=False)
    topic = Column(String(100), nullable=False)
    payload = Column(JSON, nullable=False)
    processed = Column(Boolean, default=False, nullable=False)
    processed_at = Column(TIMESTAMP(timezone=True), nullable=True)
    created_at = Column(
        TIMESTAMP(timezone=True), default=func.current_timestamp(), nullable=False
    )

    __table_args__ = (
        Index("webhook_shop_domain_idx", "shop_domain"),
        Index("webhook_event_idx", "event"),
        Index("webhook_processed_idx", "processed"),
    )


class CartSession(Base, TimestampMixin, SerializableMixin):
    """Cart persistence for a storefront visitor"""

    __tablename__ = "sessions"

    id = Column(Text, primary_key=True)
    config_id = Column(
        Text, ForeignKey("configs.id", ondelete="CASCADE"), nullable=True
    )
    cart_data = Column(JSON, nullable=True)
    expires_at = Column(TIMESTAMP(timezone=True), nullable=False)

    __table_args__ = (
        Index("session_config_id_idx", "config_id"),
        Index("session_expires_at_idx", "expires_at"),
    )
