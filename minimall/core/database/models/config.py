"""
SiteConfig persistence models

A config row identifies a storefront; each saved document is a row in
config_versions and the config points at its current version.
"""

import uuid

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
from sqlalchemy.orm import relationship

from .base import Base, TimestampMixin, SerializableMixin


class Config(Base, TimestampMixin, SerializableMixin):
    """A merchant storefront configuration"""

    __tablename__ = "configs"

    id = Column(Text, primary_key=True)
    shop = Column(Text, nullable=False)
    slug = Column(Text, nullable=False)
    current_version_id = Column(Text, nullable=True)

    versions = relationship(
        "ConfigVersion",
        back_populates="config",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("shop_idx", "shop"),
        Index("slug_idx", "slug"),
    )


class ConfigVersion(Base, SerializableMixin):
    """An immutable SiteConfig document snapshot"""

    __tablename__ = "config_versions"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    config_id = Column(
        Text, ForeignKey("configs.id", ondelete="CASCADE"), nullable=False
    )
    version = Column(String(50), nullable=False)
    data = Column(JSON, nullable=False)
    is_published = Column(Boolean, default=False, nullable=False)
    created_by = Column(Text, nullable=False)
    created_at = Column(
        TIMESTAMP(timezone=True), default=func.current_timestamp(), nullable=False
    )
    published_at = Column(TIMESTAMP(timezone=True), nullable=True)

    config = relationship("Config", back_populates="versions")

    __table_args__ = (
        Index("config_id_idx", "config_id"),
        Index("published_idx", "is_published"),
    )
