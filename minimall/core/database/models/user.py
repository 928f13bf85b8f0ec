"""
Merchant admin users and installed shops
"""

from sqlalchemy import Boolean, Column, Index, JSON, String, Text

from .base import BaseModel


class User(BaseModel):
    """Admin user created during the OAuth callback"""

    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    shop_domain = Column(Text, nullable=False)
    role = Column(String(50), default="editor", nullable=False)
    permissions = Column(JSON, default=list, nullable=False)

    __table_args__ = (
        Index("email_idx", "email"),
        Index("shop_domain_idx", "shop_domain"),
    )


class Shop(BaseModel):
    """Installed Shopify shop with its offline access token"""

    __tablename__ = "shops"

    shop_domain = Column(String(255), unique=True, nullable=False, index=True)
    access_token = Column(String(1000), nullable=False)
    scope = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)


class FeatureFlag(BaseModel):
    """Per-shop feature toggle"""

    __tablename__ = "feature_flags"

    shop_domain = Column(Text, nullable=False)
    flag_name = Column(String(100), nullable=False)
    enabled = Column(Boolean, default=False, nullable=False)
    value = Column(JSON, nullable=True)

    __table_args__ = (
        Index("feature_flag_shop_domain_idx", "shop_domain"),
        Index("feature_flag_name_idx", "flag_name"),
    )
