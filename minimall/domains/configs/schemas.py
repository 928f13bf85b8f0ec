"""
SiteConfig document models

Field names are camelCase because they mirror the JSON stored in R2 and
consumed by the storefront renderer.
"""

from typing import Any, Dict, List, Literal, Optional, Tuple, Union
from urllib.parse import urlparse

from pydantic import BaseModel, Field, validator

from minimall.shared.helpers import parse_iso_timestamp

LayoutPreset = Literal["grid", "masonry", "slider", "stories"]
SocialLayoutPreset = Literal[
    "instagram-grid",
    "tiktok-vertical",
    "pinterest-masonry",
    "twitter-timeline",
    "stories-horizontal",
]
AnyLayoutPreset = Union[LayoutPreset, SocialLayoutPreset]
AspectRatio = Literal["1:1", "4:5", "9:16", "auto"]
MediaFilter = Literal["all", "photo", "video"]
DeviceType = Literal["mobile", "tablet", "desktop"]


def _check_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid URL: {value}")
    return value


def _check_datetime(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if parse_iso_timestamp(value) is None:
        raise ValueError(f"Invalid datetime: {value}")
    return value


class ResponsiveLayout(BaseModel):
    rows: Optional[int] = Field(None, ge=1, le=6)
    columns: Optional[int] = Field(None, ge=1, le=4)
    gutter: Optional[int] = Field(None, ge=0, le=32)
    outerMargin: Optional[int] = Field(None, ge=0, le=64)


class ResponsiveOverrides(BaseModel):
    sm: Optional[ResponsiveLayout] = None
    md: Optional[ResponsiveLayout] = None
    lg: Optional[ResponsiveLayout] = None


class LayoutConfig(BaseModel):
    """Grid layout of a storefront block"""

    preset: AnyLayoutPreset
    rows: int = Field(..., ge=1, le=6)
    columns: int = Field(..., ge=1, le=4)
    gutter: int = Field(..., ge=0, le=32)
    outerMargin: int = Field(..., ge=0, le=64)
    borderRadius: int = Field(..., ge=0, le=24)
    hoverZoom: bool
    aspect: AspectRatio
    mediaFilter: MediaFilter
    responsive: Optional[ResponsiveOverrides] = None
    blockId: str = Field(..., min_length=1)
    experimentKey: Optional[str] = None


class CustomPixel(BaseModel):
    name: str = Field(..., min_length=1)
    id: str = Field(..., min_length=1)
    type: Literal["script", "pixel", "tag"]


class PixelSettings(BaseModel):
    facebook: Optional[str] = None
    google: Optional[str] = None
    tiktok: Optional[str] = None
    pinterest: Optional[str] = None
    snapchat: Optional[str] = None
    custom: Optional[List[CustomPixel]] = None


class ExperimentTarget(BaseModel):
    blockId: str = Field(..., min_length=1)
    variantPercent: int = Field(..., ge=0, le=100)


class ExperimentConfig(BaseModel):
    """A/B experiment over storefront blocks"""

    key: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    targets: List[ExperimentTarget]
    trafficSplit: int = Field(..., ge=0, le=100)
    status: Literal["draft", "running", "paused", "completed"]
    startDate: Optional[str] = None
    endDate: Optional[str] = None

    @validator("startDate", "endDate")
    def validate_dates(cls, v):
        return _check_datetime(v)


class Category(BaseModel):
    """Node of the storefront tree; cards and types are [kind, props] pairs"""

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    card: Tuple[str, Dict[str, Any]]
    categoryType: Tuple[str, Dict[str, Any]]
    children: Optional[List["Category"]] = None
    order: Optional[int] = None
    visible: Optional[bool] = None
    layout: Optional[LayoutConfig] = None


Category.model_rebuild()


class ThemeSettings(BaseModel):
    primaryColor: str = Field(..., min_length=1)
    backgroundColor: str = Field(..., min_length=1)
    textColor: Optional[str] = None
    accentColor: Optional[str] = None
    fontFamily: Optional[str] = None
    borderRadius: Optional[Literal["none", "sm", "md", "lg", "xl"]] = None


class SeoSettings(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    keywords: Optional[str] = None


class SocialLinks(BaseModel):
    instagram: Optional[str] = None
    twitter: Optional[str] = None
    pinterest: Optional[str] = None
    tiktok: Optional[str] = None
    youtube: Optional[str] = None
    website: Optional[str] = None

    @validator("instagram", "twitter", "pinterest", "tiktok", "youtube", "website")
    def validate_urls(cls, v):
        return _check_url(v)


class CtaButton(BaseModel):
    text: str = Field(..., min_length=1)
    url: str

    @validator("url")
    def validate_url(cls, v):
        return _check_url(v)


class BrandSettings(BaseModel):
    name: str = Field(..., min_length=1)
    subtitle: Optional[str] = None
    logo: Optional[str] = None
    socialLinks: Optional[SocialLinks] = None
    ctaButton: Optional[CtaButton] = None

    @validator("logo")
    def validate_logo(cls, v):
        return _check_url(v)


class TransitionSettings(BaseModel):
    duration: float = Field(..., gt=0)
    easing: str = Field(..., min_length=1)


class AnimationBackdrop(BaseModel):
    opacity: float = Field(..., ge=0, le=1)
    blur: float = Field(..., ge=0)


class ModalAnimations(BaseModel):
    fadeIn: float = Field(..., gt=0)
    slideIn: float = Field(..., gt=0)
    backdrop: AnimationBackdrop


class HoverAnimation(BaseModel):
    scale: float = Field(..., gt=0)
    duration: float = Field(..., gt=0)


class AnimationSettings(BaseModel):
    transitions: TransitionSettings
    modals: ModalAnimations
    hover: HoverAnimation


class ModalBackdrop(BaseModel):
    blur: bool
    opacity: float = Field(..., ge=0, le=1)


class ModalPositioning(BaseModel):
    centered: bool
    offsetY: Optional[float] = None


class ModalBehavior(BaseModel):
    closeOnBackdrop: bool
    closeOnEscape: bool
    preventScroll: bool


class ModalSettings(BaseModel):
    backdrop: ModalBackdrop
    positioning: ModalPositioning
    behavior: ModalBehavior


class Settings(BaseModel):
    """Storefront-wide settings"""

    checkoutLink: str
    shopDomain: str = Field(..., min_length=1)
    theme: ThemeSettings
    seo: Optional[SeoSettings] = None
    brand: Optional[BrandSettings] = None
    animations: Optional[AnimationSettings] = None
    modals: Optional[ModalSettings] = None
    pixels: Optional[PixelSettings] = None
    experiments: Optional[List[ExperimentConfig]] = None

    @validator("checkoutLink")
    def validate_checkout_link(cls, v):
        return _check_url(v)


class SiteConfig(BaseModel):
    id: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)
    categories: List[Category]
    settings: Settings
    createdAt: str
    updatedAt: str

    @validator("createdAt", "updatedAt")
    def validate_timestamps(cls, v):
        return _check_datetime(v)


class UTMParameters(BaseModel):
    source: Optional[str] = None
    medium: Optional[str] = None
    campaign: Optional[str] = None
    term: Optional[str] = None
    content: Optional[str] = None


class RevenueAttribution(BaseModel):
    """Line-item revenue credited to a storefront block; amounts in cents"""

    orderId: str = Field(..., min_length=1)
    lineItemId: str = Field(..., min_length=1)
    shopDomain: str
    configId: str = Field(..., min_length=1)
    blockId: str = Field(..., min_length=1)
    layoutPreset: str = "unknown"
    experimentKey: Optional[str] = None
    productId: str = Field(..., min_length=1)
    variantId: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    price: int = Field(..., ge=0)
    revenue: int = Field(..., ge=0)
    utm: UTMParameters = UTMParameters()
    sessionId: str = "unknown"
    device: str = "unknown"
    timestamp: str


def validate_site_config(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate a SiteConfig document and return it as plain JSON data

    Raises pydantic.ValidationError when the document is malformed.
    """
    return SiteConfig.model_validate(data).model_dump(mode="json", exclude_unset=True)


class IdentitySettings(BaseModel):
    shopDomain: str = Field(..., min_length=1)

    class Config:
        extra = "allow"


class ConfigIdentity(BaseModel):
    """Fields an editor update must carry before it is stored"""

    id: str = Field(..., min_length=1)
    shop: Optional[str] = None
    slug: Optional[str] = None
    settings: IdentitySettings
    createdAt: str
    updatedAt: Optional[str] = None

    class Config:
        extra = "allow"
