"""
Geo and privacy compliance lookup endpoints
"""

from typing import Optional

from fastapi import APIRouter, Query, Request

from minimall.core.logging import get_logger
from minimall.domains.compliance import (
    BusinessProfile,
    detect_location,
    generate_privacy_policy_sections,
    get_compliance_requirements,
    get_compliance_status,
    get_data_processing_activities,
    get_market_config,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["geo"])


@router.get("/geo")
async def get_geo(request: Request):
    """Visitor location with its market settings and consent requirements"""
    location = await detect_location(request.headers)
    return {
        "location": location.model_dump(),
        "market": get_market_config(location.countryCode).model_dump(),
        "compliance": get_compliance_requirements(location),
    }


@router.get("/compliance")
async def get_compliance(
    country: str = Query(..., min_length=2, max_length=2),
    region: Optional[str] = None,
    business_size: Optional[str] = Query(None, alias="businessSize", pattern="^(small|medium|large)$"),
):
    profile = BusinessProfile(size=business_size) if business_size else None
    status = get_compliance_status(country.upper(), region, business_profile=profile)
    sections = generate_privacy_policy_sections(status, get_data_processing_activities())
    return {
        "status": status.model_dump(mode="json"),
        "policySections": [s.model_dump() for s in sections],
    }
