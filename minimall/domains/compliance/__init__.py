"""
Privacy regulation rules and geo/market utilities
"""

from .geo import (
    GeoLocation,
    MarketConfig,
    detect_location,
    format_address,
    get_client_ip,
    get_compliance_requirements,
    get_default_location,
    get_market_config,
    get_market_info,
    get_phone_format,
    is_ccpa_applicable,
    is_eu_country,
)
from .rules import (
    BusinessProfile,
    ComplianceStatus,
    generate_privacy_policy_sections,
    get_applicable_rules,
    get_compliance_rules,
    get_compliance_status,
    get_data_processing_activities,
    is_compliant_for_activity,
)

__all__ = [
    "GeoLocation",
    "MarketConfig",
    "detect_location",
    "format_address",
    "get_client_ip",
    "get_compliance_requirements",
    "get_default_location",
    "get_market_config",
    "get_market_info",
    "get_phone_format",
    "is_ccpa_applicable",
    "is_eu_country",
    "BusinessProfile",
    "ComplianceStatus",
    "generate_privacy_policy_sections",
    "get_applicable_rules",
    "get_compliance_rules",
    "get_compliance_status",
    "get_data_processing_activities",
    "is_compliant_for_activity",
]
