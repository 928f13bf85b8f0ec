"""
Visitor location detection and per-market settings

Location is read from edge provider headers first (Cloudflare, then Vercel)
and only falls back to an ipapi.co lookup when neither is present.
"""

from typing import Any, Dict, List, Mapping, Optional

import httpx
from pydantic import BaseModel

from minimall.core.logging import get_logger

logger = get_logger(__name__)

IPAPI_URL = "https://ipapi.co"
IPAPI_USER_AGENT = "MINIMALL/1.0"

CLIENT_IP_HEADERS = [
    "cf-connecting-ip",
    "x-real-ip",
    "x-forwarded-for",
    "x-client-ip",
    "x-forwarded",
    "forwarded-for",
    "forwarded",
]

EU_COUNTRIES = [
    "AT", "BE", "BG", "HR", "CY", "CZ", "DK", "EE", "FI", "FR",
    "DE", "GR", "HU", "IE", "IT", "LV", "LT", "LU", "MT", "NL",
    "PL", "PT", "RO", "SK", "SI", "ES", "SE",
]  # fmt: skip

AGE_VERIFICATION_COUNTRIES = ["DE", "FR", "IT"]


class GeoLocation(BaseModel):
    country: str
    countryCode: str
    region: Optional[str] = None
    city: Optional[str] = None
    timezone: str
    currency: str
    language: str
    continent: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class MarketConfig(BaseModel):
    countryCode: str
    currency: str
    language: str
    timezone: str
    taxRate: Optional[float] = None
    shippingZone: Optional[str] = None
    paymentMethods: List[str]
    compliance: Dict[str, bool]


# code: (country, currency, language, timezone, continent)
MARKET_INFO = {
    "US": ("United States", "USD", "en", "America/New_York", "NA"),
    "CA": ("Canada", "CAD", "en", "America/Toronto", "NA"),
    "MX": ("Mexico", "MXN", "es", "America/Mexico_City", "NA"),
    "GB": ("United Kingdom", "GBP", "en", "Europe/London", "EU"),
    "DE": ("Germany", "EUR", "de", "Europe/Berlin", "EU"),
    "FR": ("France", "EUR", "fr", "Europe/Paris", "EU"),
    "IT": ("Italy", "EUR", "it", "Europe/Rome", "EU"),
    "ES": ("Spain", "EUR", "es", "Europe/Madrid", "EU"),
    "NL": ("Netherlands", "EUR", "nl", "Europe/Amsterdam", "EU"),
    "JP": ("Japan", "JPY", "ja", "Asia/Tokyo", "AS"),
    "CN": ("China", "CNY", "zh", "Asia/Shanghai", "AS"),
    "IN": ("India", "INR", "en", "Asia/Kolkata", "AS"),
    "AU": ("Australia", "AUD", "en", "Australia/Sydney", "OC"),
    "SG": ("Singapore", "SGD", "en", "Asia/Singapore", "AS"),
    "HK": ("Hong Kong", "HKD", "en", "Asia/Hong_Kong", "AS"),
    "BR": ("Brazil", "BRL", "pt", "America/Sao_Paulo", "SA"),
    "ZA": ("South Africa", "ZAR", "en", "Africa/Johannesburg", "AF"),
}
UNKNOWN_MARKET = ("Unknown", "USD", "en", "UTC", "UN")

MARKET_CONFIGS = {
    "US": MarketConfig(
        countryCode="US",
        currency="USD",
        language="en",
        timezone="America/New_York",
        taxRate=0.08,
        shippingZone="domestic",
        paymentMethods=["card", "paypal", "apple-pay", "google-pay"],
        compliance={"ccpa": True, "cookieConsent": True},
    ),
    "GB": MarketConfig(
        countryCode="GB",
        currency="GBP",
        language="en",
        timezone="Europe/London",
        taxRate=0.20,
        shippingZone="eu",
        paymentMethods=["card", "paypal", "apple-pay"],
        compliance={"gdpr": True, "cookieConsent": True},
    ),
    "DE": MarketConfig(
        countryCode="DE",
        currency="EUR",
        language="de",
        timezone="Europe/Berlin",
        taxRate=0.19,
        shippingZone="eu",
        paymentMethods=["card", "paypal", "sofort"],
        compliance={"gdpr": True, "ageVerification": True, "cookieConsent": True},
    ),
    "JP": MarketConfig(
        countryCode="JP",
        currency="JPY",
        language="ja",
        timezone="Asia/Tokyo",
        taxRate=0.10,
        shippingZone="asia",
        paymentMethods=["card", "konbini", "bank-transfer"],
        compliance={"cookieConsent": False},
    ),
}

PHONE_FORMATS = {
    "US": {"pattern": "+1 (###) ###-####", "placeholder": "+1 (555) 123-4567", "maxLength": 14},
    "GB": {"pattern": "+44 #### ######", "placeholder": "+44 1234 567890", "maxLength": 14},
    "DE": {"pattern": "+49 ### ########", "placeholder": "+49 123 45678901", "maxLength": 15},
    "JP": {"pattern": "+81 ##-####-####", "placeholder": "+81 90-1234-5678", "maxLength": 13},
    "FR": {"pattern": "+33 # ## ## ## ##", "placeholder": "+33 1 23 45 67 89", "maxLength": 14},
}
DEFAULT_PHONE_FORMAT = {
    "pattern": "+### ### ### ####",
    "placeholder": "+123 456 789 0123",
    "maxLength": 16,
}


def get_default_location() -> GeoLocation:
    return GeoLocation(
        country="United States",
        countryCode="US",
        timezone="America/New_York",
        currency="USD",
        language="en",
        continent="NA",
    )


def get_market_info(country_code: str) -> Dict[str, str]:
    country, currency, language, timezone, continent = MARKET_INFO.get(
        country_code.upper(), UNKNOWN_MARKET
    )
    return {
        "country": country,
        "currency": currency,
        "language": language,
        "timezone": timezone,
        "continent": continent,
    }


def _to_float(value: Optional[str]) -> Optional[float]:
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _location_from_headers(
    headers: Mapping[str, str],
    country_header: str,
    region_header: str,
    city_header: str,
    timezone_header: str,
    latitude_header: str,
    longitude_header: str,
) -> Optional[GeoLocation]:
    country_code = headers.get(country_header)
    if not country_code:
        return None
    market = get_market_info(country_code)
    return GeoLocation(
        country=market["country"],
        countryCode=country_code.upper(),
        region=headers.get(region_header) or None,
        city=headers.get(city_header) or None,
        timezone=headers.get(timezone_header) or market["timezone"],
        currency=market["currency"],
        language=market["language"],
        continent=market["continent"],
        latitude=_to_float(headers.get(latitude_header)),
        longitude=_to_float(headers.get(longitude_header)),
    )


def location_from_cloudflare(headers: Mapping[str, str]) -> Optional[GeoLocation]:
    return _location_from_headers(
        headers,
        "cf-ipcountry",
        "cf-region",
        "cf-city",
        "cf-timezone",
        "cf-latitude",
        "cf-longitude",
    )


def location_from_vercel(headers: Mapping[str, str]) -> Optional[GeoLocation]:
    return _location_from_headers(
        headers,
        "x-vercel-ip-country",
        "x-vercel-ip-country-region",
        "x-vercel-ip-city",
        "x-vercel-ip-timezone",
        "x-vercel-ip-latitude",
        "x-vercel-ip-longitude",
    )


def get_client_ip(headers: Mapping[str, str]) -> Optional[str]:
    """First address from the first client IP header present"""
    for name in CLIENT_IP_HEADERS:
        value = headers.get(name)
        if value:
            return value.split(",")[0].strip()
    return None


def _location_from_ipapi(data: Dict[str, Any]) -> GeoLocation:
    languages = data.get("languages") or "en"
    return GeoLocation(
        country=data.get("country_name") or "Unknown",
        countryCode=data.get("country_code") or "US",
        region=data.get("region"),
        city=data.get("city"),
        timezone=data.get("timezone") or "UTC",
        currency=data.get("currency") or "USD",
        language=languages.split(",")[0],
        continent=data.get("continent_code") or "NA",
        latitude=data.get("latitude"),
        longitude=data.get("longitude"),
    )


async def lookup_ip_location(
    ip: Optional[str] = None, http_client: Optional[httpx.AsyncClient] = None
) -> Optional[GeoLocation]:
    """Resolve a location through ipapi.co; None when the lookup fails"""
    url = f"{IPAPI_URL}/{ip}/json/" if ip else f"{IPAPI_URL}/json/"
    headers = {"User-Agent": IPAPI_USER_AGENT}
    try:
        if http_client is not None:
            response = await http_client.get(url, headers=headers)
        else:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(30.0, connect=10.0)
            ) as client:
                response = await client.get(url, headers=headers)
    except httpx.HTTPError as e:
        logger.warning(f"IP geolocation request failed: {e}")
        return None

    if response.status_code >= 400:
        logger.warning(f"IP geolocation failed with status {response.status_code}")
        return None

    try:
        data = response.json()
    except ValueError as e:
        logger.warning(f"IP geolocation returned invalid JSON: {e}")
        return None
    if not isinstance(data, dict):
        logger.warning("IP geolocation returned an unexpected payload")
        return None
    if data.get("error"):
        logger.warning(f"IP geolocation error: {data.get('reason', 'unknown')}")
        return None
    return _location_from_ipapi(data)


async def detect_location(
    headers: Mapping[str, str], http_client: Optional[httpx.AsyncClient] = None
) -> GeoLocation:
    """Edge headers, then an IP lookup, then the US default"""
    location = location_from_cloudflare(headers) or location_from_vercel(headers)
    if location:
        return location

    location = await lookup_ip_location(get_client_ip(headers), http_client)
    if location:
        return location

    logger.debug("Falling back to default location")
    return get_default_location()


def get_market_config(country_code: str) -> MarketConfig:
    config = MARKET_CONFIGS.get(country_code.upper())
    if config:
        return config
    return MarketConfig(
        countryCode=country_code,
        currency="USD",
        language="en",
        timezone="UTC",
        paymentMethods=["card"],
        compliance={},
    )


def is_eu_country(country_code: str) -> bool:
    return country_code.upper() in EU_COUNTRIES


def is_ccpa_applicable(location: GeoLocation) -> bool:
    return location.countryCode == "US" and location.region in ("CA", "California")


def get_compliance_requirements(location: GeoLocation) -> Dict[str, bool]:
    is_eu = is_eu_country(location.countryCode)
    ccpa = is_ccpa_applicable(location)
    return {
        "gdpr": is_eu,
        "ccpa": ccpa,
        "cookieConsent": is_eu or ccpa,
        "ageVerification": is_eu and location.countryCode in AGE_VERIFICATION_COUNTRIES,
    }


def format_address(address: Mapping[str, str], country_code: str) -> str:
    street = address.get("street", "")
    city = address.get("city", "")
    state = address.get("state", "")
    postal = address.get("postalCode", "")
    country = address.get("country", "")

    code = country_code.upper()
    if code in ("US", "CA"):
        return f"{street}\n{city}, {state} {postal}\n{country}"
    if code in ("DE", "FR", "IT"):
        return f"{street}\n{postal} {city}\n{country}"
    if code == "JP":
        return f"{country}\n{postal}\n{city}\n{street}"
    return f"{street}\n{city}\n{postal}\n{country}"


def get_phone_format(country_code: str) -> Dict[str, Any]:
    return dict(PHONE_FORMATS.get(country_code.upper(), DEFAULT_PHONE_FORMAT))
