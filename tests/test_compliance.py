"""
Tests for geo detection, market settings and privacy compliance rules
"""

from datetime import date

import httpx
import pytest

from minimall.domains.compliance import (
    BusinessProfile,
    detect_location,
    generate_privacy_policy_sections,
    get_applicable_rules,
    get_compliance_requirements,
    get_compliance_status,
    get_data_processing_activities,
    get_market_config,
    is_compliant_for_activity,
)
from minimall.domains.compliance.geo import (
    GeoLocation,
    format_address,
    get_client_ip,
    get_market_info,
    get_phone_format,
    is_ccpa_applicable,
    is_eu_country,
    location_from_cloudflare,
    location_from_vercel,
    lookup_ip_location,
)

TODAY = date(2024, 6, 1)


def mock_http(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestApplicableRules:
    def test_gdpr_for_eu_and_eea(self):
        assert [r.id for r in get_applicable_rules("DE", today=TODAY)] == ["gdpr"]
        assert [r.id for r in get_applicable_rules("NO", today=TODAY)] == ["gdpr"]

    def test_state_scoped_rule(self):
        california = {r.id for r in get_applicable_rules("US", "CA", today=TODAY)}
        texas = {r.id for r in get_applicable_rules("US", "TX", today=TODAY)}

        assert california == {"ccpa", "coppa"}
        assert texas == {"coppa"}

    def test_rules_not_yet_in_force(self):
        assert get_applicable_rules("BR", today=date(2019, 1, 1)) == []
        assert [r.id for r in get_applicable_rules("BR", today=TODAY)] == ["lgpd"]

    def test_no_rules(self):
        assert get_applicable_rules("JP", today=TODAY) == []


class TestComplianceStatus:
    def test_gdpr_status(self):
        status = get_compliance_status("FR", today=TODAY)

        assert status.riskLevel == "high"
        assert status.requirements.explicitConsent is True
        assert status.requirements.minimumAge == 16
        assert len(status.recommendations) == 6

    def test_california_combines_rules(self):
        status = get_compliance_status("US", "CA", today=TODAY)

        requirements = status.requirements
        assert requirements.explicitConsent is True  # from COPPA
        assert requirements.rightToPortability is True  # from CCPA
        assert requirements.rightToRectification is False
        assert requirements.minimumAge == 13
        # CCPA 7.5k and COPPA 43,792 are both below the medium threshold
        assert status.riskLevel == "low"
        assert len(status.recommendations) == len(set(status.recommendations))

    def test_small_business_exemption(self):
        small = get_compliance_status(
            "US", "CA", business_profile=BusinessProfile(size="small"), today=TODAY
        )
        large = get_compliance_status(
            "US", "CA", business_profile=BusinessProfile(size="large"), today=TODAY
        )

        assert small.requirements.rightToPortability is False
        assert large.requirements.rightToPortability is True
        # The exempt rule is still reported as applicable
        assert {r.id for r in small.applicableRules} == {"ccpa", "coppa"}

    def test_singapore_penalty_is_medium_risk(self):
        status = get_compliance_status("SG", today=TODAY)
        assert status.riskLevel == "medium"
        assert status.requirements.minimumAge == 0

    def test_empty_status(self):
        status = get_compliance_status("JP", today=TODAY)

        assert status.applicableRules == []
        assert status.riskLevel == "low"
        assert status.requirements.cookieConsent is False
        assert status.recommendations == []


class TestPolicy:
    def test_activity_consent(self):
        gdpr = get_compliance_status("DE", today=TODAY)
        none = get_compliance_status("JP", today=TODAY)
        activities = {a.id: a for a in get_data_processing_activities()}

        assert not is_compliant_for_activity(gdpr, activities["marketing"], has_consent=False)
        assert is_compliant_for_activity(gdpr, activities["marketing"], has_consent=True)
        assert is_compliant_for_activity(gdpr, activities["security"], has_consent=False)
        assert is_compliant_for_activity(none, activities["marketing"], has_consent=False)

    def test_sections_for_gdpr(self):
        status = get_compliance_status("DE", today=TODAY)

        sections = generate_privacy_policy_sections(status, get_data_processing_activities())

        titles = [s.title for s in sections]
        assert titles == [
            "Information We Collect",
            "How We Use Your Information",
            "Information Sharing and Disclosure",
            "Your Rights and Choices",
            "Cookies and Tracking Technologies",
            "Children's Privacy",
            "Data Retention",
            "Data Security",
            "Contact Us",
        ]
        children = sections[titles.index("Children's Privacy")]
        assert "under 16" in children.content
        assert all(s.required for s in sections)

    def test_sections_without_rules(self):
        status = get_compliance_status("JP", today=TODAY)

        sections = generate_privacy_policy_sections(status, get_data_processing_activities())

        titles = [s.title for s in sections]
        assert "Cookies and Tracking Technologies" not in titles
        assert "Your Rights and Choices" not in titles
        assert titles[0] == "Information We Collect"
        assert titles[-1] == "Contact Us"


class TestLocationHeaders:
    def test_cloudflare_headers(self):
        location = location_from_cloudflare(
            {
                "cf-ipcountry": "de",
                "cf-city": "Berlin",
                "cf-latitude": "52.52",
                "cf-longitude": "bad",
            }
        )

        assert location.countryCode == "DE"
        assert location.country == "Germany"
        assert location.currency == "EUR"
        assert location.timezone == "Europe/Berlin"
        assert location.city == "Berlin"
        assert location.latitude == 52.52
        assert location.longitude is None

    def test_vercel_headers(self):
        location = location_from_vercel(
            {
                "x-vercel-ip-country": "US",
                "x-vercel-ip-country-region": "CA",
                "x-vercel-ip-timezone": "America/Los_Angeles",
            }
        )

        assert location.region == "CA"
        assert location.timezone == "America/Los_Angeles"
        assert location_from_vercel({}) is None

    def test_unknown_market(self):
        assert get_market_info("ZZ") == {
            "country": "Unknown",
            "currency": "USD",
            "language": "en",
            "timezone": "UTC",
            "continent": "UN",
        }

    def test_client_ip(self):
        assert get_client_ip({"x-forwarded-for": "203.0.113.7, 10.0.0.1"}) == "203.0.113.7"
        assert get_client_ip({"cf-connecting-ip": "198.51.100.2", "x-real-ip": "1.1.1.1"}) == (
            "198.51.100.2"
        )
        assert get_client_ip({}) is None


class TestIpLookup:
    @pytest.mark.asyncio
    async def test_lookup_success(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["user_agent"] = request.headers["user-agent"]
            return httpx.Response(
                200,
                json={
                    "country_name": "Japan",
                    "country_code": "JP",
                    "region": "Tokyo",
                    "city": "Tokyo",
                    "timezone": "Asia/Tokyo",
                    "currency": "JPY",
                    "languages": "ja,en",
                    "continent_code": "AS",
                    "latitude": 35.68,
                    "longitude": 139.69,
                },
            )

        location = await lookup_ip_location("203.0.113.7", mock_http(handler))

        assert seen["url"] == "https://ipapi.co/203.0.113.7/json/"
        assert seen["user_agent"] == "MINIMALL/1.0"
        assert location.countryCode == "JP"
        assert location.language == "ja"

    @pytest.mark.asyncio
    async def test_lookup_failures_return_none(self):
        error_body = mock_http(lambda r: httpx.Response(200, json={"error": True, "reason": "RateLimited"}))
        server_error = mock_http(lambda r: httpx.Response(503))

        def raise_connect(request):
            raise httpx.ConnectError("unreachable", request=request)

        assert await lookup_ip_location("1.2.3.4", error_body) is None
        assert await lookup_ip_location("1.2.3.4", server_error) is None
        assert await lookup_ip_location("1.2.3.4", mock_http(raise_connect)) is None

    @pytest.mark.asyncio
    async def test_non_json_lookup_falls_back_to_default(self):
        html = mock_http(lambda r: httpx.Response(200, text="<html>Too many requests</html>"))
        listing = mock_http(lambda r: httpx.Response(200, json=["JP"]))

        assert await lookup_ip_location("1.2.3.4", html) is None
        assert await lookup_ip_location("1.2.3.4", listing) is None

        fallback = await detect_location({"x-forwarded-for": "1.2.3.4"}, html)
        assert fallback.countryCode == "US"


    @pytest.mark.asyncio
    async def test_detect_location_order(self):
        def fail(request):
            raise AssertionError("IP lookup should not run")

        from_headers = await detect_location({"cf-ipcountry": "GB"}, mock_http(fail))
        assert from_headers.countryCode == "GB"

        fallback = await detect_location({}, mock_http(lambda r: httpx.Response(500)))
        assert fallback.countryCode == "US"
        assert fallback.timezone == "America/New_York"


class TestMarkets:
    def test_market_config(self):
        assert get_market_config("de").taxRate == 0.19
        fallback = get_market_config("ZZ")
        assert fallback.currency == "USD"
        assert fallback.paymentMethods == ["card"]

    def test_compliance_requirements(self):
        berlin = GeoLocation(
            country="Germany",
            countryCode="DE",
            timezone="Europe/Berlin",
            currency="EUR",
            language="de",
            continent="EU",
        )
        california = berlin.model_copy(update={"countryCode": "US", "region": "California"})

        assert get_compliance_requirements(berlin) == {
            "gdpr": True,
            "ccpa": False,
            "cookieConsent": True,
            "ageVerification": True,
        }
        assert is_ccpa_applicable(california)
        assert get_compliance_requirements(california)["cookieConsent"] is True
        assert is_eu_country("se")
        assert not is_eu_country("GB")

    def test_format_address(self):
        address = {
            "street": "1 Main St",
            "city": "Springfield",
            "state": "IL",
            "postalCode": "62701",
            "country": "USA",
        }

        assert format_address(address, "US") == "1 Main St\nSpringfield, IL 62701\nUSA"
        assert format_address(address, "DE") == "1 Main St\n62701 Springfield\nUSA"
        assert format_address(address, "JP") == "USA\n62701\nSpringfield\n1 Main St"
        assert format_address(address, "BR") == "1 Main St\nSpringfield\n62701\nUSA"

    def test_phone_format_is_a_copy(self):
        fmt = get_phone_format("xx")
        fmt["maxLength"] = 1

        assert get_phone_format("xx")["maxLength"] == 16
        assert get_phone_format("us")["placeholder"] == "+1 (555) 123-4567"
