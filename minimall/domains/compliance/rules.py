"""
Privacy regulation rules and consolidated compliance status by location

Rules list the country codes they cover; state-scoped rules use
`COUNTRY-REGION` codes such as `US-CA`.
"""

from datetime import date
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel

RiskLevel = Literal["low", "medium", "high"]
BusinessSize = Literal["small", "medium", "large"]


class Penalty(BaseModel):
    currency: str
    maxAmount: int


class RuleRequirements(BaseModel):
    cookieConsent: bool
    explicitConsent: bool
    ageVerification: bool
    rightToDelete: bool
    rightToPortability: bool
    rightToRectification: bool
    dataProcessingDisclosure: bool
    consentWithdrawal: bool
    minimumAge: Optional[int] = None
    penalties: Optional[Penalty] = None


class RuleExemptions(BaseModel):
    businessSize: Optional[BusinessSize] = None
    dataTypes: Optional[List[str]] = None
    processingPurposes: Optional[List[str]] = None


class ComplianceRule(BaseModel):
    id: str
    name: str
    description: str
    regions: List[str]
    requirements: RuleRequirements
    exemptions: Optional[RuleExemptions] = None
    validFrom: date
    validUntil: Optional[date] = None


class ConsolidatedRequirements(BaseModel):
    cookieConsent: bool = False
    explicitConsent: bool = False
    ageVerification: bool = False
    rightToDelete: bool = False
    rightToPortability: bool = False
    rightToRectification: bool = False
    dataProcessingDisclosure: bool = False
    consentWithdrawal: bool = False
    minimumAge: int = 0


class ComplianceStatus(BaseModel):
    applicableRules: List[ComplianceRule]
    requirements: ConsolidatedRequirements
    riskLevel: RiskLevel
    recommendations: List[str]


class BusinessProfile(BaseModel):
    size: BusinessSize
    revenue: float = 0
    customerCount: int = 0


class DataProcessingActivity(BaseModel):
    id: str
    purpose: str
    dataTypes: List[str]
    retentionPeriod: int
    thirdPartySharing: bool
    crossBorderTransfer: bool
    legalBasis: str
    consentRequired: bool


class PolicySection(BaseModel):
    title: str
    content: str
    required: bool


GDPR_REGIONS = [
    "AT", "BE", "BG", "HR", "CY", "CZ", "DK", "EE", "FI", "FR",
    "DE", "GR", "HU", "IE", "IT", "LV", "LT", "LU", "MT", "NL",
    "PL", "PT", "RO", "SK", "SI", "ES", "SE", "IS", "LI", "NO",
]  # fmt: skip


COMPLIANCE_RULES: List[ComplianceRule] = [
    ComplianceRule(
        id="gdpr",
        name="General Data Protection Regulation",
        description=(
            "EU regulation on data protection and privacy for individuals within "
            "the European Union and European Economic Area"
        ),
        regions=GDPR_REGIONS,
        requirements=RuleRequirements(
            cookieConsent=True,
            explicitConsent=True,
            ageVerification=True,
            rightToDelete=True,
            rightToPortability=True,
            rightToRectification=True,
            dataProcessingDisclosure=True,
            consentWithdrawal=True,
            minimumAge=16,
            penalties=Penalty(currency="EUR", maxAmount=20_000_000),
        ),
        validFrom=date(2018, 5, 25),
    ),
    ComplianceRule(
        id="ccpa",
        name="California Consumer Privacy Act",
        description=(
            "California state statute intended to enhance privacy rights and "
            "consumer protection for residents of California"
        ),
        regions=["US-CA"],
        requirements=RuleRequirements(
            cookieConsent=True,
            explicitConsent=False,
            ageVerification=True,
            rightToDelete=True,
            rightToPortability=True,
            rightToRectification=False,
            dataProcessingDisclosure=True,
            consentWithdrawal=True,
            minimumAge=13,
            penalties=Penalty(currency="USD", maxAmount=7_500),
        ),
        # Applies to businesses with revenue over $25M or 50k+ consumers
        exemptions=RuleExemptions(businessSize="small"),
        validFrom=date(2020, 1, 1),
    ),
    ComplianceRule(
        id="lgpd",
        name="Lei Geral de Proteção de Dados",
        description="Brazilian data protection regulation similar to GDPR",
        regions=["BR"],
        requirements=RuleRequirements(
            cookieConsent=True,
            explicitConsent=True,
            ageVerification=True,
            rightToDelete=True,
            rightToPortability=True,
            rightToRectification=True,
            dataProcessingDisclosure=True,
            consentWithdrawal=True,
            minimumAge=13,
            penalties=Penalty(currency="BRL", maxAmount=50_000_000),
        ),
        validFrom=date(2020, 9, 18),
    ),
    ComplianceRule(
        id="pipeda",
        name="Personal Information Protection and Electronic Documents Act",
        description="Canadian federal privacy law for private-sector organizations",
        regions=["CA"],
        requirements=RuleRequirements(
            cookieConsent=True,
            explicitConsent=True,
            ageVerification=False,
            rightToDelete=False,
            rightToPortability=False,
            rightToRectification=True,
            dataProcessingDisclosure=True,
            consentWithdrawal=True,
            minimumAge=13,
        ),
        validFrom=date(2001, 1, 1),
    ),
    ComplianceRule(
        id="pdpa-sg",
        name="Personal Data Protection Act (Singapore)",
        description=(
            "Singapore's data protection law governing the collection, use, and "
            "disclosure of personal data"
        ),
        regions=["SG"],
        requirements=RuleRequirements(
            cookieConsent=True,
            explicitConsent=True,
            ageVerification=False,
            rightToDelete=False,
            rightToPortability=True,
            rightToRectification=True,
            dataProcessingDisclosure=True,
            consentWithdrawal=True,
            penalties=Penalty(currency="SGD", maxAmount=1_000_000),
        ),
        validFrom=date(2014, 7, 2),
    ),
    ComplianceRule(
        id="coppa",
        name="Children's Online Privacy Protection Act",
        description="US federal law designed to protect the privacy of children under 13",
        regions=["US"],
        requirements=RuleRequirements(
            cookieConsent=True,
            explicitConsent=True,
            ageVerification=True,
            rightToDelete=True,
            rightToPortability=False,
            rightToRectification=False,
            dataProcessingDisclosure=True,
            consentWithdrawal=True,
            minimumAge=13,
            penalties=Penalty(currency="USD", maxAmount=43_792),
        ),
        validFrom=date(2000, 4, 21),
    ),
]

RULE_RECOMMENDATIONS: Dict[str, List[str]] = {
    "gdpr": [
        "Implement explicit consent mechanisms for data processing",
        "Provide clear data processing disclosures in privacy policy",
        "Enable users to withdraw consent easily",
        "Implement data portability and deletion features",
        "Conduct regular data protection impact assessments",
        "Appoint a Data Protection Officer if required",
    ],
    "ccpa": [
        "Add 'Do Not Sell My Personal Information' link to homepage",
        "Implement opt-out mechanisms for data sales",
        "Provide clear categories of personal information collected",
        "Enable data deletion and portability requests",
    ],
    "lgpd": [
        "Implement explicit consent with granular options",
        "Provide data processing notifications in Portuguese",
        "Enable easy consent withdrawal",
        "Maintain data processing logs",
    ],
    "coppa": [
        "Implement age verification mechanisms",
        "Require parental consent for users under 13",
        "Limit data collection from children",
        "Provide parent access to child data",
    ],
}

STANDARD_ACTIVITIES: List[DataProcessingActivity] = [
    DataProcessingActivity(
        id="analytics",
        purpose="Website analytics and performance monitoring",
        dataTypes=["IP address", "browser information", "page views", "session duration"],
        retentionPeriod=365,
        thirdPartySharing=True,
        crossBorderTransfer=True,
        legalBasis="Legitimate interest",
        consentRequired=True,
    ),
    DataProcessingActivity(
        id="marketing",
        purpose="Targeted advertising and marketing campaigns",
        dataTypes=["email", "browsing behavior", "purchase history", "demographics"],
        retentionPeriod=1095,
        thirdPartySharing=True,
        crossBorderTransfer=True,
        legalBasis="Consent",
        consentRequired=True,
    ),
    DataProcessingActivity(
        id="personalization",
        purpose="Personalizing user experience and content",
        dataTypes=["preferences", "browsing history", "location", "device info"],
        retentionPeriod=730,
        thirdPartySharing=False,
        crossBorderTransfer=False,
        legalBasis="Legitimate interest",
        consentRequired=True,
    ),
    DataProcessingActivity(
        id="customer-support",
        purpose="Providing customer support and service",
        dataTypes=["name", "email", "support tickets", "chat logs"],
        retentionPeriod=2555,
        thirdPartySharing=False,
        crossBorderTransfer=False,
        legalBasis="Contract performance",
        consentRequired=False,
    ),
    DataProcessingActivity(
        id="security",
        purpose="Security monitoring and fraud prevention",
        dataTypes=["IP address", "login attempts", "security events", "device fingerprints"],
        retentionPeriod=90,
        thirdPartySharing=False,
        crossBorderTransfer=False,
        legalBasis="Legitimate interest",
        consentRequired=False,
    ),
]

_BOOLEAN_REQUIREMENTS = [
    "cookieConsent",
    "explicitConsent",
    "ageVerification",
    "rightToDelete",
    "rightToPortability",
    "rightToRectification",
    "dataProcessingDisclosure",
    "consentWithdrawal",
]


def get_compliance_rules() -> List[ComplianceRule]:
    return list(COMPLIANCE_RULES)


def _region_matches(region: str, country_code: str, state: Optional[str]) -> bool:
    if len(region) == 2:
        return region == country_code
    if "-" in region:
        country, sub = region.split("-", 1)
        return country == country_code and sub == state
    return False


def get_applicable_rules(
    country_code: str, region: Optional[str] = None, today: Optional[date] = None
) -> List[ComplianceRule]:
    """Rules covering the location that are in force on `today`"""
    today = today or date.today()
    return [
        rule
        for rule in COMPLIANCE_RULES
        if any(_region_matches(r, country_code, region) for r in rule.regions)
        and rule.validFrom <= today
        and (rule.validUntil is None or today <= rule.validUntil)
    ]


def _risk_for_penalty(amount: int) -> RiskLevel:
    if amount > 1_000_000:
        return "high"
    if amount > 50_000:
        return "medium"
    return "low"


def get_compliance_status(
    country_code: str,
    region: Optional[str] = None,
    business_profile: Optional[BusinessProfile] = None,
    today: Optional[date] = None,
) -> ComplianceStatus:
    """
    Consolidate every applicable rule into one set of requirements.

    The most restrictive value wins for each flag and for the minimum age.
    Rules whose business size exemption matches the profile are skipped.
    """
    applicable = get_applicable_rules(country_code, region, today)
    requirements = ConsolidatedRequirements()
    recommendations: List[str] = []
    risk_level: RiskLevel = "low"

    for rule in applicable:
        exempt = (
            business_profile is not None
            and rule.exemptions is not None
            and rule.exemptions.businessSize is not None
            and rule.exemptions.businessSize == business_profile.size
        )
        if exempt:
            continue

        for name in _BOOLEAN_REQUIREMENTS:
            if getattr(rule.requirements, name):
                setattr(requirements, name, True)

        if rule.requirements.minimumAge and rule.requirements.minimumAge > requirements.minimumAge:
            requirements.minimumAge = rule.requirements.minimumAge

        if rule.requirements.penalties:
            rule_risk = _risk_for_penalty(rule.requirements.penalties.maxAmount)
            if rule_risk == "high" or (rule_risk == "medium" and risk_level != "high"):
                risk_level = rule_risk

        for recommendation in RULE_RECOMMENDATIONS.get(rule.id, []):
            if recommendation not in recommendations:
                recommendations.append(recommendation)

    return ComplianceStatus(
        applicableRules=applicable,
        requirements=requirements,
        riskLevel=risk_level,
        recommendations=recommendations,
    )


def get_data_processing_activities() -> List[DataProcessingActivity]:
    return list(STANDARD_ACTIVITIES)


def is_compliant_for_activity(
    status: ComplianceStatus, activity: DataProcessingActivity, has_consent: bool
) -> bool:
    """An activity may run when it needs no consent or consent was given"""
    consent_needed = activity.consentRequired and (
        status.requirements.cookieConsent or status.requirements.explicitConsent
    )
    return has_consent or not consent_needed


def _unique(items: List[str]) -> List[str]:
    return list(dict.fromkeys(items))


def generate_privacy_policy_sections(
    status: ComplianceStatus, activities: List[DataProcessingActivity]
) -> List[PolicySection]:
    """Ordered policy sections; optional ones appear only when a requirement calls for them"""
    requirements = status.requirements
    sections = [
        PolicySection(
            title="Information We Collect",
            content=(
                "We collect the following types of information: "
                f"{', '.join(_unique([t for a in activities for t in a.dataTypes]))}."
            ),
            required=True,
        )
    ]

    if requirements.dataProcessingDisclosure:
        sections.append(
            PolicySection(
                title="How We Use Your Information",
                content="\n".join(
                    f"• {a.purpose}: We process {', '.join(a.dataTypes)} "
                    f"based on {a.legalBasis.lower()}."
                    for a in activities
                ),
                required=True,
            )
        )

    sharing = [a for a in activities if a.thirdPartySharing]
    if sharing:
        sections.append(
            PolicySection(
                title="Information Sharing and Disclosure",
                content=(
                    "We may share your information with third parties for: "
                    f"{', '.join(a.purpose.lower() for a in sharing)}."
                ),
                required=True,
            )
        )

    if requirements.rightToDelete or requirements.rightToPortability:
        rights = []
        if requirements.rightToDelete:
            rights.append("delete your personal information")
        if requirements.rightToPortability:
            rights.append("receive a copy of your personal information")
        if requirements.rightToRectification:
            rights.append("correct inaccurate personal information")
        if requirements.consentWithdrawal:
            rights.append("withdraw your consent")
        sections.append(
            PolicySection(
                title="Your Rights and Choices",
                content=f"You have the right to: {', '.join(rights)}.",
                required=True,
            )
        )

    if requirements.cookieConsent:
        sections.append(
            PolicySection(
                title="Cookies and Tracking Technologies",
                content=(
                    "We use cookies and similar technologies to enhance your browsing "
                    "experience. You can manage your cookie preferences through our "
                    "consent manager."
                ),
                required=True,
            )
        )

    if requirements.ageVerification:
        age = requirements.minimumAge
        sections.append(
            PolicySection(
                title="Children's Privacy",
                content=(
                    f"Our services are not intended for children under {age} years of age. "
                    f"We do not knowingly collect personal information from children under {age}."
                ),
                required=True,
            )
        )

    sections.extend(
        [
            PolicySection(
                title="Data Retention",
                content="\n".join(
                    f"• {a.purpose}: {a.retentionPeriod // 365} years" for a in activities
                ),
                required=True,
            ),
            PolicySection(
                title="Data Security",
                content=(
                    "We implement appropriate technical and organizational security "
                    "measures to protect your personal information against unauthorized "
                    "access, alteration, disclosure, or destruction."
                ),
                required=True,
            ),
            PolicySection(
                title="Contact Us",
                content=(
                    "If you have any questions about this Privacy Policy, please contact "
                    "us at privacy@example.com."
                ),
                required=True,
            ),
        ]
    )
    return sections
