"""Score models for the three scoring dimensions.

Each dimension carries a fixed-shape breakdown: every category reports the
points it earned, its maximum, and the boolean evidence behind the points.
"""

from pydantic import Field

from cardcheck.models.base import CardCheckBaseModel


class ScoreCategory(CardCheckBaseModel):
    score: float
    max_score: float


# Compliance


class CoreFieldsCategory(ScoreCategory):
    max_score: float = 60
    present: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)


class SkillsQualityCategory(ScoreCategory):
    max_score: float = 20
    skill_count: int = 0
    has_skills: bool = False
    all_have_required_fields: bool = False
    all_have_tags: bool = False


class FormatCategory(ScoreCategory):
    max_score: float = 15
    valid_semver: bool = False
    valid_protocol_version: bool = False
    valid_url: bool = False
    valid_transports: bool = False
    valid_mime_types: bool = False


class DataQualityCategory(ScoreCategory):
    max_score: float = 5
    no_duplicate_skill_ids: bool = True
    field_lengths_valid: bool = True
    no_ssrf_risk: bool = True


class ComplianceBreakdown(CardCheckBaseModel):
    core_fields: CoreFieldsCategory
    skills_quality: SkillsQualityCategory
    format_compliance: FormatCategory
    data_quality: DataQualityCategory


class ComplianceScore(CardCheckBaseModel):
    total: float
    rating: str
    breakdown: ComplianceBreakdown
    issues: list[str] = Field(default_factory=list)


# Trust


class SignaturesCategory(ScoreCategory):
    max_score: float = 40
    tested: bool = False
    has_valid_signature: bool = False
    multiple_signatures: bool = False
    covers_all_fields: bool = False
    is_recent: bool = False
    has_invalid_signature: bool = False


class ProviderCategory(ScoreCategory):
    max_score: float = 25
    has_organization: bool = False
    has_https_url: bool = False
    url_reachable: bool = False


class SecurityCategory(ScoreCategory):
    max_score: float = 20
    https_only: bool = False
    has_security_schemes: bool = False
    has_strong_auth: bool = False
    has_http_urls: bool = False


class DocumentationCategory(ScoreCategory):
    max_score: float = 15
    has_documentation_url: bool = False
    has_terms_of_service: bool = False
    has_privacy_policy: bool = False


class TrustBreakdown(CardCheckBaseModel):
    signatures: SignaturesCategory
    provider: ProviderCategory
    security: SecurityCategory
    documentation: DocumentationCategory


class TrustScore(CardCheckBaseModel):
    """Trust dimension.

    ``total`` is ``raw_score * confidence_multiplier`` rounded to 2 decimals.
    """

    total: float
    raw_score: float
    confidence_multiplier: float
    rating: str
    breakdown: TrustBreakdown
    issues: list[str] = Field(default_factory=list)
    partial_validation: bool = False


# Availability


class PrimaryEndpointCategory(ScoreCategory):
    max_score: float = 50
    responds: bool = False
    response_time_ms: float | None = None
    has_cors: bool = False
    valid_tls: bool = False


class TransportSupportCategory(ScoreCategory):
    max_score: float = 30
    preferred_transport_works: bool = False
    additional_interfaces_work: bool = False


class ResponseQualityCategory(ScoreCategory):
    max_score: float = 20
    valid_structure: bool = False
    proper_content_type: bool = False
    no_protocol_errors: bool = False


class AvailabilityBreakdown(CardCheckBaseModel):
    primary_endpoint: PrimaryEndpointCategory
    transport_support: TransportSupportCategory
    response_quality: ResponseQualityCategory


class AvailabilityScore(CardCheckBaseModel):
    """Availability dimension; every field but ``tested`` is None when untested."""

    total: float | None = None
    rating: str | None = None
    breakdown: AvailabilityBreakdown | None = None
    issues: list[str] = Field(default_factory=list)
    tested: bool = False
    not_tested_reason: str | None = None


class ScoringResult(CardCheckBaseModel):
    compliance: ComplianceScore
    trust: TrustScore
    availability: AvailabilityScore
    recommendation: list[str] = Field(default_factory=list)
    legacy_score: float
