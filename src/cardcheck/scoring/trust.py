"""Trust dimension: security and authenticity signals.

Weighting before the confidence multiplier:
    - Signatures: 40 points
    - Provider: 25 points
    - Security: 20 points
    - Documentation: 15 points

The raw score is multiplied by a confidence factor that depends only on the
signature stage: 1.0 with a verified signature, 0.4 when any signature
failed verification, 0.6 otherwise. A failed signature outranks a valid one,
so a card carrying one good and one bad signature scores at 0.4.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from cardcheck.models.constants import SIGNATURE_RECENCY_SECONDS, STRONG_AUTH_SCHEME_TYPES
from cardcheck.models.enums import SignatureOutcome, TrustRating
from cardcheck.models.scores import (
    DocumentationCategory,
    ProviderCategory,
    SecurityCategory,
    SignaturesCategory,
    TrustBreakdown,
    TrustScore,
)
from cardcheck.models.signatures import SignatureVerificationResult
from cardcheck.scoring.compliance import card_urls
from cardcheck.scoring.context import ScoringContext
from cardcheck.utils.urls import is_http_url, is_https_url

VERIFIED_MULTIPLIER = 1.0
UNVERIFIED_MULTIPLIER = 0.6
FAILED_MULTIPLIER = 0.4

# A2A v0.3 wraps each scheme in a single-key object named after its kind
_STRONG_AUTH_WRAPPERS = frozenset(
    {"oauth2SecurityScheme", "openIdConnectSecurityScheme", "mtlsSecurityScheme"}
)


def trust_rating(total: float) -> TrustRating:
    if total >= 80:
        return TrustRating.HIGHLY_TRUSTED
    if total >= 60:
        return TrustRating.TRUSTED
    if total >= 40:
        return TrustRating.MODERATE_TRUST
    if total >= 20:
        return TrustRating.LOW_TRUST
    return TrustRating.UNTRUSTED


def confidence_multiplier(has_valid_signature: bool, has_invalid_signature: bool) -> float:
    """Multiplier applied to the raw trust score.

    Example:
        >>> confidence_multiplier(True, True)
        0.4
        >>> confidence_multiplier(False, False)
        0.6
    """
    if has_invalid_signature:
        return FAILED_MULTIPLIER
    if has_valid_signature:
        return VERIFIED_MULTIPLIER
    return UNVERIFIED_MULTIPLIER


def _signatures_skipped(
    context: ScoringContext, result: SignatureVerificationResult | None
) -> bool:
    if context.skip_signature_verification:
        return True
    return result is not None and result.outcome is SignatureOutcome.SKIPPED


def evaluate_signatures(
    context: ScoringContext, result: SignatureVerificationResult | None
) -> SignaturesCategory:
    if _signatures_skipped(context, result) or result is None:
        return SignaturesCategory(score=0, tested=False)

    has_valid = result.has_valid_signature
    has_invalid = result.has_failed_signature
    multiple = result.summary.total > 1
    # The signed payload is the whole card minus its signatures, so a
    # verified signature always covers every field.
    covers_all_fields = has_valid
    is_recent = has_valid and all(
        verdict.issued_at is None
        or context.now - verdict.issued_at <= SIGNATURE_RECENCY_SECONDS
        for verdict in result.signatures
        if verdict.valid
    )

    score = 0
    if has_valid:
        score += 30
        if multiple:
            score += 3
    if covers_all_fields:
        score += 4
    if is_recent:
        score += 3
    if has_invalid:
        score -= 15

    return SignaturesCategory(
        score=max(0, score),
        tested=True,
        has_valid_signature=has_valid,
        multiple_signatures=multiple,
        covers_all_fields=covers_all_fields,
        is_recent=is_recent,
        has_invalid_signature=has_invalid,
    )


def evaluate_provider(card: Mapping[str, Any], context: ScoringContext) -> ProviderCategory:
    provider = card.get("provider")
    if not isinstance(provider, Mapping):
        provider = {}
    organization = provider.get("organization")
    has_organization = isinstance(organization, str) and bool(organization)
    has_https_url = is_https_url(provider.get("url"))
    # The provider URL is not fetched; outside schema-only runs it is
    # credited as reachable when it is a well-formed https URL.
    url_reachable = has_https_url and not context.schema_only

    score = 0
    if has_organization:
        score += 10
    if has_https_url:
        score += 10
    if url_reachable:
        score += 5
    return ProviderCategory(
        score=score,
        has_organization=has_organization,
        has_https_url=has_https_url,
        url_reachable=url_reachable,
    )


def _has_strong_auth(schemes: Mapping[str, Any]) -> bool:
    for scheme in schemes.values():
        if not isinstance(scheme, Mapping):
            continue
        if _STRONG_AUTH_WRAPPERS.intersection(scheme):
            return True
        scheme_type = scheme.get("type")
        if isinstance(scheme_type, str) and scheme_type.lower() in STRONG_AUTH_SCHEME_TYPES:
            return True
    return False


def evaluate_security(card: Mapping[str, Any]) -> SecurityCategory:
    urls = card_urls(card)
    https_only = bool(urls) and all(is_https_url(url) for url in urls)
    has_http_urls = any(is_http_url(url) for url in urls)
    schemes = card.get("securitySchemes")
    has_security_schemes = isinstance(schemes, Mapping) and bool(schemes)
    has_strong_auth = has_security_schemes and _has_strong_auth(schemes)

    score = 0
    if https_only:
        score += 10
    if has_security_schemes:
        score += 5
    if has_strong_auth:
        score += 5
    if has_http_urls:
        score -= 10
    return SecurityCategory(
        score=max(0, score),
        https_only=https_only,
        has_security_schemes=has_security_schemes,
        has_strong_auth=has_strong_auth,
        has_http_urls=has_http_urls,
    )


def evaluate_documentation(card: Mapping[str, Any]) -> DocumentationCategory:
    def declared(name: str) -> bool:
        value = card.get(name)
        return isinstance(value, str) and bool(value)

    has_documentation_url = declared("documentationUrl")
    has_terms_of_service = declared("termsOfServiceUrl")
    has_privacy_policy = declared("privacyPolicyUrl")
    score = 5 * sum((has_documentation_url, has_terms_of_service, has_privacy_policy))
    return DocumentationCategory(
        score=score,
        has_documentation_url=has_documentation_url,
        has_terms_of_service=has_terms_of_service,
        has_privacy_policy=has_privacy_policy,
    )


def _collect_issues(breakdown: TrustBreakdown, multiplier: float) -> list[str]:
    issues: list[str] = []
    signatures = breakdown.signatures
    if not signatures.tested:
        issues.append("Signature verification skipped")
    elif signatures.has_invalid_signature:
        issues.append("Invalid signature detected - possible tampering")
    elif not signatures.has_valid_signature:
        issues.append("No valid cryptographic signatures - trust claims unverified")
    elif not signatures.is_recent:
        issues.append("Signature is older than 90 days")

    if multiplier == FAILED_MULTIPLIER:
        issues.append(
            f"Trust confidence severely reduced ({multiplier}x) due to invalid signatures"
        )
    elif multiplier == UNVERIFIED_MULTIPLIER:
        issues.append(f"Trust confidence reduced ({multiplier}x) - no cryptographic verification")

    if not breakdown.provider.has_organization:
        issues.append("No provider organization specified")
    if not breakdown.provider.has_https_url:
        issues.append("No provider URL specified or not using HTTPS")
    if breakdown.security.has_http_urls:
        issues.append("Some URLs use insecure HTTP instead of HTTPS")
    if not breakdown.security.has_security_schemes:
        issues.append("No security schemes declared")
    if not breakdown.documentation.has_documentation_url:
        issues.append("No documentation URL provided")
    return issues


def calculate_trust_score(
    card: Mapping[str, Any],
    context: ScoringContext,
    signature_result: SignatureVerificationResult | None = None,
) -> TrustScore:
    """Score a card's trustworthiness (0-100 after the confidence multiplier)."""
    breakdown = TrustBreakdown(
        signatures=evaluate_signatures(context, signature_result),
        provider=evaluate_provider(card, context),
        security=evaluate_security(card),
        documentation=evaluate_documentation(card),
    )
    raw_score = round(
        breakdown.signatures.score
        + breakdown.provider.score
        + breakdown.security.score
        + breakdown.documentation.score,
        2,
    )
    multiplier = confidence_multiplier(
        breakdown.signatures.has_valid_signature, breakdown.signatures.has_invalid_signature
    )
    total = round(raw_score * multiplier, 2)
    return TrustScore(
        total=total,
        raw_score=raw_score,
        confidence_multiplier=multiplier,
        rating=trust_rating(total).value,
        breakdown=breakdown,
        issues=_collect_issues(breakdown, multiplier),
        partial_validation=context.skip_signature_verification or context.schema_only,
    )
