"""Three-dimensional scoring of agent cards.

``calculate_scores`` combines the output of every validation stage into:

1. Compliance: A2A format adherence (always calculated)
2. Trust: security and authenticity, scaled by a confidence multiplier
3. Availability: operational readiness (only when live testing ran)

plus an ordered list of recommendations and the legacy single score. Every
function here is pure: the same inputs always give the same result.
"""

from __future__ import annotations

from cardcheck.models.scores import (
    AvailabilityScore,
    ComplianceScore,
    ScoringResult,
    TrustScore,
)
from cardcheck.scoring.availability import calculate_availability_score
from cardcheck.scoring.compliance import calculate_compliance_score
from cardcheck.scoring.context import ScoringContext, ScoringInputs
from cardcheck.scoring.trust import FAILED_MULTIPLIER, UNVERIFIED_MULTIPLIER, calculate_trust_score

PRODUCTION_COMPLIANCE_THRESHOLD = 95
PRODUCTION_TRUST_THRESHOLD = 60
PRODUCTION_TRUST_CONFIDENCE = 0.6
PRODUCTION_AVAILABILITY_THRESHOLD = 80


def _compliance_recommendation(compliance: ComplianceScore) -> str:
    if compliance.total == 100:
        return "Fully A2A v0.3.0 compliant"
    if compliance.total >= 90:
        return "Excellent A2A compliance"
    if compliance.total >= 75:
        return "Good compliance with minor issues"
    if compliance.total >= 60:
        return "Fair compliance - improvements recommended"
    return "Poor compliance - significant improvements needed"


def _trust_recommendation(trust: TrustScore) -> str:
    if trust.confidence_multiplier == FAILED_MULTIPLIER:
        return "Invalid signatures detected - do not use in production"
    if trust.confidence_multiplier == UNVERIFIED_MULTIPLIER:
        return "No cryptographic signatures - consider adding JWS signatures to improve trust"
    if trust.total >= 80:
        return "Highly trusted with strong security signals"
    if trust.total >= 60:
        return "Trusted with good security configuration"
    if trust.total >= 40:
        return "Moderate trust - consider improving security"
    return "Low trust - security improvements strongly recommended"


def _availability_recommendation(total: float) -> str:
    if total >= 95:
        return "Fully operational and performant"
    if total >= 80:
        return "Operational with minor issues"
    if total >= 60:
        return "Degraded performance or reliability issues"
    if total >= 40:
        return "Unstable - significant operational issues"
    return "Unavailable or severely degraded"


def production_blockers(
    compliance: ComplianceScore, trust: TrustScore, availability: AvailabilityScore
) -> list[str]:
    """Dimensions that keep the agent from being production ready, in a fixed order."""
    blockers: list[str] = []
    if compliance.total < PRODUCTION_COMPLIANCE_THRESHOLD:
        blockers.append("compliance")
    if (
        trust.total < PRODUCTION_TRUST_THRESHOLD
        or trust.confidence_multiplier < PRODUCTION_TRUST_CONFIDENCE
    ):
        blockers.append("trust")
    if (
        availability.tested
        and availability.total is not None
        and availability.total < PRODUCTION_AVAILABILITY_THRESHOLD
    ):
        blockers.append("availability")
    return blockers


def generate_recommendation(
    compliance: ComplianceScore, trust: TrustScore, availability: AvailabilityScore
) -> list[str]:
    """Ordered recommendations derived only from score thresholds."""
    recommendation = [_compliance_recommendation(compliance), _trust_recommendation(trust)]
    if availability.tested and availability.total is not None:
        recommendation.append(_availability_recommendation(availability.total))

    blockers = production_blockers(compliance, trust, availability)
    if blockers:
        recommendation.append(f"Not yet production ready - improve: {', '.join(blockers)}")
    else:
        recommendation.append("Production ready!")
    return recommendation


def legacy_score(
    compliance: ComplianceScore, trust: TrustScore, availability: AvailabilityScore
) -> float:
    """Weighted single score: compliance 50%, trust 30%, availability 20%.

    When availability was not tested its weight goes to compliance.

    Example:
        >>> legacy_score(compliance, trust, untested)  # 100, 60, None
        88.0
    """
    third = (
        availability.total
        if availability.tested and availability.total is not None
        else compliance.total
    )
    return round(compliance.total * 0.5 + trust.total * 0.3 + third * 0.2, 2)


def is_production_ready(result: ScoringResult) -> bool:
    return not production_blockers(result.compliance, result.trust, result.availability)


def calculate_scores(inputs: ScoringInputs, context: ScoringContext) -> ScoringResult:
    """Compute all three dimensions, the recommendation and the legacy score.

    Args:
        inputs: The card and the outputs of the signature and probe stages.
        context: How the validation was run.

    Returns:
        ScoringResult. Never raises for any card shape.
    """
    compliance = calculate_compliance_score(inputs.card)
    trust = calculate_trust_score(inputs.card, context, inputs.signature_result)
    availability = calculate_availability_score(context, inputs.probe_results)
    return ScoringResult(
        compliance=compliance,
        trust=trust,
        availability=availability,
        recommendation=generate_recommendation(compliance, trust, availability),
        legacy_score=legacy_score(compliance, trust, availability),
    )


__all__ = [
    "ScoringContext",
    "ScoringInputs",
    "calculate_availability_score",
    "calculate_compliance_score",
    "calculate_scores",
    "calculate_trust_score",
    "generate_recommendation",
    "is_production_ready",
    "legacy_score",
    "production_blockers",
]
