"""Availability dimension: operational readiness observed by live probing.

Weighting:
    - Primary endpoint: 50 points (responds 30, latency 10, CORS 5, TLS 5)
    - Transport support: 30 points (preferred transport 20, alternates 10)
    - Response quality: 20 points (valid reply 10, content type 5, no protocol errors 5)

Only computed when live testing ran; otherwise every field but ``tested`` is
None.
"""

from __future__ import annotations

from cardcheck.models.constants import ACCEPTABLE_RESPONSE_MS, FAST_RESPONSE_MS
from cardcheck.models.enums import AvailabilityRating
from cardcheck.models.probe import LiveProbeResult
from cardcheck.models.scores import (
    AvailabilityBreakdown,
    AvailabilityScore,
    PrimaryEndpointCategory,
    ResponseQualityCategory,
    TransportSupportCategory,
)
from cardcheck.scoring.context import ScoringContext

NOT_TESTED_SCHEMA_ONLY = "Schema-only validation (use --test-live to test availability)"
NOT_TESTED_DEFAULT = "Live testing not performed"


def availability_rating(total: float) -> AvailabilityRating:
    if total >= 95:
        return AvailabilityRating.FULLY_AVAILABLE
    if total >= 80:
        return AvailabilityRating.AVAILABLE
    if total >= 60:
        return AvailabilityRating.DEGRADED
    if total >= 40:
        return AvailabilityRating.UNSTABLE
    return AvailabilityRating.UNAVAILABLE


def evaluate_primary_endpoint(primary: LiveProbeResult | None) -> PrimaryEndpointCategory:
    if primary is None or not primary.responded:
        return PrimaryEndpointCategory(
            score=0,
            response_time_ms=primary.response_time_ms if primary else None,
        )

    score = 30
    if primary.response_time_ms < FAST_RESPONSE_MS:
        score += 10
    elif primary.response_time_ms < ACCEPTABLE_RESPONSE_MS:
        score += 5
    if primary.has_cors:
        score += 5
    if primary.valid_tls:
        score += 5
    return PrimaryEndpointCategory(
        score=score,
        responds=True,
        response_time_ms=primary.response_time_ms,
        has_cors=primary.has_cors,
        valid_tls=primary.valid_tls,
    )


def evaluate_transport_support(
    primary: LiveProbeResult | None, alternates: list[LiveProbeResult]
) -> TransportSupportCategory:
    preferred_works = primary is not None and primary.transport_ok
    alternates_work = all(result.success for result in alternates)
    score = 0
    if preferred_works:
        score += 20
    if alternates_work:
        score += 10
    return TransportSupportCategory(
        score=score,
        preferred_transport_works=preferred_works,
        additional_interfaces_work=alternates_work,
    )


def evaluate_response_quality(primary: LiveProbeResult | None) -> ResponseQualityCategory:
    if primary is None or not primary.responded:
        return ResponseQualityCategory(score=0)

    # Without a live message exchange, the transport check stands in for the reply.
    valid_structure = (
        primary.protocol_valid if primary.protocol_valid is not None else primary.transport_ok
    )
    no_protocol_errors = not primary.has_protocol_errors
    score = 0
    if valid_structure:
        score += 10
    if primary.content_type_ok:
        score += 5
    if no_protocol_errors:
        score += 5
    return ResponseQualityCategory(
        score=score,
        valid_structure=valid_structure,
        proper_content_type=primary.content_type_ok,
        no_protocol_errors=no_protocol_errors,
    )


def _collect_issues(
    breakdown: AvailabilityBreakdown,
    primary: LiveProbeResult | None,
    alternates: list[LiveProbeResult],
) -> list[str]:
    issues: list[str] = []
    endpoint = breakdown.primary_endpoint
    if primary is None:
        issues.append("No primary endpoint declared")
    elif not endpoint.responds:
        issues.append("Primary endpoint not responding")
        issues.extend(issue.message for issue in primary.errors)
    else:
        elapsed = endpoint.response_time_ms or 0.0
        if elapsed >= ACCEPTABLE_RESPONSE_MS:
            issues.append(f"Slow response time: {elapsed}ms (timeout)")
        elif elapsed >= FAST_RESPONSE_MS:
            issues.append(f"Slow response time: {elapsed}ms")
        if not endpoint.has_cors:
            issues.append("No CORS headers detected")
        if not endpoint.valid_tls:
            issues.append("TLS not verified (endpoint is not served over https)")

    if not breakdown.transport_support.preferred_transport_works:
        issues.append("Preferred transport not working")
    failed = [result.endpoint for result in alternates if not result.success]
    if failed:
        issues.append(f"Additional interfaces failing: {', '.join(failed)}")

    quality = breakdown.response_quality
    if endpoint.responds:
        if not quality.valid_structure:
            issues.append("Invalid A2A protocol response structure")
        if not quality.proper_content_type:
            issues.append("Unexpected response content type")
        if not quality.no_protocol_errors:
            issues.append("Protocol errors in agent response")
    return issues


def calculate_availability_score(
    context: ScoringContext, probe_results: list[LiveProbeResult] | None = None
) -> AvailabilityScore:
    """Score availability from probe results, or report it as not tested."""
    if not context.test_live or context.schema_only or probe_results is None:
        return AvailabilityScore(
            tested=False,
            not_tested_reason=(
                NOT_TESTED_SCHEMA_ONLY if context.schema_only else NOT_TESTED_DEFAULT
            ),
        )

    primary = next((result for result in probe_results if result.is_primary), None)
    alternates = [result for result in probe_results if not result.is_primary]
    breakdown = AvailabilityBreakdown(
        primary_endpoint=evaluate_primary_endpoint(primary),
        transport_support=evaluate_transport_support(primary, alternates),
        response_quality=evaluate_response_quality(primary),
    )
    total = round(
        breakdown.primary_endpoint.score
        + breakdown.transport_support.score
        + breakdown.response_quality.score,
        2,
    )
    return AvailabilityScore(
        total=total,
        rating=availability_rating(total).value,
        breakdown=breakdown,
        issues=_collect_issues(breakdown, primary, alternates),
        tested=True,
    )
