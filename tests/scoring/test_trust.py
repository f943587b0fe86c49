"""Tests for the trust dimension and its confidence multiplier."""

from __future__ import annotations

import pytest

from cardcheck.models.enums import SignatureOutcome
from cardcheck.models.signatures import SignatureVerdict, SignatureVerificationResult
from cardcheck.scoring import ScoringContext
from cardcheck.scoring.trust import (
    calculate_trust_score,
    confidence_multiplier,
    evaluate_security,
    trust_rating,
)
from cardcheck.testing.fixtures import FIXED_NOW, build_agent_card

NOW = ScoringContext(now=FIXED_NOW)
DAY = 24 * 3600


def verified(*issued_at: int | None) -> SignatureVerificationResult:
    return SignatureVerificationResult.from_verdicts(
        [
            SignatureVerdict(index=i, valid=True, issued_at=iat)
            for i, iat in enumerate(issued_at)
        ]
    )


def no_signatures() -> SignatureVerificationResult:
    return SignatureVerificationResult.from_verdicts([])


class TestMultiplier:
    @pytest.mark.parametrize(
        ("valid", "invalid", "expected"),
        [(True, False, 1.0), (False, False, 0.6), (False, True, 0.4), (True, True, 0.4)],
    )
    def test_values(self, valid: bool, invalid: bool, expected: float) -> None:
        assert confidence_multiplier(valid, invalid) == expected

    def test_unsigned_card(self) -> None:
        trust = calculate_trust_score(build_agent_card(), NOW, no_signatures())
        # provider 25 + https-only 10
        assert trust.raw_score == 35
        assert trust.confidence_multiplier == 0.6
        assert trust.total == 21.0
        assert "No valid cryptographic signatures - trust claims unverified" in trust.issues

    def test_schema_only_does_not_credit_provider_reachability(self) -> None:
        context = ScoringContext(schema_only=True, now=FIXED_NOW)
        trust = calculate_trust_score(build_agent_card(), context, no_signatures())
        assert trust.breakdown.provider.score == 20
        assert trust.total == 18.0
        assert trust.partial_validation


class TestSignatures:
    def test_verified_recent_signature(self) -> None:
        trust = calculate_trust_score(
            build_agent_card(), NOW, verified(int(FIXED_NOW) - DAY)
        )
        signatures = trust.breakdown.signatures
        assert signatures.score == 37
        assert signatures.covers_all_fields
        assert signatures.is_recent
        assert trust.raw_score == 72
        assert trust.total == 72.0
        assert trust.rating == "Trusted"

    def test_multiple_signatures_bonus(self) -> None:
        trust = calculate_trust_score(build_agent_card(), NOW, verified(None, None))
        assert trust.breakdown.signatures.score == 40

    def test_old_signature_is_not_recent(self) -> None:
        trust = calculate_trust_score(
            build_agent_card(), NOW, verified(int(FIXED_NOW) - 91 * DAY)
        )
        assert trust.breakdown.signatures.score == 34
        assert "Signature is older than 90 days" in trust.issues

    def test_failed_signature_outranks_valid_one(self) -> None:
        result = SignatureVerificationResult.from_verdicts(
            [
                SignatureVerdict(index=0, valid=True),
                SignatureVerdict(index=1, valid=False, error="bad"),
            ]
        )
        trust = calculate_trust_score(build_agent_card(), NOW, result)
        assert trust.breakdown.signatures.score == 25
        assert trust.confidence_multiplier == 0.4
        assert trust.total == round(trust.raw_score * 0.4, 2)
        assert "Invalid signature detected - possible tampering" in trust.issues
        assert trust.issues[1] == (
            "Trust confidence severely reduced (0.4x) due to invalid signatures"
        )

    def test_skipped_verification_is_untested(self) -> None:
        context = ScoringContext(skip_signature_verification=True, now=FIXED_NOW)
        result = SignatureVerificationResult.not_run(SignatureOutcome.SKIPPED)
        trust = calculate_trust_score(build_agent_card(), context, result)
        assert not trust.breakdown.signatures.tested
        assert trust.confidence_multiplier == 0.6
        assert trust.issues[0] == "Signature verification skipped"
        assert trust.partial_validation


class TestSecurity:
    def test_http_url_penalty(self) -> None:
        security = evaluate_security(build_agent_card(url="http://agent.example.com/a2a"))
        assert not security.https_only
        assert security.has_http_urls
        assert security.score == 0

    def test_no_urls_is_not_https_only(self) -> None:
        security = evaluate_security(build_agent_card(url=None, provider=None))
        assert not security.https_only
        assert security.score == 0

    @pytest.mark.parametrize(
        "schemes",
        [
            {"oauth": {"type": "oauth2", "flows": {}}},
            {"oidc": {"type": "openIdConnect", "openIdConnectUrl": "https://id.example.com"}},
            {"mtls": {"mtlsSecurityScheme": {}}},
        ],
    )
    def test_strong_auth(self, schemes: dict) -> None:
        security = evaluate_security(build_agent_card(securitySchemes=schemes))
        assert security.has_strong_auth
        assert security.score == 20

    def test_api_key_is_not_strong(self) -> None:
        schemes = {"key": {"type": "apiKey", "in": "header", "name": "X-API-Key"}}
        security = evaluate_security(build_agent_card(securitySchemes=schemes))
        assert security.has_security_schemes
        assert not security.has_strong_auth
        assert security.score == 15


def test_documentation_urls() -> None:
    card = build_agent_card(
        documentationUrl="https://docs.example.com",
        termsOfServiceUrl="https://example.com/tos",
        privacyPolicyUrl="https://example.com/privacy",
    )
    trust = calculate_trust_score(card, NOW, no_signatures())
    assert trust.breakdown.documentation.score == 15
    assert "No documentation URL provided" not in trust.issues


@pytest.mark.parametrize(
    ("total", "rating"),
    [
        (80, "Highly Trusted"),
        (60, "Trusted"),
        (40, "Moderate Trust"),
        (20, "Low Trust"),
        (0, "Untrusted"),
    ],
)
def test_ratings(total: float, rating: str) -> None:
    assert trust_rating(total).value == rating
