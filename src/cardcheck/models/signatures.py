"""Signature verification result models."""

from pydantic import Field

from cardcheck.models.base import CardCheckBaseModel
from cardcheck.models.enums import SignatureOutcome


class SignatureVerdict(CardCheckBaseModel):
    """Outcome for one detached signature on the card.

    Attributes:
        index: Position in the card's ``signatures`` array
        valid: True when the signature verified against the fetched key
        algorithm: ``alg`` from the protected header, when decodable
        key_id: ``kid`` from the protected header
        jwks_uri: Key set URL taken from ``jku`` / ``jwks_uri``
        issued_at: ``iat`` from the protected header (unix seconds), if any
        error: Human-readable failure reason when ``valid`` is False
    """

    index: int = Field(ge=0)
    valid: bool
    algorithm: str | None = None
    key_id: str | None = None
    jwks_uri: str | None = None
    issued_at: int | None = None
    error: str | None = None


class SignatureSummary(CardCheckBaseModel):
    total: int = 0
    valid: int = 0
    failed: int = 0
    errors: list[str] = Field(default_factory=list)


class SignatureVerificationResult(CardCheckBaseModel):
    """Aggregate result of the signature stage.

    ``signatures`` is empty for the NO_SIGNATURES and SKIPPED outcomes.
    """

    outcome: SignatureOutcome
    signatures: list[SignatureVerdict] = Field(default_factory=list)
    summary: SignatureSummary = Field(default_factory=SignatureSummary)

    @property
    def has_valid_signature(self) -> bool:
        return self.summary.valid > 0

    @property
    def has_failed_signature(self) -> bool:
        return self.summary.failed > 0

    @classmethod
    def from_verdicts(cls, verdicts: list[SignatureVerdict]) -> "SignatureVerificationResult":
        failed = [v for v in verdicts if not v.valid]
        summary = SignatureSummary(
            total=len(verdicts),
            valid=len(verdicts) - len(failed),
            failed=len(failed),
            errors=[f"Signature {v.index + 1}: {v.error}" for v in failed],
        )
        if not verdicts:
            outcome = SignatureOutcome.NO_SIGNATURES
        elif failed:
            outcome = SignatureOutcome.FAILED
        else:
            outcome = SignatureOutcome.VERIFIED
        return cls(outcome=outcome, signatures=verdicts, summary=summary)

    @classmethod
    def not_run(cls, outcome: SignatureOutcome) -> "SignatureVerificationResult":
        """Result for a stage that was not invoked (no signatures, or skipped)."""
        return cls(outcome=outcome)
