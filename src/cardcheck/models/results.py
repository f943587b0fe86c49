"""Validation result models.

``ValidationResult`` is the single immutable value returned by
``CardValidator.validate``. ``to_output`` renders it in the JSON shape
consumed by presenters and CI tooling.
"""

from typing import Any

from pydantic import Field

from cardcheck.models.base import CardCheckBaseModel
from cardcheck.models.enums import CheckStatus, Severity, ValidationStrictness
from cardcheck.models.probe import LiveProbeResult
from cardcheck.models.scores import ScoringResult
from cardcheck.models.signatures import SignatureVerificationResult


class ValidationFinding(CardCheckBaseModel):
    """An error or warning about the card.

    Attributes:
        code: Stable machine-readable code (e.g. SCHEMA_VALIDATION_ERROR)
        message: Human-readable description
        field: Dotted path of the offending field, if any
        severity: ERROR blocks success; WARNING does not
        fixable: True when the card author can fix it by editing the card
    """

    code: str
    message: str
    field: str | None = None
    severity: Severity = Severity.ERROR
    fixable: bool | None = None


class ValidationSuggestion(CardCheckBaseModel):
    id: str
    message: str
    severity: Severity = Severity.INFO
    impact: str | None = None
    fixable: bool | None = None


class ValidationCheck(CardCheckBaseModel):
    """Status of one validation stage, for presenters."""

    id: str
    name: str
    status: CheckStatus
    message: str
    duration_ms: float | None = None
    details: dict[str, Any] | None = None


class VersionMismatch(CardCheckBaseModel):
    feature: str
    required_version: str
    detected_version: str
    severity: Severity
    description: str


class VersionCompatibility(CardCheckBaseModel):
    detected_version: str | None = None
    target_version: str
    compatible: bool
    mismatches: list[VersionMismatch] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class VersionInfo(CardCheckBaseModel):
    detected_version: str
    validator_version: str
    strictness: ValidationStrictness
    compatibility: VersionCompatibility
    migration_path: list[str] = Field(default_factory=list)


class ValidationResult(CardCheckBaseModel):
    """Aggregate outcome of validating one agent card.

    ``success`` is True exactly when ``errors`` is empty. ``score`` is the
    legacy single score (see ``cardcheck.scoring.legacy_score``).
    """

    success: bool
    score: float
    errors: list[ValidationFinding] = Field(default_factory=list)
    warnings: list[ValidationFinding] = Field(default_factory=list)
    suggestions: list[ValidationSuggestion] = Field(default_factory=list)
    validations: list[ValidationCheck] = Field(default_factory=list)
    version_info: VersionInfo
    signature_verification: SignatureVerificationResult | None = None
    live_probes: list[LiveProbeResult] = Field(default_factory=list)
    scoring_result: ScoringResult
    duration_ms: float = 0.0

    def has_error(self, code: str) -> bool:
        return any(error.code == code for error in self.errors)

    def has_warning(self, code: str) -> bool:
        return any(warning.code == code for warning in self.warnings)

    def to_output(self) -> dict[str, Any]:
        """Render as the camelCase JSON document presenters consume.

        Optional finding attributes that are unset are omitted rather than
        emitted as null.
        """
        return {
            "success": self.success,
            "score": self.score,
            "errors": [e.to_json_dict(exclude_none=True) for e in self.errors],
            "warnings": [w.to_json_dict(exclude_none=True) for w in self.warnings],
            "suggestions": [s.to_json_dict(exclude_none=True) for s in self.suggestions],
            "validations": [v.to_json_dict(exclude_none=True) for v in self.validations],
            "versionInfo": self.version_info.to_json_dict(),
            "signatureVerification": (
                self.signature_verification.to_json_dict()
                if self.signature_verification is not None
                else None
            ),
            "liveProbes": [p.to_json_dict() for p in self.live_probes],
            "scoringResult": self.scoring_result.to_json_dict(),
            "durationMs": self.duration_ms,
        }
