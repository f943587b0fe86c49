"""cardcheck data models.

Result entities are frozen pydantic models created fresh for every
validation. ``AgentCard`` and friends describe the card itself.
"""

from cardcheck.models.base import CardCheckBaseModel
from cardcheck.models.card import (
    AgentCapabilities,
    AgentCard,
    AgentCardSignature,
    AgentInterface,
    AgentProvider,
    AgentSkill,
)
from cardcheck.models.enums import (
    CheckStatus,
    IssueCategory,
    MessageKind,
    Severity,
    SignatureOutcome,
    TransportProtocol,
    ValidationStrictness,
)
from cardcheck.models.probe import LiveProbeResult, LiveTestResult, ProbeIssue
from cardcheck.models.results import (
    ValidationCheck,
    ValidationFinding,
    ValidationResult,
    ValidationSuggestion,
    VersionCompatibility,
    VersionInfo,
    VersionMismatch,
)
from cardcheck.models.scores import (
    AvailabilityScore,
    ComplianceScore,
    ScoringResult,
    TrustScore,
)
from cardcheck.models.signatures import (
    SignatureSummary,
    SignatureVerdict,
    SignatureVerificationResult,
)

__all__ = [
    "AgentCapabilities",
    "AgentCard",
    "AgentCardSignature",
    "AgentInterface",
    "AgentProvider",
    "AgentSkill",
    "AvailabilityScore",
    "CardCheckBaseModel",
    "CheckStatus",
    "ComplianceScore",
    "IssueCategory",
    "LiveProbeResult",
    "LiveTestResult",
    "MessageKind",
    "ProbeIssue",
    "ScoringResult",
    "Severity",
    "SignatureOutcome",
    "SignatureSummary",
    "SignatureVerdict",
    "SignatureVerificationResult",
    "TransportProtocol",
    "TrustScore",
    "ValidationCheck",
    "ValidationFinding",
    "ValidationResult",
    "ValidationStrictness",
    "ValidationSuggestion",
    "VersionCompatibility",
    "VersionInfo",
    "VersionMismatch",
]
