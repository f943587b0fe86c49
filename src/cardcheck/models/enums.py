"""Enumerations for cardcheck.

This module defines the enum types shared by the validation stages so that
transport names, severities and message kinds never travel as magic strings.
"""

from enum import Enum


class TransportProtocol(str, Enum):
    """Wire bindings an A2A agent may expose.

    Example:
        >>> TransportProtocol("HTTP+JSON") is TransportProtocol.HTTP_JSON
        True
    """

    JSONRPC = "JSONRPC"
    GRPC = "GRPC"
    HTTP_JSON = "HTTP+JSON"

    @classmethod
    def parse(cls, value: object) -> "TransportProtocol | None":
        """Return the matching member, or None for unknown or non-string values."""
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class Severity(str, Enum):
    """Severity of a validation finding."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ValidationStrictness(str, Enum):
    """How version mismatches and insecure URLs are treated.

    STRICT escalates every version mismatch to an error and requires https
    URLs. PROGRESSIVE and CONSERVATIVE keep warning-level mismatches
    non-blocking.
    """

    STRICT = "strict"
    PROGRESSIVE = "progressive"
    CONSERVATIVE = "conservative"


class SignatureOutcome(str, Enum):
    """Overall outcome of the signature verification stage.

    NO_SIGNATURES and SKIPPED are kept apart because the trust score treats
    an explicit skip as "not tested" while a card without signatures is
    scored as making no cryptographic claim.
    """

    VERIFIED = "verified"
    FAILED = "failed"
    NO_SIGNATURES = "no_signatures"
    SKIPPED = "skipped"


class CheckStatus(str, Enum):
    """Status of a single validation stage in the result's check list."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class IssueCategory(str, Enum):
    """Category of a live-probe issue.

    NETWORK means the endpoint could not be reached, PROTOCOL means it
    answered but the answer was not a valid A2A reply, TRANSPORT means the
    declared transport does not look like what is served.
    """

    NETWORK = "network"
    PROTOCOL = "protocol"
    TRANSPORT = "transport"


class MessageKind(str, Enum):
    """Discriminator values of A2A runtime messages."""

    TASK = "task"
    STATUS_UPDATE = "status-update"
    ARTIFACT_UPDATE = "artifact-update"
    MESSAGE = "message"


class ComplianceRating(str, Enum):
    PERFECT = "Perfect"
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class TrustRating(str, Enum):
    HIGHLY_TRUSTED = "Highly Trusted"
    TRUSTED = "Trusted"
    MODERATE_TRUST = "Moderate Trust"
    LOW_TRUST = "Low Trust"
    UNTRUSTED = "Untrusted"


class AvailabilityRating(str, Enum):
    FULLY_AVAILABLE = "Fully Available"
    AVAILABLE = "Available"
    DEGRADED = "Degraded"
    UNSTABLE = "Unstable"
    UNAVAILABLE = "Unavailable"
