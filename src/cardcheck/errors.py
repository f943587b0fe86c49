"""cardcheck error taxonomy.

These exceptions are raised by the low-level building blocks (HTTP transport,
key-set fetching, card loading). The validation stages catch them and turn
them into findings, so callers of ``CardValidator`` only ever see them for
contract violations.
"""
from __future__ import annotations

from typing import Any

# Stable HTTP status -> error code mapping used by HttpError.from_status
HTTP_STATUS_CODES: dict[int, str] = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    408: "TIMEOUT",
    429: "RATE_LIMITED",
    500: "INTERNAL_SERVER_ERROR",
    502: "BAD_GATEWAY",
    503: "SERVICE_UNAVAILABLE",
    504: "GATEWAY_TIMEOUT",
}

HTTP_ERROR = "HTTP_ERROR"

# Transport failure codes (no HTTP status available)
NETWORK_TIMEOUT = "NETWORK_TIMEOUT"
NETWORK_DNS_FAILURE = "NETWORK_DNS_FAILURE"
NETWORK_CONNECTION_REFUSED = "NETWORK_CONNECTION_REFUSED"
NETWORK_TLS_ERROR = "NETWORK_TLS_ERROR"
NETWORK_CANCELLED = "NETWORK_CANCELLED"
NETWORK_ERROR = "NETWORK_ERROR"

NETWORK_CODES = frozenset(
    {
        NETWORK_TIMEOUT,
        NETWORK_DNS_FAILURE,
        NETWORK_CONNECTION_REFUSED,
        NETWORK_TLS_ERROR,
        NETWORK_CANCELLED,
        NETWORK_ERROR,
    }
)


class CardCheckError(Exception):
    """Base exception for all cardcheck errors.

    Attributes:
        code: Error code following the cardcheck:<area>/<reason> pattern
        message: Human-readable error message
        details: Optional additional error context
    """

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to ``{code, message, details}`` dict."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class HttpError(CardCheckError):
    """Raised by the HTTP transport on transport failures or error statuses.

    ``error_code`` is one of the stable network codes (``NETWORK_TIMEOUT``,
    ``NETWORK_DNS_FAILURE``...) or, for status errors, one of the values of
    ``HTTP_STATUS_CODES`` / ``HTTP_ERROR``.

    Attributes:
        error_code: Stable classification of the failure
        url: Request URL (credentials masked)
        status_code: HTTP status when the server replied, else None
    """

    def __init__(
        self,
        error_code: str,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code=f"cardcheck:transport/{error_code.lower()}",
            message=message,
            details={
                "error_code": error_code,
                "url": url,
                "status_code": status_code,
                **(details or {}),
            },
        )
        self.error_code = error_code
        self.url = url
        self.status_code = status_code

    @property
    def is_network_error(self) -> bool:
        return self.error_code in NETWORK_CODES

    @classmethod
    def from_status(cls, status_code: int, url: str | None = None) -> HttpError:
        error_code = HTTP_STATUS_CODES.get(status_code, HTTP_ERROR)
        return cls(
            error_code,
            f"HTTP {status_code}: {error_code.replace('_', ' ').lower()}",
            url=url,
            status_code=status_code,
        )


class InsecureKeySetURLError(CardCheckError):
    """Raised when a key set is requested over anything but https."""

    def __init__(self, url: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="cardcheck:crypto/insecure_jwks_uri",
            message="JWKS URI must use HTTPS for security",
            details={"url": url, **(details or {})},
        )
        self.url = url


class SignatureVerificationError(CardCheckError):
    """Raised when a single detached card signature cannot be verified.

    The signature verifier catches this and records it as a failed verdict.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="cardcheck:crypto/signature_verification_failed",
            message=message,
            details=details or {},
        )


class CardLoadError(CardCheckError):
    """Raised when a card source cannot be resolved into a JSON object.

    Attributes:
        source: File path or URL that was requested
        reason: One of ``not_found``, ``malformed_json``, ``fetch_failed``
    """

    def __init__(
        self, source: str, reason: str, message: str, details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(
            code=f"cardcheck:discovery/{reason}",
            message=message,
            details={"source": source, "reason": reason, **(details or {})},
        )
        self.source = source
        self.reason = reason
