"""Live probing result models."""

from typing import Any

from pydantic import Field

from cardcheck.models.base import CardCheckBaseModel
from cardcheck.models.enums import IssueCategory, Severity


class ProbeIssue(CardCheckBaseModel):
    """A single problem observed while probing one interface."""

    code: str
    message: str
    category: IssueCategory
    severity: Severity = Severity.ERROR


class LiveProbeResult(CardCheckBaseModel):
    """Evidence gathered for one declared interface.

    Attributes:
        endpoint: Interface URL
        transport: Declared transport string (kept raw so unknown values survive)
        is_primary: True for the card's ``url`` / ``preferredTransport`` pair
        success: No error-severity issue was recorded
        responded: The server answered with any HTTP status
        reachable: The connectivity GET returned 2xx/3xx
        status_code: Status of the connectivity GET
        response_time_ms: Duration of the connectivity GET
        errors: Issues in the order they were observed
        raw_response: Parsed reply to the live test message, if one was sent
        has_cors: Any reply carried ``access-control-allow-origin``
        valid_tls: https URL with no TLS failure
        content_type_ok: Protocol replies were served as JSON / gRPC
        protocol_valid: Live reply passed runtime validation (None if not tested)
        transport_ok: The transport-specific checker accepted the endpoint
    """

    endpoint: str
    transport: str
    is_primary: bool
    success: bool
    responded: bool = False
    reachable: bool = False
    status_code: int | None = None
    response_time_ms: float = 0.0
    errors: list[ProbeIssue] = Field(default_factory=list)
    raw_response: Any | None = None
    has_cors: bool = False
    valid_tls: bool = False
    content_type_ok: bool = False
    protocol_valid: bool | None = None
    transport_ok: bool = False

    @property
    def has_protocol_errors(self) -> bool:
        return any(issue.category is IssueCategory.PROTOCOL for issue in self.errors)


class LiveTestResult(CardCheckBaseModel):
    """Outcome of sending one ``message/send`` to the primary endpoint."""

    success: bool
    endpoint: str
    transport: str
    response_time_ms: float = 0.0
    status_code: int | None = None
    content_type: str | None = None
    has_cors: bool = False
    errors: list[ProbeIssue] = Field(default_factory=list)
    request: dict[str, Any] | None = None
    response: Any | None = None
