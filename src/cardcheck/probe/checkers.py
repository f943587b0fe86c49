"""Transport-specific endpoint checks.

Each declared transport has one ``TransportChecker`` implementation. The
checkers only look for evidence that the endpoint speaks the declared
transport; full protocol conformance is the live tester's job.

The CheckerRegistry maps transport kinds to checkers. A transport without a
registered checker fails closed with ``TRANSPORT_UNSUPPORTED``.

Example:
    >>> registry = create_default_registry()
    >>> registry.has_checker("GRPC")
    True
    >>> registry.has_checker("SOAP")
    False
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import structlog

from cardcheck.errors import HttpError
from cardcheck.models.enums import IssueCategory, Severity, TransportProtocol
from cardcheck.models.probe import ProbeIssue
from cardcheck.observability import get_logger
from cardcheck.transport.cancellation import CancelToken
from cardcheck.transport.http import HttpResponse, HttpTransport
from cardcheck.transport.jsonrpc import (
    DISCOVER_METHOD,
    DISCOVER_REQUEST_ID,
    JsonRpcRequest,
    looks_like_jsonrpc,
)

TRANSPORT_MISMATCH = "TRANSPORT_MISMATCH"
TRANSPORT_UNSUPPORTED = "TRANSPORT_UNSUPPORTED"

CORS_HEADER = "access-control-allow-origin"
GRPC_CONTENT_TYPE = "application/grpc"

logger = get_logger(__name__)


@dataclass
class CheckOutcome:
    """Evidence collected by one transport checker.

    Attributes:
        transport_ok: The endpoint looks like it serves the declared transport
        issues: Problems observed, in order
        has_cors: Some reply carried ``access-control-allow-origin``
        content_type_ok: A reply carried the content type the transport expects
    """

    transport_ok: bool = False
    issues: list[ProbeIssue] = field(default_factory=list)
    has_cors: bool = False
    content_type_ok: bool = False

    def observe(self, response: HttpResponse) -> None:
        if CORS_HEADER in response.headers:
            self.has_cors = True


def network_issue(exc: HttpError) -> ProbeIssue:
    """Convert a transport failure into a network-category probe issue."""
    return ProbeIssue(
        code=exc.error_code,
        message=exc.message,
        category=IssueCategory.NETWORK,
        severity=Severity.ERROR,
    )


def _mismatch(message: str, severity: Severity = Severity.ERROR) -> ProbeIssue:
    return ProbeIssue(
        code=TRANSPORT_MISMATCH,
        message=message,
        category=IssueCategory.TRANSPORT,
        severity=severity,
    )


class TransportChecker(ABC):
    """Checks that an endpoint answers like the transport it is declared with."""

    transport: TransportProtocol

    @abstractmethod
    async def check(
        self,
        http: HttpTransport,
        url: str,
        *,
        timeout: float,
        cancel: CancelToken | None = None,
    ) -> CheckOutcome: ...


class JsonRpcChecker(TransportChecker):
    """POSTs ``rpc.discover`` and accepts any JSON-RPC shaped reply.

    A 405, or a 404 whose body is still a JSON-RPC envelope, shows that an RPC
    server is present even if it does not implement discovery.
    """

    transport = TransportProtocol.JSONRPC

    async def check(
        self,
        http: HttpTransport,
        url: str,
        *,
        timeout: float,
        cancel: CancelToken | None = None,
    ) -> CheckOutcome:
        outcome = CheckOutcome()
        request = JsonRpcRequest(method=DISCOVER_METHOD, id=DISCOVER_REQUEST_ID)
        try:
            response = await http.post(
                url,
                timeout=timeout,
                headers={"Accept": "application/json"},
                json=request.to_payload(),
                cancel=cancel,
            )
        except HttpError as exc:
            outcome.issues.append(network_issue(exc))
            return outcome

        outcome.observe(response)
        body = response.json_or_none()
        if isinstance(body, dict) and ("result" in body or "error" in body):
            outcome.transport_ok = True
            outcome.content_type_ok = response.is_json
        elif response.status_code == 405:
            outcome.transport_ok = True
        elif response.status_code == 404 and looks_like_jsonrpc(body):
            outcome.transport_ok = True
            outcome.content_type_ok = response.is_json
        else:
            outcome.issues.append(
                _mismatch(
                    f"Endpoint did not answer {DISCOVER_METHOD} with a JSON-RPC reply "
                    f"(HTTP {response.status_code})"
                )
            )
        return outcome


class GrpcChecker(TransportChecker):
    """POSTs with gRPC headers and looks for a gRPC server's reaction.

    No gRPC framing is sent, so a compliant server typically rejects the call
    with 415 or 400, or answers with a gRPC content type or ``grpc-status``.
    """

    transport = TransportProtocol.GRPC

    async def check(
        self,
        http: HttpTransport,
        url: str,
        *,
        timeout: float,
        cancel: CancelToken | None = None,
    ) -> CheckOutcome:
        outcome = CheckOutcome()
        try:
            response = await http.post(
                url,
                timeout=timeout,
                headers={"Content-Type": GRPC_CONTENT_TYPE, "TE": "trailers"},
                content=b"",
                cancel=cancel,
            )
        except HttpError as exc:
            outcome.issues.append(network_issue(exc))
            return outcome

        outcome.observe(response)
        grpc_content = response.content_type.lower().startswith(GRPC_CONTENT_TYPE)
        outcome.content_type_ok = grpc_content
        if response.status_code in (400, 415) or grpc_content or "grpc-status" in response.headers:
            outcome.transport_ok = True
        elif response.status_code in (404, 405):
            outcome.issues.append(
                _mismatch(
                    f"gRPC request was rejected with HTTP {response.status_code}; "
                    "the endpoint may not serve gRPC",
                    Severity.WARNING,
                )
            )
        else:
            outcome.issues.append(
                _mismatch(
                    f"Endpoint did not respond like a gRPC server (HTTP {response.status_code})"
                )
            )
        return outcome


class HttpJsonChecker(TransportChecker):
    """GETs with ``Accept: application/json``; a 405 is retried once as POST."""

    transport = TransportProtocol.HTTP_JSON

    async def check(
        self,
        http: HttpTransport,
        url: str,
        *,
        timeout: float,
        cancel: CancelToken | None = None,
    ) -> CheckOutcome:
        outcome = CheckOutcome()
        headers = {"Accept": "application/json"}
        try:
            response = await http.get(url, timeout=timeout, headers=headers, cancel=cancel)
            outcome.observe(response)
            if response.status_code == 405:
                response = await http.post(
                    url, timeout=timeout, headers=headers, json={}, cancel=cancel
                )
                outcome.observe(response)
                accepted = response.is_success or response.status_code in (400, 422)
            else:
                accepted = response.is_success
        except HttpError as exc:
            outcome.issues.append(network_issue(exc))
            return outcome

        outcome.content_type_ok = response.is_json
        if accepted:
            outcome.transport_ok = True
        else:
            outcome.issues.append(
                _mismatch(f"HTTP+JSON endpoint returned HTTP {response.status_code}")
            )
        return outcome


class CheckerRegistry:
    """Mapping of transport kinds to checkers.

    Example:
        >>> registry = CheckerRegistry()
        >>> registry.register(JsonRpcChecker())
        >>> registry.get("JSONRPC").transport
        <TransportProtocol.JSONRPC: 'JSONRPC'>
    """

    def __init__(self) -> None:
        self._checkers: dict[TransportProtocol, TransportChecker] = {}

    def register(self, checker: TransportChecker) -> None:
        is_override = checker.transport in self._checkers
        self._checkers[checker.transport] = checker
        logger.debug(
            "cardcheck.checker.registered",
            transport=checker.transport.value,
            checker=type(checker).__name__,
            is_override=is_override,
        )

    def has_checker(self, transport: str) -> bool:
        return self.get(transport) is not None

    def get(self, transport: str) -> TransportChecker | None:
        kind = TransportProtocol.parse(transport)
        if kind is None:
            return None
        return self._checkers.get(kind)

    async def check(
        self,
        http: HttpTransport,
        url: str,
        transport: str,
        *,
        timeout: float,
        cancel: CancelToken | None = None,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> CheckOutcome:
        """Run the checker registered for ``transport``.

        Unknown transports produce a failed outcome carrying a
        ``TRANSPORT_UNSUPPORTED`` error.
        """
        checker = self.get(transport)
        if checker is None:
            (log or logger).warning("cardcheck.checker.not_found", transport=transport)
            return CheckOutcome(
                issues=[
                    ProbeIssue(
                        code=TRANSPORT_UNSUPPORTED,
                        message=f"Transport '{transport}' is not supported for probing",
                        category=IssueCategory.TRANSPORT,
                    )
                ]
            )
        return await checker.check(http, url, timeout=timeout, cancel=cancel)


def create_default_registry() -> CheckerRegistry:
    """Registry with checkers for JSONRPC, GRPC and HTTP+JSON."""
    registry = CheckerRegistry()
    registry.register(JsonRpcChecker())
    registry.register(GrpcChecker())
    registry.register(HttpJsonChecker())
    return registry
