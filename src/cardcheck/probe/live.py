"""Live message exchange with an agent's primary endpoint.

``LiveTester`` sends one ``message/send`` carrying a short text message and
validates the reply with the runtime message validator. JSONRPC agents get
the JSON-RPC envelope; HTTP+JSON agents get the bare ``{message,
configuration}`` body. gRPC is not exercised because no gRPC framing is
implemented.

Every failure is reported as a ``ProbeIssue`` rather than raised.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any, Callable

import httpx
import structlog

from cardcheck.config import ProbeOptions
from cardcheck.errors import HttpError
from cardcheck.models.enums import IssueCategory, Severity, TransportProtocol
from cardcheck.models.probe import LiveTestResult, ProbeIssue
from cardcheck.observability import get_logger, sanitize_for_logging
from cardcheck.probe.checkers import CORS_HEADER, network_issue
from cardcheck.transport.cancellation import CancelToken
from cardcheck.transport.http import HttpTransport
from cardcheck.transport.jsonrpc import (
    LIVE_TEST_REQUEST_ID,
    MESSAGE_SEND_METHOD,
    JsonRpcRequest,
    parse_response,
)
from cardcheck.utils.sanitization import sanitize_url, truncate_body
from cardcheck.validators.runtime import validate_message
from cardcheck.validators.schema import primary_binding

PROTOCOL_NO_ENDPOINT = "PROTOCOL_NO_ENDPOINT"
PROTOCOL_UNSUPPORTED_TRANSPORT = "PROTOCOL_UNSUPPORTED_TRANSPORT"
PROTOCOL_HTTP_ERROR = "PROTOCOL_HTTP_ERROR"
PROTOCOL_INVALID_CONTENT_TYPE = "PROTOCOL_INVALID_CONTENT_TYPE"
PROTOCOL_INVALID_JSON = "PROTOCOL_INVALID_JSON"
PROTOCOL_JSONRPC_ERROR = "PROTOCOL_JSONRPC_ERROR"
PROTOCOL_MISSING_RESULT = "PROTOCOL_MISSING_RESULT"
PROTOCOL_INVALID_RESPONSE = "PROTOCOL_INVALID_RESPONSE"

ACCEPTED_OUTPUT_MODES = ["text/plain"]


def _protocol_issue(code: str, message: str) -> ProbeIssue:
    return ProbeIssue(
        code=code, message=message, category=IssueCategory.PROTOCOL, severity=Severity.ERROR
    )


def build_message(text: str) -> dict[str, Any]:
    """A user text message in A2A form."""
    return {"role": "user", "parts": [{"type": "text", "text": text}]}


def build_request(transport: TransportProtocol, text: str) -> dict[str, Any]:
    """Request body for a ``message/send`` over the given transport.

    Example:
        >>> build_request(TransportProtocol.JSONRPC, "hi")["method"]
        'message/send'
        >>> sorted(build_request(TransportProtocol.HTTP_JSON, "hi"))
        ['configuration', 'message']
    """
    params = {
        "message": build_message(text),
        "configuration": {"accepted_output_modes": list(ACCEPTED_OUTPUT_MODES)},
    }
    if transport is TransportProtocol.JSONRPC:
        return JsonRpcRequest(
            method=MESSAGE_SEND_METHOD, params=params, id=LIVE_TEST_REQUEST_ID
        ).to_payload()
    return params


class LiveTester:
    """Sends a test message to the card's primary endpoint.

    Example:
        >>> async with HttpTransport() as http:
        ...     result = await LiveTester(http).test_agent(card)
        >>> result.success
        True
    """

    def __init__(
        self,
        http: HttpTransport,
        *,
        clock: Callable[[], float] = time.perf_counter,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._http = http
        self._clock = clock
        self._logger = logger or get_logger(__name__)

    async def test_agent(
        self,
        card: Mapping[str, Any],
        options: ProbeOptions | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> LiveTestResult:
        """Exchange one message with the primary endpoint.

        Args:
            card: Parsed agent card.
            options: Timeout and message text.
            cancel: Cancellation token shared with the rest of the validation.

        Returns:
            LiveTestResult; ``success`` is True only when the reply is a valid
            runtime message.
        """
        options = options or ProbeOptions()
        binding = primary_binding(card)
        if binding is None:
            return LiveTestResult(
                success=False,
                endpoint="undefined",
                transport=str(card.get("preferredTransport") or TransportProtocol.JSONRPC.value),
                errors=[
                    _protocol_issue(
                        PROTOCOL_NO_ENDPOINT, "Agent card does not specify a valid endpoint URL"
                    )
                ],
            )

        endpoint, transport_name = binding
        transport = TransportProtocol.parse(transport_name)
        if transport is None or transport is TransportProtocol.GRPC:
            return LiveTestResult(
                success=False,
                endpoint=endpoint,
                transport=transport_name,
                errors=[
                    ProbeIssue(
                        code=PROTOCOL_UNSUPPORTED_TRANSPORT,
                        message=(
                            f"{transport_name} transport is not yet supported for live testing"
                        ),
                        category=IssueCategory.TRANSPORT,
                    )
                ],
            )

        request = build_request(transport, options.test_message)
        log = self._logger.bind(endpoint=sanitize_url(endpoint), transport=transport_name)
        started = self._clock()
        try:
            response = await self._http.post(
                endpoint,
                timeout=options.timeout_seconds,
                headers={"Accept": "application/json"},
                json=request,
                cancel=cancel,
            )
        except HttpError as exc:
            log.info("cardcheck.live.failed", error_code=exc.error_code)
            return LiveTestResult(
                success=False,
                endpoint=endpoint,
                transport=transport_name,
                response_time_ms=round((self._clock() - started) * 1000, 2),
                errors=[network_issue(exc)],
                request=request,
            )

        result = _LiveResultBuilder(
            endpoint=endpoint,
            transport=transport_name,
            request=request,
            response_time_ms=response.elapsed_ms,
            status_code=response.status_code,
            content_type=response.content_type or None,
            has_cors=CORS_HEADER in response.headers,
        )

        if not response.is_success:
            reason = httpx.codes.get_reason_phrase(response.status_code) or "Error"
            return result.fail(
                PROTOCOL_HTTP_ERROR, f"HTTP {response.status_code}: {reason}", log
            )
        if "application/json" not in response.content_type.lower():
            return result.fail(
                PROTOCOL_INVALID_CONTENT_TYPE,
                f"Expected JSON response, got {response.content_type or 'unknown'}",
                log,
            )
        try:
            body = response.json()
        except ValueError:
            log.debug("cardcheck.live.body", body=truncate_body(response.text))
            return result.fail(PROTOCOL_INVALID_JSON, "Response body is not valid JSON", log)

        if transport is TransportProtocol.JSONRPC:
            try:
                envelope = parse_response(body)
            except ValueError as exc:
                code = (
                    PROTOCOL_MISSING_RESULT if isinstance(body, dict) else PROTOCOL_INVALID_RESPONSE
                )
                return result.fail(code, str(exc), log, response=body)
            if envelope.error is not None:
                return result.fail(
                    PROTOCOL_JSONRPC_ERROR,
                    f"JSON-RPC error: {envelope.error.describe()}",
                    log,
                    response=body,
                )
            if envelope.result is None:
                return result.fail(
                    PROTOCOL_MISSING_RESULT,
                    "JSON-RPC response missing result field",
                    log,
                    response=body,
                )
            payload = envelope.result
        else:
            payload = body

        validation = validate_message(payload)
        if not validation.valid:
            issues = [_protocol_issue(issue.code, issue.message) for issue in validation.errors]
            log.info("cardcheck.live.invalid_reply", error_count=len(issues))
            if isinstance(payload, dict):
                log.debug("cardcheck.live.reply", reply=sanitize_for_logging(payload))
            return result.build(success=False, errors=issues, response=payload)

        log.info(
            "cardcheck.live.completed",
            kind=validation.kind.value if validation.kind else None,
            response_time_ms=response.elapsed_ms,
        )
        return result.build(success=True, errors=[], response=payload)


class _LiveResultBuilder:
    def __init__(self, **fields: Any) -> None:
        self._fields = fields

    def build(self, *, success: bool, errors: list[ProbeIssue], response: Any) -> LiveTestResult:
        return LiveTestResult(success=success, errors=errors, response=response, **self._fields)

    def fail(
        self,
        code: str,
        message: str,
        log: structlog.stdlib.BoundLogger,
        *,
        response: Any = None,
    ) -> LiveTestResult:
        log.info("cardcheck.live.failed", error_code=code)
        return self.build(
            success=False, errors=[_protocol_issue(code, message)], response=response
        )
