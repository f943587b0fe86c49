"""JSON-RPC 2.0 envelope models used when talking to A2A agents.

A2A's JSONRPC transport wraps every operation in a JSON-RPC 2.0 request; the
probes send ``rpc.discover`` to detect an RPC server and ``message/send`` for
the live test.

Standard JSON-RPC Error Codes:
    -32700: Parse error (invalid JSON)
    -32600: Invalid request (malformed JSON-RPC)
    -32601: Method not found
    -32602: Invalid params
    -32603: Internal error

Example:
    >>> request = JsonRpcRequest(method="message/send", params={"message": {}}, id="t-1")
    >>> request.model_dump()["jsonrpc"]
    '2.0'
"""

from typing import Any, Literal

from pydantic import ConfigDict, Field, ValidationError

from cardcheck.models.base import CardCheckBaseModel

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

ERROR_MESSAGES: dict[int, str] = {
    PARSE_ERROR: "Parse error",
    INVALID_REQUEST: "Invalid request",
    METHOD_NOT_FOUND: "Method not found",
    INVALID_PARAMS: "Invalid params",
    INTERNAL_ERROR: "Internal error",
}

# A2A / discovery method names
DISCOVER_METHOD = "rpc.discover"
MESSAGE_SEND_METHOD = "message/send"

# Fixed request ids keep repeated validations byte-identical
DISCOVER_REQUEST_ID = "cardcheck-discover"
LIVE_TEST_REQUEST_ID = "cardcheck-live-test"


class JsonRpcError(CardCheckBaseModel):
    """JSON-RPC 2.0 error object."""

    model_config = ConfigDict(extra="allow")

    code: int = Field(description="Error code (negative integer)")
    message: str = Field(description="Short error description")
    data: Any | None = Field(default=None, description="Optional additional error information")

    def describe(self) -> str:
        standard = ERROR_MESSAGES.get(self.code)
        if standard and standard.lower() != self.message.lower():
            return f"{self.message} ({standard}, code {self.code})"
        return f"{self.message} (code {self.code})"


class JsonRpcRequest(CardCheckBaseModel):
    """JSON-RPC 2.0 request."""

    jsonrpc: Literal["2.0"] = Field(default="2.0")
    method: str
    params: dict[str, Any] = Field(default_factory=dict)
    id: str | int

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class JsonRpcResponse(CardCheckBaseModel):
    """JSON-RPC 2.0 reply: exactly one of ``result`` / ``error`` is meaningful."""

    model_config = ConfigDict(extra="allow")

    jsonrpc: str = "2.0"
    result: Any | None = None
    error: JsonRpcError | None = None
    id: str | int | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


def parse_response(payload: Any) -> JsonRpcResponse:
    """Parse a decoded JSON body as a JSON-RPC reply.

    Raises:
        ValueError: If the body is not an object carrying ``result`` or ``error``.
    """
    if not isinstance(payload, dict):
        raise ValueError("JSON-RPC response must be a JSON object")
    if "result" not in payload and "error" not in payload:
        raise ValueError("JSON-RPC response missing result field")
    try:
        return JsonRpcResponse.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(
            f"Malformed JSON-RPC response: {exc.error_count()} invalid field(s)"
        ) from exc


def looks_like_jsonrpc(payload: Any) -> bool:
    """True when a decoded body carries JSON-RPC markers (used on 404 replies)."""
    return isinstance(payload, dict) and (
        payload.get("jsonrpc") == "2.0" or "result" in payload or "error" in payload
    )
