"""Network transport for cardcheck: HTTP client, cancellation and JSON-RPC envelopes."""

from cardcheck.transport.cancellation import CancelToken
from cardcheck.transport.http import HttpResponse, HttpTransport, classify_exception
from cardcheck.transport.jsonrpc import (
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResponse,
    looks_like_jsonrpc,
    parse_response,
)

__all__ = [
    "CancelToken",
    "HttpResponse",
    "HttpTransport",
    "JsonRpcError",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "classify_exception",
    "looks_like_jsonrpc",
    "parse_response",
]
