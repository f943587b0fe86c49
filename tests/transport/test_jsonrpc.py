"""Tests for the JSON-RPC envelope models."""

from __future__ import annotations

import pytest

from cardcheck.transport.jsonrpc import (
    METHOD_NOT_FOUND,
    JsonRpcError,
    JsonRpcRequest,
    looks_like_jsonrpc,
    parse_response,
)


def test_request_payload() -> None:
    request = JsonRpcRequest(method="rpc.discover", id="probe-1")
    assert request.to_payload() == {
        "jsonrpc": "2.0",
        "method": "rpc.discover",
        "params": {},
        "id": "probe-1",
    }


class TestParseResponse:
    def test_result(self) -> None:
        response = parse_response({"jsonrpc": "2.0", "id": 1, "result": {"kind": "message"}})
        assert not response.is_error
        assert response.result == {"kind": "message"}

    def test_error(self) -> None:
        response = parse_response(
            {"jsonrpc": "2.0", "id": 1, "error": {"code": METHOD_NOT_FOUND, "message": "nope"}}
        )
        assert response.is_error
        assert response.error is not None
        assert response.error.code == METHOD_NOT_FOUND

    def test_not_an_object(self) -> None:
        with pytest.raises(ValueError, match="must be a JSON object"):
            parse_response([1, 2])

    def test_missing_result(self) -> None:
        with pytest.raises(ValueError, match="missing result field"):
            parse_response({"jsonrpc": "2.0", "id": 1})

    def test_malformed_error_object(self) -> None:
        with pytest.raises(ValueError, match="Malformed JSON-RPC response: 2 invalid field"):
            parse_response({"jsonrpc": "2.0", "error": {"code": "x"}})


class TestErrorDescription:
    def test_standard_message(self) -> None:
        error = JsonRpcError(code=METHOD_NOT_FOUND, message="Method not found")
        assert error.describe() == "Method not found (code -32601)"

    def test_custom_message_names_standard_meaning(self) -> None:
        error = JsonRpcError(code=METHOD_NOT_FOUND, message="No such method: tasks/list")
        assert error.describe() == "No such method: tasks/list (Method not found, code -32601)"

    def test_application_code(self) -> None:
        assert JsonRpcError(code=-32001, message="Task not found").describe() == (
            "Task not found (code -32001)"
        )


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ({"jsonrpc": "2.0"}, True),
        ({"error": {"code": -32601}}, True),
        ({"detail": "Not Found"}, False),
        ("not found", False),
        (None, False),
    ],
)
def test_looks_like_jsonrpc(payload: object, expected: bool) -> None:
    assert looks_like_jsonrpc(payload) is expected
