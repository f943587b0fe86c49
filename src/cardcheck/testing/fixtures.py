"""Pytest fixtures and card builders for cardcheck tests.

Load with ``pytest_plugins = ["cardcheck.testing.fixtures"]``.

Fixtures (use with pytest):
    agent_card: A fully valid card (Compliance 100) as a dict.
    mock_server: Fresh MockAgentServer for the test.
    mock_http: HttpTransport routed to ``mock_server`` (async; closed after the test).
    signing_key: RSA private key with kid ``test-key-1``.
    validator: CardValidator on ``mock_http`` with frozen clocks.

Builders:
    build_agent_card(): Valid card dict with camelCase overrides.
    build_probe_result(): Healthy primary-interface probe evidence with overrides.
    sign_agent_card(): Copy of a card with one detached RS256 signature appended.
"""

from __future__ import annotations

import copy
from typing import Any, AsyncIterator, Callable

import pytest
from joserfc import jwk

from cardcheck.crypto.signing import sign_card
from cardcheck.models.probe import LiveProbeResult
from cardcheck.testing.mocks import DEFAULT_AGENT_URL, MockAgentServer
from cardcheck.transport.http import HttpTransport
from cardcheck.validator import CardValidator

DEFAULT_JWKS_URL = "https://keys.example.com/.well-known/jwks.json"
DEFAULT_KEY_ID = "test-key-1"
# 2026-01-01T00:00:00Z, the wall clock every fixture validator sees
FIXED_NOW = 1767225600.0


def fixed_clock(value: float = 0.0) -> Callable[[], float]:
    """A clock that never advances; makes durations and timings zero."""
    return lambda: value


def build_agent_card(**overrides: Any) -> dict[str, Any]:
    """Build a valid A2A v0.3.0 agent card.

    Overrides use the card's camelCase keys. Passing ``None`` removes the
    key, which makes "missing field" cases one-liners.

    Example:
        >>> card = build_agent_card(name=None, url="http://agent.example.com")
        >>> "name" in card
        False
    """
    card: dict[str, Any] = {
        "protocolVersion": "0.3.0",
        "name": "Test Agent",
        "description": "An agent used in cardcheck tests",
        "url": DEFAULT_AGENT_URL,
        "preferredTransport": "JSONRPC",
        "provider": {"organization": "Example Corp", "url": "https://example.com"},
        "version": "1.0.0",
        "capabilities": {"streaming": False, "pushNotifications": False},
        "defaultInputModes": ["text/plain"],
        "defaultOutputModes": ["text/plain"],
        "skills": [
            {
                "id": "echo",
                "name": "Echo",
                "description": "Echoes the input text",
                "tags": ["demo"],
            }
        ],
    }
    for key, value in overrides.items():
        if value is None:
            card.pop(key, None)
        else:
            card[key] = value
    return card


def build_probe_result(**overrides: Any) -> LiveProbeResult:
    """Probe evidence for a primary interface that passed every check."""
    fields: dict[str, Any] = {
        "endpoint": DEFAULT_AGENT_URL,
        "transport": "JSONRPC",
        "is_primary": True,
        "success": True,
        "responded": True,
        "reachable": True,
        "status_code": 200,
        "response_time_ms": 120.0,
        "has_cors": True,
        "valid_tls": True,
        "content_type_ok": True,
        "protocol_valid": True,
        "transport_ok": True,
    }
    fields.update(overrides)
    return LiveProbeResult(**fields)


def generate_signing_key(kid: str = DEFAULT_KEY_ID) -> jwk.RSAKey:
    return jwk.RSAKey.generate_key(2048, parameters={"kid": kid}, private=True)


def public_key_set(*keys: jwk.Key) -> dict[str, Any]:
    """JWKS document holding the public halves of ``keys``."""
    return {"keys": [key.as_dict(private=False) for key in keys]}


def sign_agent_card(
    card: dict[str, Any],
    key: jwk.Key,
    *,
    jku: str = DEFAULT_JWKS_URL,
    alg: str = "RS256",
    issued_at: int | None = None,
) -> dict[str, Any]:
    """Return a copy of ``card`` with one more detached signature."""
    signed = copy.deepcopy(card)
    entry = sign_card(signed, key, alg=alg, jku=jku, issued_at=issued_at)
    signed.setdefault("signatures", []).append(entry)
    return signed


@pytest.fixture
def agent_card() -> dict[str, Any]:
    return build_agent_card()


@pytest.fixture
def mock_server() -> MockAgentServer:
    """Create a fresh MockAgentServer for the test."""
    return MockAgentServer()


@pytest.fixture
async def mock_http(mock_server: MockAgentServer) -> AsyncIterator[HttpTransport]:
    """HttpTransport routed to ``mock_server`` with a frozen clock; closed after the test."""
    async with mock_server.http(clock=fixed_clock()) as http:
        yield http


@pytest.fixture(scope="session")
def signing_key() -> jwk.RSAKey:
    """RSA key shared by the session; generating 2048-bit keys is slow."""
    return generate_signing_key()


@pytest.fixture
def validator(mock_http: HttpTransport) -> CardValidator:
    """CardValidator on the mock transport with frozen clocks."""
    return CardValidator(mock_http, clock=fixed_clock(), now=fixed_clock(FIXED_NOW))


__all__ = [
    "DEFAULT_JWKS_URL",
    "DEFAULT_KEY_ID",
    "FIXED_NOW",
    "agent_card",
    "build_agent_card",
    "build_probe_result",
    "fixed_clock",
    "generate_signing_key",
    "mock_http",
    "mock_server",
    "public_key_set",
    "sign_agent_card",
    "signing_key",
    "validator",
]
