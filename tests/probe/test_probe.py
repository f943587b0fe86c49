"""Tests for TransportProbe across primary and alternate interfaces."""

from __future__ import annotations

import httpx
import pytest

from cardcheck.config import ProbeOptions
from cardcheck.errors import NETWORK_CANCELLED, NETWORK_CONNECTION_REFUSED
from cardcheck.models.enums import Severity
from cardcheck.probe.probe import NETWORK_HTTP_STATUS, TransportProbe, probe_targets
from cardcheck.testing import MockAgentServer
from cardcheck.testing.fixtures import build_agent_card, fixed_clock
from cardcheck.testing.mocks import DEFAULT_AGENT_URL, agent_reply
from cardcheck.transport.cancellation import CancelToken
from cardcheck.transport.http import HttpTransport

GRPC_URL = "https://grpc.example.com/a2a"
REST_URL = "https://agent.example.com/rest"


@pytest.fixture
def probe(mock_http: HttpTransport) -> TransportProbe:
    return TransportProbe(mock_http, clock=fixed_clock())


def multi_transport_card() -> dict:
    return build_agent_card(
        additionalInterfaces=[
            {"url": DEFAULT_AGENT_URL, "transport": "JSONRPC"},
            {"url": GRPC_URL, "transport": "GRPC"},
            {"url": REST_URL, "transport": "HTTP+JSON"},
        ]
    )


class TestProbeTargets:
    def test_primary_first_and_duplicates_collapsed(self) -> None:
        assert probe_targets(multi_transport_card()) == [
            (DEFAULT_AGENT_URL, "JSONRPC", True),
            (GRPC_URL, "GRPC", False),
            (REST_URL, "HTTP+JSON", False),
        ]

    def test_no_url(self) -> None:
        assert probe_targets(build_agent_card(url=None)) == []


class TestHealthyAgent:
    async def test_primary_evidence(
        self, probe: TransportProbe, mock_server: MockAgentServer
    ) -> None:
        mock_server.serve_jsonrpc_agent()

        [result] = await probe.probe(build_agent_card())

        assert result.is_primary
        assert result.success
        assert result.responded
        assert result.reachable
        assert result.status_code == 200
        assert result.has_cors
        assert result.valid_tls
        assert result.content_type_ok
        assert result.transport_ok
        assert result.protocol_valid is True
        assert result.raw_response == agent_reply()

    async def test_every_interface_is_probed_in_order(
        self, probe: TransportProbe, mock_server: MockAgentServer
    ) -> None:
        mock_server.serve_jsonrpc_agent()
        mock_server.serve_grpc_endpoint(GRPC_URL)
        mock_server.set_json(REST_URL, {"status": "ok"})

        results = await probe.probe(multi_transport_card())

        assert [(r.endpoint, r.is_primary) for r in results] == [
            (DEFAULT_AGENT_URL, True),
            (GRPC_URL, False),
            (REST_URL, False),
        ]
        assert all(r.transport_ok for r in results)
        assert [r.protocol_valid for r in results] == [True, None, None]

    async def test_without_test_message(
        self, probe: TransportProbe, mock_server: MockAgentServer
    ) -> None:
        mock_server.serve_jsonrpc_agent()

        [result] = await probe.probe(
            build_agent_card(), ProbeOptions(send_test_message=False)
        )

        assert result.protocol_valid is None
        assert [request.method for request in mock_server.requests] == ["GET", "POST"]


class TestFailures:
    async def test_unreachable_primary_reports_network_code_once(
        self, probe: TransportProbe, mock_server: MockAgentServer
    ) -> None:
        mock_server.set_failure(DEFAULT_AGENT_URL, httpx.ConnectError("Connection refused"))

        [result] = await probe.probe(build_agent_card())

        assert not result.success
        assert not result.responded
        assert [issue.code for issue in result.errors] == [NETWORK_CONNECTION_REFUSED]
        assert result.protocol_valid is False

    async def test_error_status_on_get_is_a_warning(
        self, probe: TransportProbe, mock_server: MockAgentServer
    ) -> None:
        mock_server.set_status(REST_URL, 503)

        [result] = await probe.probe(
            build_agent_card(url=REST_URL, preferredTransport="HTTP+JSON"),
            ProbeOptions(send_test_message=False),
        )

        assert result.responded
        assert not result.reachable
        assert result.errors[0].code == NETWORK_HTTP_STATUS
        assert result.errors[0].severity is Severity.WARNING

    async def test_plain_http_endpoint_has_no_valid_tls(
        self, probe: TransportProbe, mock_server: MockAgentServer
    ) -> None:
        url = "http://agent.example.com/a2a"
        mock_server.serve_jsonrpc_agent(url)

        [result] = await probe.probe(build_agent_card(url=url))

        assert result.success
        assert not result.valid_tls

    async def test_cancelled_probe_still_returns_results(
        self, probe: TransportProbe, mock_server: MockAgentServer
    ) -> None:
        mock_server.serve_jsonrpc_agent()
        token = CancelToken()
        token.cancel()

        [result] = await probe.probe(build_agent_card(), cancel=token)

        assert [issue.code for issue in result.errors] == [NETWORK_CANCELLED]
        assert mock_server.requests == []
