"""Live probing of every interface an agent card declares.

For each interface, the primary first and then ``additionalInterfaces`` in
declaration order, ``TransportProbe``:

1. performs a connectivity GET (2xx/3xx is reachable, any status counts as a
   response, failures are recorded with their network code),
2. runs the transport checker registered for the declared transport,
3. on the primary only, exchanges a test message through ``LiveTester``.

No step short-circuits the next one and nothing is retried. Interfaces are
probed concurrently; results keep declaration order.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping
from typing import Any, Callable

import structlog

from cardcheck.config import ProbeOptions
from cardcheck.errors import NETWORK_TLS_ERROR, HttpError
from cardcheck.models.enums import IssueCategory, Severity, TransportProtocol
from cardcheck.models.probe import LiveProbeResult, ProbeIssue
from cardcheck.observability import get_logger
from cardcheck.probe.checkers import (
    CORS_HEADER,
    CheckerRegistry,
    create_default_registry,
    network_issue,
)
from cardcheck.probe.live import LiveTester
from cardcheck.transport.cancellation import CancelToken
from cardcheck.transport.http import HttpTransport
from cardcheck.utils.sanitization import sanitize_url
from cardcheck.utils.urls import is_https_url
from cardcheck.validators.schema import interface_bindings, primary_binding

NETWORK_HTTP_STATUS = "NETWORK_HTTP_STATUS"


class _InterfaceEvidence:
    """Mutable accumulator for one interface; frozen into a LiveProbeResult at the end."""

    def __init__(self, endpoint: str, transport: str, is_primary: bool) -> None:
        self.endpoint = endpoint
        self.transport = transport
        self.is_primary = is_primary
        self.issues: list[ProbeIssue] = []
        self.responded = False
        self.reachable = False
        self.status_code: int | None = None
        self.response_time_ms = 0.0
        self.has_cors = False
        self.content_type_ok = False
        self.transport_ok = False
        self.protocol_valid: bool | None = None
        self.raw_response: Any = None

    def add(self, issues: list[ProbeIssue]) -> None:
        """Record issues, skipping network codes this interface already reported."""
        seen = {i.code for i in self.issues if i.category is IssueCategory.NETWORK}
        for issue in issues:
            if issue.category is IssueCategory.NETWORK and issue.code in seen:
                continue
            self.issues.append(issue)
            if issue.category is IssueCategory.NETWORK:
                seen.add(issue.code)

    def result(self) -> LiveProbeResult:
        tls_failed = any(issue.code == NETWORK_TLS_ERROR for issue in self.issues)
        return LiveProbeResult(
            endpoint=self.endpoint,
            transport=self.transport,
            is_primary=self.is_primary,
            success=not any(issue.severity is Severity.ERROR for issue in self.issues),
            responded=self.responded,
            reachable=self.reachable,
            status_code=self.status_code,
            response_time_ms=self.response_time_ms,
            errors=list(self.issues),
            raw_response=self.raw_response,
            has_cors=self.has_cors,
            valid_tls=is_https_url(self.endpoint) and not tls_failed,
            content_type_ok=self.content_type_ok,
            protocol_valid=self.protocol_valid,
            transport_ok=self.transport_ok,
        )


def probe_targets(card: Mapping[str, Any]) -> list[tuple[str, str, bool]]:
    """(url, transport, is_primary) for every interface to probe.

    An alternate that repeats the primary url/transport pair is probed once,
    as the primary.
    """
    primary = primary_binding(card)
    targets: list[tuple[str, str, bool]] = []
    seen: set[tuple[str, str]] = set()
    if primary is not None:
        targets.append((primary[0], primary[1], True))
        seen.add((primary[0].rstrip("/"), primary[1]))
    for url, transport in interface_bindings(card):
        key = (url.rstrip("/"), transport)
        if key in seen:
            continue
        seen.add(key)
        targets.append((url, transport, False))
    return targets


class TransportProbe:
    """Probes the primary and alternate interfaces of a card.

    Example:
        >>> async with HttpTransport() as http:
        ...     results = await TransportProbe(http).probe(card)
        >>> [r.is_primary for r in results]
        [True, False]
    """

    def __init__(
        self,
        http: HttpTransport,
        *,
        registry: CheckerRegistry | None = None,
        clock: Callable[[], float] = time.perf_counter,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._http = http
        self._registry = registry or create_default_registry()
        self._clock = clock
        self._logger = logger or get_logger(__name__)
        self._live = LiveTester(http, clock=clock, logger=self._logger)

    async def probe(
        self,
        card: Mapping[str, Any],
        options: ProbeOptions | None = None,
        *,
        cancel: CancelToken | None = None,
    ) -> list[LiveProbeResult]:
        """Probe every declared interface.

        Args:
            card: Parsed agent card.
            options: Per-request timeout and live message settings.
            cancel: Cancellation token; a cancelled probe still returns results
                carrying ``NETWORK_CANCELLED``.

        Returns:
            One LiveProbeResult per interface, primary first, then alternates
            in declaration order. Empty if the card declares no URL at all.
        """
        options = options or ProbeOptions()
        targets = probe_targets(card)
        results = await asyncio.gather(
            *(
                self._probe_interface(card, url, transport, is_primary, options, cancel)
                for url, transport, is_primary in targets
            )
        )
        self._logger.info(
            "cardcheck.probe.completed",
            interfaces=len(results),
            failed=sum(1 for result in results if not result.success),
        )
        return list(results)

    async def _probe_interface(
        self,
        card: Mapping[str, Any],
        url: str,
        transport: str,
        is_primary: bool,
        options: ProbeOptions,
        cancel: CancelToken | None,
    ) -> LiveProbeResult:
        evidence = _InterfaceEvidence(url, transport, is_primary)
        log = self._logger.bind(endpoint=sanitize_url(url), transport=transport)

        await self._check_connectivity(evidence, options, cancel)

        outcome = await self._registry.check(
            self._http, url, transport, timeout=options.timeout_seconds, cancel=cancel, log=log
        )
        evidence.add(outcome.issues)
        evidence.transport_ok = outcome.transport_ok
        evidence.has_cors = evidence.has_cors or outcome.has_cors
        evidence.content_type_ok = outcome.content_type_ok

        if (
            is_primary
            and options.send_test_message
            and TransportProtocol.parse(transport) is not TransportProtocol.GRPC
        ):
            live = await self._live.test_agent(card, options, cancel=cancel)
            evidence.add(live.errors)
            evidence.protocol_valid = live.success
            evidence.raw_response = live.response
            evidence.has_cors = evidence.has_cors or live.has_cors
            if live.content_type and "json" in live.content_type.lower():
                evidence.content_type_ok = True

        result = evidence.result()
        log.debug(
            "cardcheck.probe.interface",
            is_primary=is_primary,
            success=result.success,
            error_codes=[issue.code for issue in result.errors],
        )
        return result

    async def _check_connectivity(
        self,
        evidence: _InterfaceEvidence,
        options: ProbeOptions,
        cancel: CancelToken | None,
    ) -> None:
        started = self._clock()
        try:
            response = await self._http.get(
                evidence.endpoint, timeout=options.timeout_seconds, cancel=cancel
            )
        except HttpError as exc:
            evidence.response_time_ms = round((self._clock() - started) * 1000, 2)
            evidence.add([network_issue(exc)])
            return

        evidence.responded = True
        evidence.status_code = response.status_code
        evidence.response_time_ms = response.elapsed_ms
        evidence.reachable = response.status_code < 400
        evidence.has_cors = CORS_HEADER in response.headers
        if not evidence.reachable:
            evidence.add(
                [
                    ProbeIssue(
                        code=NETWORK_HTTP_STATUS,
                        message=f"Endpoint returned HTTP {response.status_code}",
                        category=IssueCategory.NETWORK,
                        severity=Severity.WARNING,
                    )
                ]
            )
