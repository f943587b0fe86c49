"""Thin async HTTP client used by every network-facing stage.

``HttpTransport`` wraps an ``httpx.AsyncClient`` and adds three things the
validators rely on:

- a per-request timeout, enforced around the whole exchange, not only socket I/O
- cooperative cancellation through a ``CancelToken``
- normalized, stable error codes for transport failures (timeout, DNS,
  connection refused, TLS, cancelled), raised as ``HttpError``

HTTP error statuses are NOT raised: probes need to inspect 404/405/415
replies. Call ``HttpResponse.raise_for_status()`` where a status error is a
failure.

Example:
    >>> async with HttpTransport() as http:
    ...     response = await http.get("https://agent.example.com/", timeout=5.0)
    ...     response.status_code
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import socket
import ssl
import time
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Callable

import httpx
import structlog

from cardcheck.errors import (
    HttpError,
    NETWORK_CANCELLED,
    NETWORK_CONNECTION_REFUSED,
    NETWORK_DNS_FAILURE,
    NETWORK_ERROR,
    NETWORK_TIMEOUT,
    NETWORK_TLS_ERROR,
)
from cardcheck.models.constants import DEFAULT_TIMEOUT_SECONDS, VALIDATOR_VERSION
from cardcheck.observability import get_logger
from cardcheck.transport.cancellation import CancelToken
from cardcheck.utils.sanitization import sanitize_url

USER_AGENT = f"cardcheck/{VALIDATOR_VERSION}"

_DNS_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated",
    "name resolution",
)
_TLS_MARKERS = ("certificate", "ssl", "tls")


@dataclass(frozen=True)
class HttpResponse:
    """A fully read HTTP response.

    Attributes:
        url: Requested URL
        status_code: HTTP status
        headers: Response headers (case-insensitive)
        content: Raw body
        http_version: e.g. "HTTP/1.1" or "HTTP/2"
        elapsed_ms: Time from request start to body read, on the transport's clock
    """

    url: str
    status_code: int
    headers: httpx.Headers
    content: bytes
    http_version: str
    elapsed_ms: float

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    @property
    def is_json(self) -> bool:
        return "json" in self.content_type.lower()

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Parse the body as JSON.

        Raises:
            ValueError: If the body is not valid JSON.
        """
        return json.loads(self.content)

    def json_or_none(self) -> Any:
        try:
            return self.json()
        except ValueError:
            return None

    def raise_for_status(self) -> None:
        """Raise HttpError with a stable status code unless the status is 2xx/3xx."""
        if self.status_code >= 400:
            raise HttpError.from_status(self.status_code, sanitize_url(self.url))


def _exception_chain(exc: BaseException) -> list[BaseException]:
    chain: list[BaseException] = []
    current: BaseException | None = exc
    while current is not None and current not in chain:
        chain.append(current)
        current = current.__cause__ or current.__context__
    return chain


def classify_exception(exc: Exception, url: str, timeout: float) -> HttpError:
    """Map an httpx exception to an HttpError with a stable network code."""
    safe_url = sanitize_url(url)
    if isinstance(exc, httpx.TimeoutException):
        return HttpError(
            NETWORK_TIMEOUT,
            f"Request timed out after {int(timeout * 1000)}ms",
            url=safe_url,
        )

    chain = _exception_chain(exc)
    text = " ".join(str(e) for e in chain).lower()

    if any(isinstance(e, ssl.SSLError) for e in chain) or any(m in text for m in _TLS_MARKERS):
        return HttpError(NETWORK_TLS_ERROR, f"TLS certificate error: {exc}", url=safe_url)
    if any(isinstance(e, socket.gaierror) for e in chain) or any(m in text for m in _DNS_MARKERS):
        return HttpError(
            NETWORK_DNS_FAILURE, "DNS resolution failed - host not found", url=safe_url
        )
    if any(isinstance(e, ConnectionRefusedError) for e in chain) or "refused" in text:
        return HttpError(
            NETWORK_CONNECTION_REFUSED,
            "Connection refused - endpoint unreachable",
            url=safe_url,
        )
    return HttpError(NETWORK_ERROR, f"Network error: {exc}", url=safe_url)


class HttpTransport:
    """Async GET/POST capability with timeouts, cancellation and error codes.

    Owns its ``httpx.AsyncClient`` unless one is injected. Tests usually pass
    ``transport=httpx.MockTransport(handler)``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        http2: bool = True,
        clock: Callable[[], float] = time.perf_counter,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            client: Pre-built client to use (not closed by ``aclose``).
            transport: httpx transport for a client created here (testing).
            http2: Negotiate HTTP/2 when the client is created here.
            clock: Clock (seconds) used to time requests.
            logger: Logger for request events.
        """
        self._owns_client = client is None
        if client is None:
            kwargs: dict[str, Any] = {
                "headers": {"User-Agent": USER_AGENT},
                "follow_redirects": False,
            }
            if transport is not None:
                kwargs["transport"] = transport
            else:
                kwargs["http2"] = http2
            client = httpx.AsyncClient(**kwargs)
        self._client = client
        self._clock = clock
        self._logger = logger or get_logger(__name__)

    async def __aenter__(self) -> HttpTransport:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def bind(self, logger: structlog.stdlib.BoundLogger) -> HttpTransport:
        """Return a transport sharing this client but logging through ``logger``."""
        bound = HttpTransport(self._client, clock=self._clock, logger=logger)
        bound._owns_client = False
        return bound

    async def get(
        self,
        url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        headers: dict[str, str] | None = None,
        cancel: CancelToken | None = None,
    ) -> HttpResponse:
        return await self.request("GET", url, timeout=timeout, headers=headers, cancel=cancel)

    async def post(
        self,
        url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        headers: dict[str, str] | None = None,
        json: Any = None,
        content: bytes | None = None,
        cancel: CancelToken | None = None,
    ) -> HttpResponse:
        return await self.request(
            "POST",
            url,
            timeout=timeout,
            headers=headers,
            json=json,
            content=content,
            cancel=cancel,
        )

    async def request(
        self,
        method: str,
        url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        headers: dict[str, str] | None = None,
        json: Any = None,
        content: bytes | None = None,
        cancel: CancelToken | None = None,
    ) -> HttpResponse:
        """Send one request and read the whole body.

        Args:
            method: HTTP method.
            url: Absolute URL.
            timeout: Seconds allowed for the whole exchange.
            headers: Extra request headers.
            json: JSON body (mutually exclusive with ``content``).
            content: Raw body.
            cancel: Token that aborts the request when cancelled.

        Returns:
            The response, whatever its status.

        Raises:
            HttpError: On timeout, DNS failure, refused connection, TLS error,
                cancellation or any other transport failure.
        """
        safe_url = sanitize_url(url)
        if cancel is not None:
            if cancel.cancelled:
                raise HttpError(NETWORK_CANCELLED, "Request cancelled", url=safe_url)
            remaining = cancel.remaining()
            if remaining is not None:
                timeout = min(timeout, remaining)

        started = self._clock()
        request_task = asyncio.ensure_future(
            self._send(method, url, timeout=timeout, headers=headers, json=json, content=content)
        )
        waiters: set[asyncio.Future[Any]] = {request_task}
        cancel_task: asyncio.Future[Any] | None = None
        if cancel is not None:
            cancel_task = asyncio.ensure_future(cancel.wait())
            waiters.add(cancel_task)

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            await _discard(request_task)
            if cancel_task is not None:
                await _discard(cancel_task)
            raise

        if cancel_task is not None and request_task not in done:
            await _discard(cancel_task)
        if request_task not in done:
            await _discard(request_task)
            if cancel is not None and cancel.cancelled:
                error = HttpError(NETWORK_CANCELLED, "Request cancelled", url=safe_url)
            else:
                error = HttpError(
                    NETWORK_TIMEOUT,
                    f"Request timed out after {int(timeout * 1000)}ms",
                    url=safe_url,
                )
            self._logger.debug(
                "cardcheck.http.failed", method=method, url=safe_url, error_code=error.error_code
            )
            raise error
        if cancel_task is not None:
            await _discard(cancel_task)

        try:
            response = request_task.result()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            error = classify_exception(exc, url, timeout)
            self._logger.debug(
                "cardcheck.http.failed", method=method, url=safe_url, error_code=error.error_code
            )
            raise error from exc

        elapsed_ms = round((self._clock() - started) * 1000, 2)
        self._logger.debug(
            "cardcheck.http.response",
            method=method,
            url=safe_url,
            status_code=response.status_code,
            elapsed_ms=elapsed_ms,
        )
        return HttpResponse(
            url=url,
            status_code=response.status_code,
            headers=response.headers,
            content=response.content,
            http_version=response.http_version,
            elapsed_ms=elapsed_ms,
        )

    async def _send(
        self,
        method: str,
        url: str,
        *,
        timeout: float,
        headers: dict[str, str] | None,
        json: Any,
        content: bytes | None,
    ) -> httpx.Response:
        kwargs: dict[str, Any] = {"headers": headers, "timeout": httpx.Timeout(timeout)}
        if json is not None:
            kwargs["json"] = json
        elif content is not None:
            kwargs["content"] = content
        response = await self._client.request(method, url, **kwargs)
        await response.aread()
        return response


async def _discard(task: asyncio.Future[Any]) -> None:
    """Cancel a task and wait for it so no request is left dangling."""
    if not task.done():
        task.cancel()
    with contextlib.suppress(asyncio.CancelledError, httpx.HTTPError, httpx.InvalidURL):
        await task
