"""Agent card resolution from a local file or a URL.

URLs follow A2A discovery: a URL that already points at ``/.well-known/agent*``
is fetched as is; any other URL is tried directly, then at
``/.well-known/agent-card.json`` on the same origin, then at the legacy
``/.well-known/agent.json``. A card found at the legacy path is flagged so
the validator can warn about it.

Failures raise ``CardLoadError`` with reason ``not_found``,
``malformed_json`` or ``fetch_failed``. Nothing is retried.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

import structlog

from cardcheck.errors import CardLoadError, HttpError
from cardcheck.models.constants import (
    DEFAULT_TIMEOUT_SECONDS,
    LEGACY_AGENT_CARD_PATH,
    WELLKNOWN_AGENT_CARD_PATH,
)
from cardcheck.observability import get_logger
from cardcheck.transport.cancellation import CancelToken
from cardcheck.transport.http import HttpTransport
from cardcheck.utils.sanitization import sanitize_url

WELLKNOWN_PREFIX = "/.well-known/agent"
"""Any path containing this is treated as a discovery document URL."""

# Members that identify a direct URL reply as an agent card
_CARD_MARKERS = ("name", "protocolVersion", "provider")


@dataclass(frozen=True)
class DiscoveredCard:
    """A resolved card and where it came from.

    Attributes:
        card: The parsed JSON object
        source: What the caller asked for (path or URL)
        discovery_url: URL the card was finally read from (None for files)
        used_legacy_endpoint: The card was served at ``/.well-known/agent.json``
    """

    card: dict[str, Any]
    source: str
    discovery_url: str | None = None
    used_legacy_endpoint: bool = False


def is_url_source(source: str) -> bool:
    """True when a source string names a URL or a bare host rather than a file.

    Example:
        >>> is_url_source("https://agent.example.com")
        True
        >>> is_url_source("agent.example.com")
        True
        >>> is_url_source("./cards/agent.json")
        False
    """
    if "://" in source:
        return True
    return (
        "." in source
        and "/" not in source
        and "\\" not in source
        and not source.endswith(".json")
        and not Path(source).exists()
    )


def normalize_url(source: str) -> str:
    """Prefix bare hosts with https://."""
    return source if "://" in source else f"https://{source}"


def wellknown_url(url: str, path: str = WELLKNOWN_AGENT_CARD_PATH) -> str:
    """Discovery URL on the same origin as ``url``.

    Example:
        >>> wellknown_url("https://agent.example.com/a2a/v1")
        'https://agent.example.com/.well-known/agent-card.json'
    """
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}{path}"


def _parse_object(text: str, source: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise CardLoadError(
            source, "malformed_json", f"Agent card is not valid JSON: {exc}"
        ) from exc
    if not isinstance(data, dict):
        raise CardLoadError(source, "malformed_json", "Agent card must be a JSON object")
    return data


def load_card_file(path: str | Path) -> DiscoveredCard:
    """Read and parse a local agent card file.

    Raises:
        CardLoadError: ``not_found`` if the file cannot be read,
            ``malformed_json`` if it is not a JSON object.
    """
    source = str(path)
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise CardLoadError(
            source, "not_found", f"Failed to read agent card file: {exc}"
        ) from exc
    return DiscoveredCard(card=_parse_object(text, source), source=source)


class CardFetcher:
    """Fetches agent cards over HTTP, following well-known discovery."""

    def __init__(
        self,
        http: HttpTransport,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        cancel: CancelToken | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._http = http
        self._timeout = timeout
        self._cancel = cancel
        self._logger = logger or get_logger(__name__)

    async def _get_card(self, url: str, source: str) -> dict[str, Any]:
        try:
            response = await self._http.get(
                url,
                timeout=self._timeout,
                headers={"Accept": "application/json"},
                cancel=self._cancel,
            )
            response.raise_for_status()
        except HttpError as exc:
            raise CardLoadError(
                source,
                "not_found" if exc.status_code == 404 else "fetch_failed",
                f"Failed to fetch agent card from {sanitize_url(url)}: {exc.message}",
                details={"url": sanitize_url(url), "error_code": exc.error_code},
            ) from exc
        return _parse_object(response.text, source)

    async def fetch(self, source: str) -> DiscoveredCard:
        """Resolve a URL (or bare host) to an agent card.

        Raises:
            CardLoadError: When every discovery location failed; the error of
                the last attempt is raised.
        """
        url = normalize_url(source)
        if WELLKNOWN_PREFIX in url:
            card = await self._get_card(url, source)
            return self._found(card, source, url, legacy="/agent.json" in url)

        try:
            card = await self._get_card(url, source)
        except CardLoadError as exc:
            self._logger.debug("cardcheck.discovery.direct_failed", reason=exc.reason)
        else:
            if any(card.get(marker) for marker in _CARD_MARKERS):
                return self._found(card, source, url, legacy=False)

        current = wellknown_url(url)
        try:
            card = await self._get_card(current, source)
        except CardLoadError as exc:
            self._logger.debug("cardcheck.discovery.wellknown_failed", reason=exc.reason)
        else:
            return self._found(card, source, current, legacy=False)

        legacy = wellknown_url(url, LEGACY_AGENT_CARD_PATH)
        card = await self._get_card(legacy, source)
        return self._found(card, source, legacy, legacy=True)

    def _found(
        self, card: dict[str, Any], source: str, url: str, *, legacy: bool
    ) -> DiscoveredCard:
        self._logger.info(
            "cardcheck.discovery.resolved", url=sanitize_url(url), legacy_endpoint=legacy
        )
        return DiscoveredCard(
            card=card, source=source, discovery_url=url, used_legacy_endpoint=legacy
        )


async def resolve_card(
    source: str,
    http: HttpTransport,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    cancel: CancelToken | None = None,
    logger: structlog.stdlib.BoundLogger | None = None,
) -> DiscoveredCard:
    """Resolve a file path or URL to a parsed agent card.

    Raises:
        CardLoadError: ``not_found``, ``malformed_json`` or ``fetch_failed``.
    """
    if is_url_source(source):
        fetcher = CardFetcher(http, timeout=timeout, cancel=cancel, logger=logger)
        return await fetcher.fetch(source)
    return load_card_file(source)
