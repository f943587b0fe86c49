"""JWKS fetching for agent card signature verification.

Key sets are fetched through ``HttpTransport`` and imported with joserfc.
Only https key-set URLs are accepted: key distribution over plaintext HTTP is
never trusted, whatever the validation strictness.

Caching is per verification call (``KeySetCache``): each unique URL is
fetched at most once, and a failed fetch is remembered so that two signatures
pointing at the same broken URL report the same error without a second
request.
"""

from __future__ import annotations

import structlog
from joserfc import jwk
from joserfc.errors import JoseError

from cardcheck.errors import CardCheckError, HttpError, InsecureKeySetURLError
from cardcheck.models.constants import DEFAULT_TIMEOUT_SECONDS
from cardcheck.observability import get_logger
from cardcheck.transport.cancellation import CancelToken
from cardcheck.transport.http import HttpTransport
from cardcheck.utils.sanitization import sanitize_url
from cardcheck.utils.urls import is_https_url


class KeySetFetchError(CardCheckError):
    """Raised when a key set cannot be fetched or imported."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(
            code="cardcheck:crypto/jwks_fetch_failed",
            message=f"Failed to fetch JWKS from {sanitize_url(url)}: {reason}",
            details={"url": sanitize_url(url)},
        )
        self.url = url
        self.reason = reason


async def fetch_key_set(
    http: HttpTransport,
    jwks_uri: str,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    cancel: CancelToken | None = None,
    logger: structlog.stdlib.BoundLogger | None = None,
) -> jwk.KeySet:
    """Fetch a JWKS document and return a joserfc KeySet.

    Args:
        http: Transport used for the request.
        jwks_uri: Key set URL; must be https.
        timeout: Request timeout in seconds.
        cancel: Optional cancellation token.
        logger: Logger for the fetch event.

    Returns:
        The imported KeySet.

    Raises:
        InsecureKeySetURLError: If the URL is not https.
        KeySetFetchError: On network errors, error statuses, invalid JSON or
            an invalid key set.
    """
    log = logger or get_logger(__name__)
    if not is_https_url(jwks_uri):
        raise InsecureKeySetURLError(sanitize_url(jwks_uri))

    try:
        response = await http.get(
            jwks_uri,
            timeout=timeout,
            headers={"Accept": "application/json"},
            cancel=cancel,
        )
        response.raise_for_status()
        data = response.json()
    except HttpError as exc:
        raise KeySetFetchError(jwks_uri, exc.message) from exc
    except ValueError as exc:
        raise KeySetFetchError(jwks_uri, "response is not valid JSON") from exc

    if not isinstance(data, dict) or not isinstance(data.get("keys"), list):
        raise KeySetFetchError(jwks_uri, "response is not a JWKS document")
    try:
        key_set = jwk.KeySet.import_key_set(data)
    except (JoseError, ValueError, TypeError) as exc:
        raise KeySetFetchError(jwks_uri, f"invalid key set ({exc})") from exc

    log.info("cardcheck.jwks.fetched", uri=sanitize_url(jwks_uri), key_count=len(key_set.keys))
    return key_set


class KeySetCache:
    """Fetch-once cache of key sets, scoped to a single verification call."""

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
        self._logger = logger
        self._entries: dict[str, jwk.KeySet | CardCheckError] = {}

    @property
    def fetched_urls(self) -> list[str]:
        return list(self._entries)

    async def get(self, jwks_uri: str) -> jwk.KeySet:
        """Return the key set for a URL, fetching it on first use.

        Raises:
            CardCheckError: The (cached) fetch failure for this URL.
        """
        if jwks_uri not in self._entries:
            try:
                self._entries[jwks_uri] = await fetch_key_set(
                    self._http,
                    jwks_uri,
                    timeout=self._timeout,
                    cancel=self._cancel,
                    logger=self._logger,
                )
            except CardCheckError as exc:
                self._entries[jwks_uri] = exc
        entry = self._entries[jwks_uri]
        if isinstance(entry, CardCheckError):
            raise entry
        return entry
