"""Verification of detached signatures on agent cards.

``SignatureVerifier.verify`` never raises for environmental conditions:
a bad header, a plain-http key set URL, an unreachable key set, an unknown
``kid`` and a signature that does not match are all recorded as failed
verdicts with a readable reason.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog
from joserfc import jwk

from cardcheck.crypto.jwks import KeySetCache
from cardcheck.crypto.signing import canonicalize_card, decode_protected_header, verify_detached
from cardcheck.errors import CardCheckError, SignatureVerificationError
from cardcheck.models.constants import DEFAULT_TIMEOUT_SECONDS, SUPPORTED_SIGNATURE_ALGORITHMS
from cardcheck.models.signatures import SignatureVerdict, SignatureVerificationResult
from cardcheck.observability import get_logger
from cardcheck.transport.cancellation import CancelToken
from cardcheck.transport.http import HttpTransport
from cardcheck.utils.sanitization import sanitize_token, sanitize_url


def _select_keys(key_set: jwk.KeySet, kid: str | None) -> list[Any]:
    if kid is None:
        return list(key_set.keys)
    return [key for key in key_set.keys if key.kid == kid]


class SignatureVerifier:
    """Verifies every detached signature on a card against its key set.

    Example:
        >>> async with HttpTransport() as http:
        ...     result = await SignatureVerifier(http).verify(card)
        >>> result.summary.valid
        1
    """

    def __init__(
        self,
        http: HttpTransport,
        *,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._http = http
        self._logger = logger or get_logger(__name__)

    async def verify(
        self,
        card: Mapping[str, Any],
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        cancel: CancelToken | None = None,
    ) -> SignatureVerificationResult:
        """Verify the card's ``signatures`` array.

        Args:
            card: Parsed agent card.
            timeout: Timeout for each key set fetch, in seconds.
            cancel: Cancellation token shared with the rest of the validation.

        Returns:
            Per-signature verdicts and a summary. An absent or empty
            ``signatures`` array gives the NO_SIGNATURES outcome.
        """
        signatures = card.get("signatures")
        if not isinstance(signatures, list):
            signatures = []

        payload: bytes | None
        try:
            payload = canonicalize_card(card)
        except (ValueError, OverflowError) as exc:
            self._logger.warning("cardcheck.signatures.uncanonicalizable", reason=str(exc))
            payload = None
        cache = KeySetCache(self._http, timeout=timeout, cancel=cancel, logger=self._logger)
        verdicts = [
            await self._verify_one(index, entry, payload, cache)
            for index, entry in enumerate(signatures)
        ]
        result = SignatureVerificationResult.from_verdicts(verdicts)
        self._logger.info(
            "cardcheck.signatures.verified",
            total=result.summary.total,
            valid=result.summary.valid,
            failed=result.summary.failed,
            jwks_fetched=len(cache.fetched_urls),
        )
        return result

    async def _verify_one(
        self,
        index: int,
        entry: Any,
        payload: bytes | None,
        cache: KeySetCache,
    ) -> SignatureVerdict:
        header: dict[str, Any] = {}
        try:
            if not isinstance(entry, Mapping) or not isinstance(entry.get("protected"), str):
                raise SignatureVerificationError(
                    "Signature entry must be an object with string 'protected' and 'signature'"
                )
            if not isinstance(entry.get("signature"), str):
                raise SignatureVerificationError("Signature entry is missing 'signature'")
            header = decode_protected_header(entry["protected"])
            if payload is None:
                raise SignatureVerificationError(
                    "Agent card cannot be canonicalized (non-finite or out-of-range number)"
                )
            alg = self._check_algorithm(header)
            jwks_uri = header.get("jku") or header.get("jwks_uri")
            if not isinstance(jwks_uri, str) or not jwks_uri:
                raise SignatureVerificationError(
                    "No JWKS URI found in signature header (jku or jwks_uri required)"
                )
            key_set = await cache.get(jwks_uri)
            kid = header.get("kid") if isinstance(header.get("kid"), str) else None
            candidates = _select_keys(key_set, kid)
            if not candidates:
                raise SignatureVerificationError(f'No key found in JWKS for kid "{kid}"')
            self._verify_with_any(entry["protected"], entry["signature"], payload, candidates, alg)
        except CardCheckError as exc:
            self._logger.warning(
                "cardcheck.signature.invalid",
                index=index,
                reason=exc.message,
                jwks_uri=sanitize_url(str(header.get("jku") or header.get("jwks_uri") or "")),
            )
            return self._verdict(index, header, valid=False, error=exc.message)

        kid = sanitize_token(str(header.get("kid") or ""))
        self._logger.debug("cardcheck.signature.valid", index=index, kid=kid)
        return self._verdict(index, header, valid=True)

    @staticmethod
    def _check_algorithm(header: Mapping[str, Any]) -> str:
        alg = header.get("alg")
        if not isinstance(alg, str) or not alg:
            raise SignatureVerificationError("Missing algorithm in protected header")
        if alg.lower() == "none":
            raise SignatureVerificationError('Unsigned signatures (alg "none") are not allowed')
        if alg not in SUPPORTED_SIGNATURE_ALGORITHMS:
            raise SignatureVerificationError(f"Unsupported signature algorithm: {alg}")
        return alg

    @staticmethod
    def _verify_with_any(
        protected: str, signature: str, payload: bytes, keys: list[Any], alg: str
    ) -> None:
        last_error: SignatureVerificationError | None = None
        for key in keys:
            try:
                verify_detached(protected, signature, payload, key, alg)
                return
            except SignatureVerificationError as exc:
                last_error = exc
        assert last_error is not None
        raise last_error

    @staticmethod
    def _verdict(
        index: int, header: Mapping[str, Any], *, valid: bool, error: str | None = None
    ) -> SignatureVerdict:
        jwks_uri = header.get("jku") or header.get("jwks_uri")
        issued_at = header.get("iat")
        if not isinstance(issued_at, int) or isinstance(issued_at, bool):
            issued_at = None
        return SignatureVerdict(
            index=index,
            valid=valid,
            algorithm=header.get("alg") if isinstance(header.get("alg"), str) else None,
            key_id=header.get("kid") if isinstance(header.get("kid"), str) else None,
            jwks_uri=jwks_uri if isinstance(jwks_uri, str) else None,
            issued_at=issued_at,
            error=error,
        )
