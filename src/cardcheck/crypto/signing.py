"""Detached JWS signatures over agent cards, with JCS canonicalization (RFC 8785).

An A2A card signature is a JWS in compact form with the payload segment
removed: the card stores ``protected`` (base64url JSON header) and
``signature``. The payload is the RFC 8785 canonical JSON of the card
without its ``signatures`` member.
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Mapping
from typing import Any, cast

import jcs
from joserfc import jwk, jws
from joserfc.errors import JoseError

from cardcheck.errors import SignatureVerificationError
from cardcheck.models.constants import SUPPORTED_SIGNATURE_ALGORITHMS


def b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(value: str) -> bytes:
    """Decode unpadded base64url.

    Raises:
        ValueError: If the value is not valid base64url.
    """
    padded = value + "=" * (-len(value) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise ValueError(f"invalid base64url: {exc}") from exc


def canonicalize_card(card: Mapping[str, Any]) -> bytes:
    """Return the canonical bytes that card signatures cover."""
    payload = {key: value for key, value in card.items() if key != "signatures"}
    return cast(bytes, jcs.canonicalize(payload))


def decode_protected_header(protected: str) -> dict[str, Any]:
    """Decode a base64url JSON protected header.

    Raises:
        SignatureVerificationError: If it is not base64url JSON object.
    """
    try:
        header = json.loads(b64url_decode(protected))
    except ValueError as exc:
        raise SignatureVerificationError(
            f"Invalid protected header: {exc}", details={"protected": protected[:32]}
        ) from exc
    if not isinstance(header, dict):
        raise SignatureVerificationError("Invalid protected header: expected a JSON object")
    return header


def signature_registry(alg: str) -> jws.JWSRegistry:
    """Registry allowing exactly one algorithm; extra header members (jku, iat) are accepted."""
    return jws.JWSRegistry(algorithms=[alg], strict_check_header=False)


def verify_detached(
    protected: str,
    signature: str,
    payload: bytes,
    key: jwk.Key,
    alg: str,
) -> bool:
    """Verify a detached compact JWS against a single key.

    Raises:
        SignatureVerificationError: If the signature does not verify.
    """
    compact = f"{protected}.{b64url_encode(payload)}.{signature}"
    try:
        jws.deserialize_compact(compact, key, registry=signature_registry(alg))
    except (JoseError, ValueError, TypeError) as exc:
        raise SignatureVerificationError(
            "Signature verification failed: signature does not match card contents",
            details={"cause": type(exc).__name__},
        ) from exc
    return True


def sign_card(
    card: Mapping[str, Any],
    private_key: jwk.Key,
    *,
    alg: str,
    jku: str,
    kid: str | None = None,
    issued_at: int | None = None,
) -> dict[str, str]:
    """Create a detached signature entry for a card.

    Args:
        card: Card to sign (any existing ``signatures`` are ignored).
        private_key: joserfc private key matching ``alg``.
        alg: JWS algorithm, one of SUPPORTED_SIGNATURE_ALGORITHMS.
        jku: https URL of the JWKS holding the public key.
        kid: Key id; defaults to the key's own ``kid``.
        issued_at: Optional ``iat`` (unix seconds) recorded in the header.

    Returns:
        ``{"protected": ..., "signature": ...}`` ready to append to ``signatures``.
    """
    if alg not in SUPPORTED_SIGNATURE_ALGORITHMS:
        raise ValueError(f"Unsupported signature algorithm: {alg}")
    header: dict[str, Any] = {"alg": alg, "jku": jku}
    key_id = kid or private_key.kid
    if key_id:
        header["kid"] = key_id
    if issued_at is not None:
        header["iat"] = issued_at
    compact = jws.serialize_compact(
        header, canonicalize_card(card), private_key, registry=signature_registry(alg)
    )
    protected, _, signature = compact.split(".")
    return {"protected": protected, "signature": signature}
