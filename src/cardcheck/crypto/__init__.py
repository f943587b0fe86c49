"""Agent card signatures: JCS canonicalization, detached JWS signing and verification."""

from cardcheck.crypto.jwks import KeySetCache, KeySetFetchError, fetch_key_set
from cardcheck.crypto.signing import canonicalize_card, decode_protected_header, sign_card
from cardcheck.crypto.verifier import SignatureVerifier

__all__ = [
    "KeySetCache",
    "KeySetFetchError",
    "SignatureVerifier",
    "canonicalize_card",
    "decode_protected_header",
    "fetch_key_set",
    "sign_card",
]
