"""Tests for card canonicalization and detached JWS helpers."""

from __future__ import annotations

import pytest
from joserfc import jwk

from cardcheck.crypto.signing import (
    b64url_decode,
    b64url_encode,
    canonicalize_card,
    decode_protected_header,
    sign_card,
    verify_detached,
)
from cardcheck.errors import SignatureVerificationError
from cardcheck.testing.fixtures import DEFAULT_JWKS_URL, build_agent_card


class TestBase64Url:
    def test_encoding_is_unpadded(self) -> None:
        assert b64url_encode(b"a") == "YQ"

    def test_decode_restores_padding(self) -> None:
        assert b64url_decode("YQ") == b"a"

    def test_decode_rejects_non_ascii(self) -> None:
        with pytest.raises(ValueError, match="invalid base64url"):
            b64url_decode("é")


class TestCanonicalize:
    def test_signatures_are_not_covered(self) -> None:
        card = build_agent_card()
        signed = build_agent_card(signatures=[{"protected": "a", "signature": "b"}])
        assert canonicalize_card(card) == canonicalize_card(signed)

    def test_key_order_does_not_matter(self) -> None:
        assert canonicalize_card({"b": 1, "a": 2}) == canonicalize_card({"a": 2, "b": 1})
        assert canonicalize_card({"b": 1, "a": 2}) == b'{"a":2,"b":1}'


class TestProtectedHeader:
    def test_decodes_json_object(self) -> None:
        protected = b64url_encode(b'{"alg":"ES256","kid":"k1"}')
        assert decode_protected_header(protected) == {"alg": "ES256", "kid": "k1"}

    def test_garbage_header(self) -> None:
        with pytest.raises(SignatureVerificationError, match="Invalid protected header"):
            decode_protected_header(b64url_encode(b"not json"))

    def test_header_must_be_object(self) -> None:
        with pytest.raises(SignatureVerificationError, match="expected a JSON object"):
            decode_protected_header(b64url_encode(b"[1, 2]"))


class TestSignAndVerify:
    def test_signature_verifies_against_public_key(self, signing_key: jwk.RSAKey) -> None:
        card = build_agent_card()
        entry = sign_card(card, signing_key, alg="RS256", jku=DEFAULT_JWKS_URL, issued_at=1)
        public = jwk.RSAKey.import_key(signing_key.as_dict(private=False))

        assert verify_detached(
            entry["protected"], entry["signature"], canonicalize_card(card), public, "RS256"
        )
        header = decode_protected_header(entry["protected"])
        assert header == {"alg": "RS256", "jku": DEFAULT_JWKS_URL, "kid": "test-key-1", "iat": 1}

    def test_modified_card_fails(self, signing_key: jwk.RSAKey) -> None:
        card = build_agent_card()
        entry = sign_card(card, signing_key, alg="RS256", jku=DEFAULT_JWKS_URL)
        tampered = canonicalize_card(build_agent_card(name="Someone Else"))

        with pytest.raises(SignatureVerificationError, match="does not match card contents"):
            verify_detached(entry["protected"], entry["signature"], tampered, signing_key, "RS256")

    def test_explicit_kid_overrides_key_kid(self, signing_key: jwk.RSAKey) -> None:
        entry = sign_card(
            build_agent_card(), signing_key, alg="RS256", jku=DEFAULT_JWKS_URL, kid="rotated"
        )
        assert decode_protected_header(entry["protected"])["kid"] == "rotated"

    def test_unsupported_algorithm(self, signing_key: jwk.RSAKey) -> None:
        with pytest.raises(ValueError, match="Unsupported signature algorithm: HS256"):
            sign_card(build_agent_card(), signing_key, alg="HS256", jku=DEFAULT_JWKS_URL)
