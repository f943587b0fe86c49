"""Inputs of the scorer."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from cardcheck.models.probe import LiveProbeResult
from cardcheck.models.signatures import SignatureVerificationResult


@dataclass(frozen=True)
class ScoringContext:
    """How the validation was run.

    Attributes:
        schema_only: Static validation only
        skip_signature_verification: The signature stage was skipped on request
        test_live: Live probing was performed
        strict: Strict validation mode
        now: Current time (unix seconds) for signature recency
    """

    schema_only: bool = False
    skip_signature_verification: bool = False
    test_live: bool = False
    strict: bool = False
    now: float = 0.0


@dataclass(frozen=True)
class ScoringInputs:
    """Evidence produced by the validation stages.

    Attributes:
        card: The raw card object
        signature_result: Output of the signature stage, if it ran
        probe_results: Output of live probing, if it ran
    """

    card: Mapping[str, Any]
    signature_result: SignatureVerificationResult | None = None
    probe_results: list[LiveProbeResult] | None = None
