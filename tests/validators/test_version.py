"""Tests for protocol version compatibility analysis."""

from __future__ import annotations

import pytest

from cardcheck.models.enums import Severity, ValidationStrictness
from cardcheck.testing.fixtures import build_agent_card
from cardcheck.validators.version import (
    UNDEFINED_VERSION,
    VersionCompatibilityAnalyzer,
    used_features,
)


@pytest.fixture
def analyzer() -> VersionCompatibilityAnalyzer:
    return VersionCompatibilityAnalyzer()


def test_current_card_is_compatible(analyzer: VersionCompatibilityAnalyzer) -> None:
    result = analyzer.analyze(build_agent_card(capabilities={"streaming": True}))
    assert result.compatible
    assert result.detected_version == "0.3.0"
    assert result.target_version == "0.3.0"
    assert result.mismatches == []


def test_feature_newer_than_declared_version(analyzer: VersionCompatibilityAnalyzer) -> None:
    card = build_agent_card(protocolVersion="0.2.0", capabilities={"streaming": True})
    result = analyzer.analyze(card)
    assert not result.compatible
    [mismatch] = result.mismatches
    assert mismatch.feature == "capabilities.streaming"
    assert mismatch.required_version == "0.3.0"
    assert mismatch.detected_version == "0.2.0"
    assert mismatch.severity is Severity.WARNING
    assert mismatch.description == "Streaming capability was introduced in A2A v0.3.0"
    assert result.suggestions == ['Update protocolVersion to "0.3.0" to match used features']


def test_missing_version_with_gated_feature(analyzer: VersionCompatibilityAnalyzer) -> None:
    card = build_agent_card(protocolVersion=None, capabilities={"pushNotifications": True})
    result = analyzer.analyze(card)
    [mismatch] = result.mismatches
    assert mismatch.detected_version == UNDEFINED_VERSION
    assert result.detected_version == UNDEFINED_VERSION
    assert "requires protocolVersion to be specified" in mismatch.description


def test_false_flags_and_empty_lists_are_not_used() -> None:
    card = build_agent_card(
        capabilities={"streaming": False, "pushNotifications": False},
        additionalInterfaces=[],
        signatures=[],
    )
    assert used_features(card) == []


def test_suggestions_are_deduplicated(analyzer: VersionCompatibilityAnalyzer) -> None:
    card = build_agent_card(
        protocolVersion="0.1.0",
        capabilities={"streaming": True, "pushNotifications": True},
        additionalInterfaces=[{"url": "https://agent.example.com/a2a", "transport": "JSONRPC"}],
    )
    result = analyzer.analyze(card, ValidationStrictness.STRICT)
    assert [m.feature for m in result.mismatches] == [
        "capabilities.streaming",
        "capabilities.pushNotifications",
        "additionalInterfaces",
    ]
    assert len(result.suggestions) == 1


def test_unparseable_version_gives_no_mismatch(analyzer: VersionCompatibilityAnalyzer) -> None:
    card = build_agent_card(protocolVersion="latest", capabilities={"streaming": True})
    assert analyzer.analyze(card).mismatches == []
