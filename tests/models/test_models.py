"""Tests for the pydantic models shared by every stage."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from cardcheck.models.card import (
    AgentCapabilities,
    AgentCard,
    AgentProvider,
    AgentSkill,
)
from cardcheck.models.enums import Severity, TransportProtocol
from cardcheck.models.ids import generate_validation_id
from cardcheck.models.results import ValidationFinding
from cardcheck.testing.fixtures import build_agent_card


def build_model(**overrides: object) -> AgentCard:
    fields: dict[str, object] = {
        "protocol_version": "0.3.0",
        "name": "Test Agent",
        "description": "An agent used in cardcheck tests",
        "url": "https://agent.example.com/a2a",
        "provider": AgentProvider(organization="Example Corp", url="https://example.com"),
        "version": "1.0.0",
        "capabilities": AgentCapabilities(streaming=False, push_notifications=False),
        "default_input_modes": ["text/plain"],
        "default_output_modes": ["text/plain"],
        "skills": [
            AgentSkill(
                id="echo", name="Echo", description="Echoes the input text", tags=["demo"]
            )
        ],
    }
    fields.update(overrides)
    return AgentCard(**fields)


class TestAgentCard:
    def test_to_card_dict_matches_raw_card(self) -> None:
        assert build_model().to_card_dict() == build_agent_card()

    def test_camel_case_input_is_accepted(self) -> None:
        card = AgentCard.model_validate(build_agent_card())
        assert card.protocol_version == "0.3.0"
        assert card.preferred_transport is TransportProtocol.JSONRPC
        assert card.skills[0].tags == ["demo"]

    def test_unknown_members_are_preserved(self) -> None:
        card = AgentCard.model_validate(build_agent_card(extensions=[{"uri": "urn:x"}]))
        assert card.to_card_dict()["extensions"] == [{"uri": "urn:x"}]

    def test_missing_required_field(self) -> None:
        raw = build_agent_card(name=None)
        with pytest.raises(ValidationError):
            AgentCard.model_validate(raw)

    def test_models_are_frozen(self) -> None:
        card = build_model()
        with pytest.raises(ValidationError):
            card.name = "Renamed"  # type: ignore[misc]


class TestValidationFinding:
    def test_json_dict_uses_camel_case_and_drops_none(self) -> None:
        finding = ValidationFinding(
            code="SCHEMA_VALIDATION_ERROR",
            message="name: Required",
            field="name",
            severity=Severity.ERROR,
        )
        assert finding.to_json_dict(exclude_none=True) == {
            "code": "SCHEMA_VALIDATION_ERROR",
            "message": "name: Required",
            "field": "name",
            "severity": "error",
        }

    def test_extra_fields_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ValidationFinding(code="X", message="x", severity=Severity.ERROR, extra="nope")


def test_validation_ids_are_unique_ulids() -> None:
    ids = {generate_validation_id() for _ in range(100)}
    assert len(ids) == 100
    assert all(len(value) == 26 for value in ids)
