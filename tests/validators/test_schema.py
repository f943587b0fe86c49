"""Tests for SchemaValidator structural and format rules."""

from __future__ import annotations

import pytest

from cardcheck.models.enums import Severity
from cardcheck.testing.fixtures import build_agent_card, fixed_clock
from cardcheck.validators.schema import (
    NO_SKILLS_DECLARED,
    PRIMARY_INTERFACE_NOT_DECLARED,
    SCHEMA_VALIDATION_ERROR,
    SKILL_MISSING_TAGS,
    TRANSPORT_URL_CONFLICT,
    URL_SSRF_RISK,
    SchemaValidator,
    declared_bindings,
    json_type,
)


@pytest.fixture
def schema() -> SchemaValidator:
    return SchemaValidator(clock=fixed_clock())


def fields(findings: list) -> list[str | None]:
    return [finding.field for finding in findings]


class TestValidCard:
    def test_valid_card_has_no_findings(self, schema: SchemaValidator) -> None:
        result = schema.validate(build_agent_card())
        assert result.passed
        assert result.errors == []
        assert result.warnings == []

    def test_duration_comes_from_injected_clock(self, schema: SchemaValidator) -> None:
        assert schema.validate(build_agent_card()).duration_ms == 0.0


class TestRequiredFields:
    @pytest.mark.parametrize("name", ["name", "description", "capabilities", "url", "skills"])
    def test_missing_field_gives_exactly_one_error(
        self, schema: SchemaValidator, name: str
    ) -> None:
        """A missing required field is reported once and nothing else fires."""
        result = schema.validate(build_agent_card(**{name: None}))
        assert fields(result.errors) == [name]
        error = result.errors[0]
        assert error.code == SCHEMA_VALIDATION_ERROR
        assert error.message == f"{name}: Required"
        assert error.severity is Severity.ERROR
        assert error.fixable is True

    def test_empty_string_counts_as_missing(self, schema: SchemaValidator) -> None:
        result = schema.validate(build_agent_card(description=""))
        assert fields(result.errors) == ["description"]

    def test_empty_card_reports_every_required_field(self, schema: SchemaValidator) -> None:
        result = schema.validate({})
        assert "protocolVersion" in fields(result.errors)
        assert "preferredTransport" in fields(result.errors)
        assert len(result.errors) == 11


class TestScalars:
    def test_wrong_type_is_reported(self, schema: SchemaValidator) -> None:
        result = schema.validate(build_agent_card(name=42))
        assert result.errors[0].message == "name: Expected string, received number"

    def test_name_too_long(self, schema: SchemaValidator) -> None:
        result = schema.validate(build_agent_card(name="x" * 201))
        assert fields(result.errors) == ["name"]
        assert "at most 200" in result.errors[0].message

    def test_version_must_be_semver(self, schema: SchemaValidator) -> None:
        result = schema.validate(build_agent_card(version="v1"))
        assert result.errors[0].message == "version: Version must follow semver format"

    def test_semver_prerelease_is_accepted(self, schema: SchemaValidator) -> None:
        assert schema.validate(build_agent_card(version="1.0.0-beta.1+build.5")).passed

    def test_unknown_protocol_version(self, schema: SchemaValidator) -> None:
        result = schema.validate(build_agent_card(protocolVersion="9.9.9"))
        assert fields(result.errors) == ["protocolVersion"]


class TestUrls:
    def test_http_url_allowed_when_not_strict(self, schema: SchemaValidator) -> None:
        assert schema.validate(build_agent_card(url="http://agent.example.com/a2a")).passed

    def test_http_url_rejected_in_strict_mode(self, schema: SchemaValidator) -> None:
        result = schema.validate(build_agent_card(url="http://agent.example.com/a2a"), strict=True)
        assert result.errors[0].message == "url: URL must use HTTPS in strict mode"

    def test_invalid_url(self, schema: SchemaValidator) -> None:
        result = schema.validate(build_agent_card(documentationUrl="not a url"))
        assert fields(result.errors) == ["documentationUrl"]

    @pytest.mark.parametrize(
        "url",
        [
            "https://127.0.0.1/a2a",
            "https://localhost/a2a",
            "https://10.1.2.3/a2a",
            "https://127.1/a2a",
            "https://2130706433/a2a",
        ],
    )
    def test_private_addresses_are_ssrf_risks(self, schema: SchemaValidator, url: str) -> None:
        result = schema.validate(build_agent_card(url=url))
        assert [e.code for e in result.errors] == [URL_SSRF_RISK]

    def test_provider_url_is_checked(self, schema: SchemaValidator) -> None:
        card = build_agent_card(provider={"organization": "Example Corp"})
        assert fields(schema.validate(card).errors) == ["provider.url"]


class TestTransports:
    def test_unknown_preferred_transport(self, schema: SchemaValidator) -> None:
        result = schema.validate(build_agent_card(preferredTransport="SOAP"))
        assert fields(result.errors) == ["preferredTransport"]
        assert "JSONRPC, GRPC, HTTP+JSON" in result.errors[0].message

    def test_interface_missing_transport(self, schema: SchemaValidator) -> None:
        card = build_agent_card(
            additionalInterfaces=[
                {"url": "https://agent.example.com/a2a", "transport": "JSONRPC"},
                {"url": "https://agent.example.com/rest"},
            ]
        )
        assert fields(schema.validate(card).errors) == ["additionalInterfaces.1.transport"]

    def test_same_url_with_two_transports_conflicts(self, schema: SchemaValidator) -> None:
        card = build_agent_card(
            additionalInterfaces=[
                {"url": "https://agent.example.com/a2a", "transport": "JSONRPC"},
                {"url": "https://agent.example.com/a2a/", "transport": "GRPC"},
            ]
        )
        result = schema.validate(card)
        assert [e.code for e in result.errors] == [TRANSPORT_URL_CONFLICT]
        assert "JSONRPC, GRPC" in result.errors[0].message

    def test_primary_missing_from_alternates_warns(self, schema: SchemaValidator) -> None:
        card = build_agent_card(
            additionalInterfaces=[
                {"url": "https://agent.example.com/rest", "transport": "HTTP+JSON"}
            ]
        )
        result = schema.validate(card)
        assert result.passed
        assert [w.code for w in result.warnings] == [PRIMARY_INTERFACE_NOT_DECLARED]

    def test_declared_bindings_put_primary_first(self) -> None:
        card = build_agent_card(
            additionalInterfaces=[
                {"url": "https://agent.example.com/rest", "transport": "HTTP+JSON"}
            ]
        )
        assert declared_bindings(card) == [
            ("https://agent.example.com/a2a", "JSONRPC"),
            ("https://agent.example.com/rest", "HTTP+JSON"),
        ]


class TestModesAndCapabilities:
    def test_invalid_mime_type(self, schema: SchemaValidator) -> None:
        result = schema.validate(build_agent_card(defaultInputModes=["text/plain", "plain"]))
        assert fields(result.errors) == ["defaultInputModes.1"]

    @pytest.mark.parametrize("mode", ["text/plain\n", "text/\u212aml"])
    def test_mime_type_must_match_entirely(self, schema: SchemaValidator, mode: str) -> None:
        result = schema.validate(build_agent_card(defaultOutputModes=[mode]))
        assert fields(result.errors) == ["defaultOutputModes.0"]

    def test_empty_mode_list_is_an_error(self, schema: SchemaValidator) -> None:
        result = schema.validate(build_agent_card(defaultOutputModes=[]))
        assert result.errors[0].message == (
            "defaultOutputModes: Array must contain at least 1 element(s)"
        )

    def test_capability_flag_must_be_boolean(self, schema: SchemaValidator) -> None:
        result = schema.validate(build_agent_card(capabilities={"streaming": "yes"}))
        assert fields(result.errors) == ["capabilities.streaming"]


class TestSkills:
    def test_duplicate_ids_reported_once(self, schema: SchemaValidator) -> None:
        skill = {"id": "echo", "name": "Echo", "description": "Echo", "tags": ["a"]}
        result = schema.validate(build_agent_card(skills=[skill, skill, skill]))
        assert fields(result.errors) == ["skills.1.id"]
        assert result.errors[0].message == 'skills.1.id: Duplicate skill id "echo"'

    def test_skill_missing_required_members(self, schema: SchemaValidator) -> None:
        result = schema.validate(build_agent_card(skills=[{"id": "echo", "tags": ["a"]}]))
        assert fields(result.errors) == ["skills.0.name", "skills.0.description"]

    def test_skill_without_tags_is_a_warning(self, schema: SchemaValidator) -> None:
        skill = {"id": "echo", "name": "Echo", "description": "Echo"}
        result = schema.validate(build_agent_card(skills=[skill]))
        assert result.passed
        assert [w.code for w in result.warnings] == [SKILL_MISSING_TAGS]
        assert result.warnings[0].message == 'Skill "echo" has no tags'

    def test_no_skills_is_a_warning(self, schema: SchemaValidator) -> None:
        result = schema.validate(build_agent_card(skills=[]))
        assert result.passed
        assert [w.code for w in result.warnings] == [NO_SKILLS_DECLARED]


class TestSignatureShape:
    def test_signature_entry_needs_protected_and_signature(
        self, schema: SchemaValidator
    ) -> None:
        result = schema.validate(build_agent_card(signatures=[{"protected": "abc"}]))
        assert fields(result.errors) == ["signatures.0.signature"]


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, "null"), (True, "boolean"), (1.5, "number"), ([], "array"), ({}, "object")],
)
def test_json_type_names(value: object, expected: str) -> None:
    assert json_type(value) == expected
