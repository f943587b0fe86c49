"""Tests for the cardcheck CLI."""

import json
import re
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from cardcheck import __version__
from cardcheck.cli import app, render_text
from cardcheck.config import ValidationOptions
from cardcheck.testing.fixtures import build_agent_card
from cardcheck.validator import validate_card

# ANSI escape sequence pattern for stripping colors from output
ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*m")

runner = CliRunner()


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from text."""
    return ANSI_ESCAPE_PATTERN.sub("", text)


def write_card(tmp_path: Path, card: dict[str, Any]) -> str:
    path = tmp_path / "agent-card.json"
    path.write_text(json.dumps(card), encoding="utf-8")
    return str(path)


class TestCliVersion:
    def test_version_flag(self) -> None:
        """Ensure --version prints the package version."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert result.stdout.strip() == __version__


class TestValidateCommand:
    def test_valid_card_passes(self, tmp_path: Path) -> None:
        source = write_card(tmp_path, build_agent_card())

        result = runner.invoke(app, ["validate", source, "--schema-only"])

        assert result.exit_code == 0
        output = strip_ansi(result.stdout)
        assert f"Agent card: {source}" in output
        assert "Result: PASSED" in output
        assert "Compliance:   100.0 (Perfect)" in output
        assert "Availability: not tested" in output
        assert "[NO_SIGNATURES] signatures:" in output

    def test_json_output(self, tmp_path: Path) -> None:
        source = write_card(tmp_path, build_agent_card())

        result = runner.invoke(app, ["validate", source, "--schema-only", "--json"])

        assert result.exit_code == 0
        document = json.loads(result.stdout)
        assert document["success"] is True
        assert document["scoringResult"]["compliance"]["total"] == 100.0
        assert [w["code"] for w in document["warnings"]] == ["NO_SIGNATURES"]

    def test_invalid_card_exits_with_one(self, tmp_path: Path) -> None:
        source = write_card(tmp_path, build_agent_card(name=None))

        result = runner.invoke(app, ["validate", source, "--schema-only", "--errors-only"])

        assert result.exit_code == 1
        output = strip_ansi(result.stdout)
        assert "Result: FAILED" in output
        assert "[SCHEMA_VALIDATION_ERROR] name: name: Required" in output
        assert "Warnings" not in output
        assert "Scores:" not in output

    def test_strict_rejects_http_url(self, tmp_path: Path) -> None:
        source = write_card(tmp_path, build_agent_card(url="http://agent.example.com/a2a"))

        lenient = runner.invoke(app, ["validate", source, "--schema-only"])
        strict = runner.invoke(app, ["validate", source, "--schema-only", "--strict"])

        assert lenient.exit_code == 0
        assert strict.exit_code == 1

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["validate", str(tmp_path / "missing.json"), "--schema-only"]
        )

        assert result.exit_code == 1
        assert "[CARD_LOAD_ERROR] source:" in strip_ansi(result.stdout)

    def test_conflicting_strictness_flags(self, tmp_path: Path) -> None:
        source = write_card(tmp_path, build_agent_card())

        result = runner.invoke(app, ["validate", source, "--strict", "--conservative"])

        assert result.exit_code == 2

    @pytest.mark.parametrize("timeout", ["0", "-1", "301"])
    def test_out_of_range_timeout(self, tmp_path: Path, timeout: str) -> None:
        source = write_card(tmp_path, build_agent_card())

        result = runner.invoke(app, ["validate", source, f"--timeout={timeout}"])

        assert result.exit_code == 2


def test_render_text_lists_recommendations() -> None:
    result = validate_card(build_agent_card(), ValidationOptions(schema_only=True))

    text = render_text(result, "card.json")

    assert text.splitlines()[:2] == [
        "Agent card: card.json",
        f"Result: PASSED (score {result.score})",
    ]
    assert "  - Fully A2A v0.3.0 compliant" in text
    assert "Trust:        18.0 (Untrusted, 0.6x confidence)" in text
