"""Command-line interface for cardcheck.

Example:
    >>> # From terminal:
    >>> # cardcheck --version
    >>> # cardcheck validate ./agent-card.json
    >>> # cardcheck validate https://agent.example.com --test-live --json
    >>> # cardcheck validate agent.example.com --strict --errors-only
"""

import asyncio
import json
from typing import Annotated

import typer
from pydantic import ValidationError

from cardcheck import __version__
from cardcheck.config import ValidationOptions
from cardcheck.models.enums import ValidationStrictness
from cardcheck.models.results import ValidationFinding, ValidationResult
from cardcheck.observability import configure_logging
from cardcheck.validator import CardValidator

app = typer.Typer(help="Validate and score A2A agent cards.")


def _version_callback(value: bool) -> None:
    """Print the version and exit when requested."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


VERSION_OPTION = typer.Option(
    False,
    "--version",
    help="Show cardcheck version and exit.",
    callback=_version_callback,
    is_eager=True,
)


@app.callback()
def cli(version: bool = VERSION_OPTION) -> None:
    """cardcheck CLI entrypoint."""


def _strictness(strict: bool, progressive: bool, conservative: bool) -> ValidationStrictness:
    chosen = [
        level
        for level, flag in (
            (ValidationStrictness.STRICT, strict),
            (ValidationStrictness.PROGRESSIVE, progressive),
            (ValidationStrictness.CONSERVATIVE, conservative),
        )
        if flag
    ]
    if len(chosen) > 1:
        raise typer.BadParameter(
            "Use only one of --strict, --progressive and --conservative"
        )
    return chosen[0] if chosen else ValidationStrictness.PROGRESSIVE


def _format_finding(finding: ValidationFinding) -> str:
    location = f" {finding.field}:" if finding.field else ""
    return f"  [{finding.code}]{location} {finding.message}"


def render_text(result: ValidationResult, source: str, *, errors_only: bool = False) -> str:
    """Plain text summary of a validation result."""
    scoring = result.scoring_result
    lines = [
        f"Agent card: {source}",
        f"Result: {'PASSED' if result.success else 'FAILED'} (score {result.score})",
    ]
    if result.errors:
        lines.append(f"Errors ({len(result.errors)}):")
        lines.extend(_format_finding(error) for error in result.errors)
    if errors_only:
        return "\n".join(lines)

    if result.warnings:
        lines.append(f"Warnings ({len(result.warnings)}):")
        lines.extend(_format_finding(warning) for warning in result.warnings)

    trust = scoring.trust
    availability = scoring.availability
    lines.append("Scores:")
    lines.append(f"  Compliance:   {scoring.compliance.total} ({scoring.compliance.rating})")
    lines.append(
        f"  Trust:        {trust.total} ({trust.rating}, "
        f"{trust.confidence_multiplier}x confidence)"
    )
    if availability.tested:
        lines.append(f"  Availability: {availability.total} ({availability.rating})")
    else:
        lines.append(f"  Availability: not tested ({availability.not_tested_reason})")

    if result.suggestions:
        lines.append("Suggestions:")
        lines.extend(f"  - {suggestion.message}" for suggestion in result.suggestions)
    lines.append("Recommendations:")
    lines.extend(f"  - {item}" for item in scoring.recommendation)
    return "\n".join(lines)


@app.command("validate")
def validate(
    source: Annotated[str, typer.Argument(help="Agent card file path, URL or bare host.")],
    strict: Annotated[
        bool, typer.Option("--strict", help="Escalate version mismatches and require https.")
    ] = False,
    progressive: Annotated[
        bool, typer.Option("--progressive", help="Version mismatches warn (default).")
    ] = False,
    conservative: Annotated[
        bool, typer.Option("--conservative", help="Same verdicts as --progressive.")
    ] = False,
    schema_only: Annotated[
        bool, typer.Option("--schema-only", help="Static validation only, no network probing.")
    ] = False,
    test_live: Annotated[
        bool, typer.Option("--test-live", help="Probe declared endpoints and send a message.")
    ] = False,
    skip_signature: Annotated[
        bool, typer.Option("--skip-signature", help="Do not verify card signatures.")
    ] = False,
    timeout: Annotated[
        float, typer.Option("--timeout", help="Timeout of each network request, in seconds.")
    ] = 10.0,
    json_output: Annotated[
        bool, typer.Option("--json", help="Print the full result as JSON.")
    ] = False,
    errors_only: Annotated[
        bool, typer.Option("--errors-only", help="Only print errors.")
    ] = False,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log every validation step to stderr.")
    ] = False,
) -> None:
    """Validate an agent card and print its scores.

    Exits with status 1 when the card has any blocking error.
    """
    configure_logging(log_level="DEBUG" if verbose else None, force=verbose)
    try:
        options = ValidationOptions(
            strictness=_strictness(strict, progressive, conservative),
            timeout_seconds=timeout,
            skip_signature_verification=skip_signature,
            test_live=test_live,
            schema_only=schema_only,
        )
    except ValidationError as exc:
        raise typer.BadParameter(f"Invalid options: {exc.errors()[0]['msg']}") from exc

    result = asyncio.run(CardValidator().validate_source(source, options))

    if json_output:
        typer.echo(json.dumps(result.to_output(), indent=2))
    else:
        typer.echo(render_text(result, source, errors_only=errors_only))
    if not result.success:
        raise typer.Exit(1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
