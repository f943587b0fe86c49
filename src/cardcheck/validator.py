"""Validation orchestrator.

``CardValidator`` runs the validation stages in a fixed order and folds
their output into one immutable ``ValidationResult``:

1. schema validation (always)
2. protocol version compatibility (always)
3. signature verification (unless skipped, and only when signatures exist)
4. live transport probing (only when live testing is enabled)
5. scoring (always)

No stage depends on the success of another. Environmental failures (network,
key sets, malformed replies) are turned into findings by the stage that met
them; the only exception that escapes ``validate`` is ``TypeError`` for an
input that is not a card at all.

Example:
    >>> result = validate_card(card, ValidationOptions(schema_only=True))
    >>> result.success
    True
"""

from __future__ import annotations

import asyncio
import json
import math
import time
from collections.abc import Iterable, Mapping
from typing import Any, Callable

import structlog

from cardcheck.config import ValidationOptions
from cardcheck.crypto.verifier import SignatureVerifier
from cardcheck.discovery import DiscoveredCard, resolve_card
from cardcheck.errors import CardLoadError
from cardcheck.models.card import AgentCard
from cardcheck.models.constants import VALIDATOR_VERSION
from cardcheck.models.enums import (
    CheckStatus,
    Severity,
    SignatureOutcome,
    TransportProtocol,
)
from cardcheck.models.ids import generate_validation_id
from cardcheck.models.probe import LiveProbeResult
from cardcheck.models.results import (
    ValidationCheck,
    ValidationFinding,
    ValidationResult,
    ValidationSuggestion,
    VersionCompatibility,
    VersionInfo,
)
from cardcheck.models.signatures import SignatureVerificationResult
from cardcheck.observability import get_logger
from cardcheck.probe import CheckerRegistry, TransportProbe
from cardcheck.scoring import ScoringContext, ScoringInputs, calculate_scores
from cardcheck.transport.cancellation import CancelToken
from cardcheck.transport.http import HttpTransport
from cardcheck.utils.sanitization import sanitize_url
from cardcheck.validators.schema import SchemaValidator
from cardcheck.validators.version import UNDEFINED_VERSION, VersionCompatibilityAnalyzer

CARD_PARSE_ERROR = "CARD_PARSE_ERROR"
CARD_NOT_OBJECT = "CARD_NOT_OBJECT"
CARD_LOAD_ERROR = "CARD_LOAD_ERROR"
STRICT_VERSION_MISMATCH = "STRICT_VERSION_MISMATCH"
VERSION_MISMATCH_ERROR = "VERSION_MISMATCH_ERROR"
VERSION_FEATURE_MISMATCH = "VERSION_FEATURE_MISMATCH"
GRPC_WITHOUT_STREAMING = "GRPC_WITHOUT_STREAMING"
SIGNATURE_VERIFICATION_FAILED = "SIGNATURE_VERIFICATION_FAILED"
SIGNATURE_VERIFICATION_SKIPPED = "SIGNATURE_VERIFICATION_SKIPPED"
NO_SIGNATURES = "NO_SIGNATURES"
LEGACY_DISCOVERY_ENDPOINT = "LEGACY_DISCOVERY_ENDPOINT"

STRICT_PREFIX = "Strict mode: "


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a valid JSON number")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"{text} is out of range for a JSON number")
    return value


def parse_card_input(card: Any) -> tuple[dict[str, Any] | None, ValidationFinding | None]:
    """Turn any accepted input into a JSON object, or a finding explaining why not.

    Accepts a mapping, an ``AgentCard`` model, or JSON text as ``str`` or
    ``bytes``.

    Raises:
        TypeError: For any other input type.
    """
    if isinstance(card, AgentCard):
        return card.to_card_dict(), None
    if isinstance(card, Mapping):
        return dict(card), None
    if isinstance(card, (str, bytes, bytearray)):
        try:
            data = json.loads(card, parse_constant=_reject_constant, parse_float=_finite_float)
        except ValueError as exc:
            return None, ValidationFinding(
                code=CARD_PARSE_ERROR,
                message=f"Agent card is not valid JSON: {exc}",
                severity=Severity.ERROR,
                fixable=True,
            )
        if not isinstance(data, dict):
            return None, ValidationFinding(
                code=CARD_NOT_OBJECT,
                message="Agent card must be a JSON object",
                severity=Severity.ERROR,
                fixable=True,
            )
        return data, None
    raise TypeError(
        f"card must be a mapping, an AgentCard or JSON text, not {type(card).__name__}"
    )


def version_findings(
    compatibility: VersionCompatibility, *, strict: bool
) -> tuple[list[ValidationFinding], list[ValidationFinding], list[ValidationSuggestion]]:
    """Map version mismatches to errors, warnings and migration suggestions.

    Strict mode turns every mismatch into a blocking error. Otherwise
    warning-level mismatches stay warnings and come with a suggestion.
    """
    errors: list[ValidationFinding] = []
    warnings: list[ValidationFinding] = []
    for mismatch in compatibility.mismatches:
        if strict:
            errors.append(
                ValidationFinding(
                    code=(
                        STRICT_VERSION_MISMATCH
                        if mismatch.severity is Severity.WARNING
                        else VERSION_MISMATCH_ERROR
                    ),
                    message=f"{STRICT_PREFIX}{mismatch.description}",
                    field=mismatch.feature,
                    severity=Severity.ERROR,
                    fixable=True,
                )
            )
        elif mismatch.severity is Severity.ERROR:
            errors.append(
                ValidationFinding(
                    code=VERSION_MISMATCH_ERROR,
                    message=mismatch.description,
                    field=mismatch.feature,
                    severity=Severity.ERROR,
                    fixable=True,
                )
            )
        else:
            warnings.append(
                ValidationFinding(
                    code=VERSION_FEATURE_MISMATCH,
                    message=(
                        f"{mismatch.description}: Update protocolVersion to "
                        f'"{mismatch.required_version}" or remove feature'
                    ),
                    field=mismatch.feature,
                    severity=Severity.WARNING,
                    fixable=True,
                )
            )

    suggestions: list[ValidationSuggestion] = []
    if warnings:
        suggestions = [
            ValidationSuggestion(
                id="migrate_version",
                message=text,
                impact="Features newer than the declared protocol version may be ignored",
                fixable=True,
            )
            for text in compatibility.suggestions
        ]
    return errors, warnings, suggestions


def grpc_streaming_finding(card: Mapping[str, Any], *, strict: bool) -> ValidationFinding | None:
    """gRPC alternates are streaming-oriented; flag them when streaming is off."""
    interfaces = card.get("additionalInterfaces")
    if not isinstance(interfaces, list):
        return None
    has_grpc = any(
        isinstance(entry, Mapping) and entry.get("transport") == TransportProtocol.GRPC.value
        for entry in interfaces
    )
    capabilities = card.get("capabilities")
    streaming = isinstance(capabilities, Mapping) and capabilities.get("streaming") is True
    if not has_grpc or streaming:
        return None
    message = "gRPC transport is configured but streaming capability is not enabled"
    return ValidationFinding(
        code=GRPC_WITHOUT_STREAMING,
        message=f"{STRICT_PREFIX}{message}" if strict else message,
        field="capabilities.streaming",
        severity=Severity.ERROR if strict else Severity.WARNING,
        fixable=True,
    )


def probe_findings(
    results: list[LiveProbeResult],
) -> tuple[list[ValidationFinding], list[ValidationFinding]]:
    """Errors on the primary interface block; anything on an alternate only warns."""
    errors: list[ValidationFinding] = []
    warnings: list[ValidationFinding] = []
    for result in results:
        for issue in result.errors:
            blocking = result.is_primary and issue.severity is Severity.ERROR
            finding = ValidationFinding(
                code=issue.code,
                message=f"{result.transport} {sanitize_url(result.endpoint)}: {issue.message}",
                field="url" if result.is_primary else "additionalInterfaces",
                severity=Severity.ERROR if blocking else Severity.WARNING,
            )
            (errors if blocking else warnings).append(finding)
    return errors, warnings


def legacy_discovery_findings(
    discovered: DiscoveredCard,
) -> tuple[list[ValidationFinding], list[ValidationSuggestion]]:
    if not discovered.used_legacy_endpoint:
        return [], []
    warning = ValidationFinding(
        code=LEGACY_DISCOVERY_ENDPOINT,
        message=(
            f"Agent discovered via legacy endpoint ({discovered.discovery_url}). "
            "The A2A v0.3.0 specification recommends using /.well-known/agent-card.json"
        ),
        field="discovery",
        severity=Severity.WARNING,
        fixable=True,
    )
    suggestion = ValidationSuggestion(
        id="migrate_legacy_endpoint",
        message=(
            "Consider migrating from legacy /.well-known/agent.json to "
            "/.well-known/agent-card.json for future compatibility"
        ),
        impact="Future A2A specification versions may not support the legacy agent.json endpoint",
        fixable=True,
    )
    return [warning], [suggestion]


class _Report:
    """Findings and stage checks accumulated during one validation."""

    def __init__(self) -> None:
        self.errors: list[ValidationFinding] = []
        self.warnings: list[ValidationFinding] = []
        self.suggestions: list[ValidationSuggestion] = []
        self.validations: list[ValidationCheck] = []

    def add(
        self,
        errors: Iterable[ValidationFinding] = (),
        warnings: Iterable[ValidationFinding] = (),
        suggestions: Iterable[ValidationSuggestion] = (),
    ) -> None:
        self.errors.extend(errors)
        self.warnings.extend(warnings)
        self.suggestions.extend(suggestions)

    def check(
        self,
        check_id: str,
        name: str,
        status: CheckStatus,
        message: str,
        *,
        duration_ms: float | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.validations.append(
            ValidationCheck(
                id=check_id,
                name=name,
                status=status,
                message=message,
                duration_ms=duration_ms,
                details=details,
            )
        )


class CardValidator:
    """Validates and scores A2A agent cards.

    One instance can run any number of validations; nothing is kept between
    calls. Pass ``http`` to share a transport (tests inject one backed by
    ``httpx.MockTransport``); otherwise each call opens and closes its own.

    Example:
        >>> validator = CardValidator()
        >>> result = await validator.validate(card, ValidationOptions(test_live=True))
        >>> result.scoring_result.availability.tested
        True
    """

    def __init__(
        self,
        http: HttpTransport | None = None,
        *,
        registry: CheckerRegistry | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
        clock: Callable[[], float] = time.perf_counter,
        now: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the validator.

        Args:
            http: Shared transport. Not closed by the validator.
            registry: Transport checkers used by live probing.
            logger: Logger bound with ``validation_id`` for every call.
            clock: Monotonic clock (seconds) for durations.
            now: Wall clock (unix seconds) for signature recency.
        """
        self._http = http
        self._registry = registry
        self._logger = logger or get_logger(__name__)
        self._clock = clock
        self._now = now

    def _elapsed_ms(self, started: float) -> float:
        return round((self._clock() - started) * 1000, 2)

    async def validate(
        self, card: Any, options: ValidationOptions | None = None
    ) -> ValidationResult:
        """Validate one agent card.

        Args:
            card: A mapping, an ``AgentCard`` or JSON text.
            options: Validation options; defaults to progressive, static only.

        Returns:
            The aggregate ValidationResult.

        Raises:
            TypeError: If ``card`` is none of the accepted input types.
        """
        options = options or ValidationOptions()
        log = self._logger.bind(validation_id=generate_validation_id())
        parsed, problem = parse_card_input(card)
        if parsed is None:
            log.warning("cardcheck.validation.unparseable", code=problem.code)
            return self._unparseable(problem, options)

        if self._http is not None:
            return await self._run(parsed, options, self._http.bind(log), log, _Report())
        async with HttpTransport(clock=self._clock, logger=log) as http:
            return await self._run(parsed, options, http, log, _Report())

    async def validate_source(
        self, source: str, options: ValidationOptions | None = None
    ) -> ValidationResult:
        """Resolve a file path or URL to a card, then validate it.

        A card that cannot be loaded gives a failed result carrying a
        ``CARD_LOAD_ERROR`` finding rather than an exception.
        """
        options = options or ValidationOptions()
        log = self._logger.bind(validation_id=generate_validation_id())
        if self._http is not None:
            return await self._resolve_and_run(source, options, self._http.bind(log), log)
        async with HttpTransport(clock=self._clock, logger=log) as http:
            return await self._resolve_and_run(source, options, http, log)

    async def _resolve_and_run(
        self,
        source: str,
        options: ValidationOptions,
        http: HttpTransport,
        log: structlog.stdlib.BoundLogger,
    ) -> ValidationResult:
        cancel = CancelToken()
        try:
            discovered = await resolve_card(
                source, http, timeout=options.timeout_seconds, cancel=cancel, logger=log
            )
        except CardLoadError as exc:
            log.warning("cardcheck.validation.load_failed", reason=exc.reason, error=exc.message)
            finding = ValidationFinding(
                code=CARD_LOAD_ERROR,
                message=exc.message,
                field="source",
                severity=Severity.ERROR,
            )
            return self._unparseable(finding, options)

        report = _Report()
        warnings, suggestions = legacy_discovery_findings(discovered)
        report.add(warnings=warnings, suggestions=suggestions)
        return await self._run(discovered.card, options, http, log, report, cancel=cancel)

    async def _run(
        self,
        card: dict[str, Any],
        options: ValidationOptions,
        http: HttpTransport,
        log: structlog.stdlib.BoundLogger,
        report: _Report,
        *,
        cancel: CancelToken | None = None,
    ) -> ValidationResult:
        started = self._clock()
        cancel = cancel or CancelToken()
        log.info(
            "cardcheck.validation.started",
            strictness=options.strictness.value,
            live=options.live_testing_enabled,
        )

        self._run_schema(card, options, log, report)
        compatibility = self._run_version(card, options, log, report)
        signature_result = await self._run_signatures(card, options, http, log, cancel, report)
        probe_results = await self._run_probe(card, options, http, log, cancel, report)

        scoring = calculate_scores(
            ScoringInputs(
                card=card, signature_result=signature_result, probe_results=probe_results
            ),
            ScoringContext(
                schema_only=options.schema_only,
                skip_signature_verification=options.skip_signature_verification,
                test_live=options.live_testing_enabled,
                strict=options.strict,
                now=self._now(),
            ),
        )
        result = ValidationResult(
            success=not report.errors,
            score=scoring.legacy_score,
            errors=report.errors,
            warnings=report.warnings,
            suggestions=report.suggestions,
            validations=report.validations,
            version_info=VersionInfo(
                detected_version=compatibility.detected_version or UNDEFINED_VERSION,
                validator_version=VALIDATOR_VERSION,
                strictness=options.strictness,
                compatibility=compatibility,
                migration_path=list(compatibility.suggestions),
            ),
            signature_verification=signature_result,
            live_probes=probe_results or [],
            scoring_result=scoring,
            duration_ms=self._elapsed_ms(started),
        )
        log.info(
            "cardcheck.validation.completed",
            success=result.success,
            score=result.score,
            error_count=len(result.errors),
            warning_count=len(result.warnings),
            duration_ms=result.duration_ms,
        )
        return result

    def _run_schema(
        self,
        card: dict[str, Any],
        options: ValidationOptions,
        log: structlog.stdlib.BoundLogger,
        report: _Report,
    ) -> None:
        schema = SchemaValidator(clock=self._clock, logger=log).validate(
            card, strict=options.strict
        )
        report.add(errors=schema.errors, warnings=schema.warnings)
        report.check(
            "schema_validation",
            "Schema Validation",
            CheckStatus.PASSED if schema.passed else CheckStatus.FAILED,
            (
                "Agent card conforms to A2A v0.3.0 schema"
                if schema.passed
                else f"Schema validation failed with {len(schema.errors)} error(s)"
            ),
            duration_ms=schema.duration_ms,
        )

    def _run_version(
        self,
        card: dict[str, Any],
        options: ValidationOptions,
        log: structlog.stdlib.BoundLogger,
        report: _Report,
    ) -> VersionCompatibility:
        started = self._clock()
        compatibility = VersionCompatibilityAnalyzer(logger=log).analyze(card, options.strictness)
        errors, warnings, suggestions = version_findings(compatibility, strict=options.strict)
        grpc = grpc_streaming_finding(card, strict=options.strict)
        if grpc is not None:
            (errors if grpc.severity is Severity.ERROR else warnings).append(grpc)
        report.add(errors=errors, warnings=warnings, suggestions=suggestions)

        clean = not errors and not warnings
        report.check(
            "v030_features",
            "A2A v0.3.0 Features",
            CheckStatus.PASSED if clean else CheckStatus.FAILED,
            (
                "All v0.3.0 features are properly configured"
                if clean
                else "Version compatibility issues detected"
            ),
            duration_ms=self._elapsed_ms(started),
            details={"mismatches": len(compatibility.mismatches)},
        )
        return compatibility

    async def _run_signatures(
        self,
        card: dict[str, Any],
        options: ValidationOptions,
        http: HttpTransport,
        log: structlog.stdlib.BoundLogger,
        cancel: CancelToken,
        report: _Report,
    ) -> SignatureVerificationResult:
        started = self._clock()
        signatures = card.get("signatures")
        has_signatures = isinstance(signatures, list) and bool(signatures)
        check_id, name = "signature_verification", "JWS Signature Verification"

        if options.skip_signature_verification:
            if has_signatures:
                report.add(
                    warnings=[
                        ValidationFinding(
                            code=SIGNATURE_VERIFICATION_SKIPPED,
                            message=(
                                "Signature verification skipped - this reduces trust "
                                "verification"
                            ),
                            field="signatures",
                            severity=Severity.WARNING,
                        )
                    ]
                )
            report.check(
                check_id,
                name,
                CheckStatus.SKIPPED,
                "Signature verification was explicitly skipped",
                duration_ms=self._elapsed_ms(started),
            )
            return SignatureVerificationResult.not_run(SignatureOutcome.SKIPPED)

        if not has_signatures:
            report.add(
                warnings=[
                    ValidationFinding(
                        code=NO_SIGNATURES,
                        message=(
                            "Agent card has no signatures. Consider adding signatures "
                            "to improve trust"
                        ),
                        field="signatures",
                        severity=Severity.WARNING,
                        fixable=True,
                    )
                ],
                suggestions=[
                    ValidationSuggestion(
                        id="add_signatures",
                        message="Sign the agent card with a JWS detached signature",
                        impact="Verified signatures raise trust confidence from 0.6x to 1.0x",
                        fixable=True,
                    )
                ],
            )
            report.check(
                check_id,
                name,
                CheckStatus.SKIPPED,
                "No signatures found to verify",
                duration_ms=self._elapsed_ms(started),
            )
            return SignatureVerificationResult.not_run(SignatureOutcome.NO_SIGNATURES)

        result = await SignatureVerifier(http, logger=log).verify(
            card, timeout=options.timeout_seconds, cancel=cancel
        )
        report.add(
            errors=[
                ValidationFinding(
                    code=SIGNATURE_VERIFICATION_FAILED,
                    message=f"Signature {verdict.index + 1} verification failed: {verdict.error}",
                    field=f"signatures[{verdict.index}]",
                    severity=Severity.ERROR,
                )
                for verdict in result.signatures
                if not verdict.valid
            ]
        )
        summary = result.summary
        report.check(
            check_id,
            name,
            CheckStatus.FAILED if result.has_failed_signature else CheckStatus.PASSED,
            f"{summary.valid} of {summary.total} signatures verified",
            duration_ms=self._elapsed_ms(started),
            details={"valid": summary.valid, "failed": summary.failed},
        )
        return result

    async def _run_probe(
        self,
        card: dict[str, Any],
        options: ValidationOptions,
        http: HttpTransport,
        log: structlog.stdlib.BoundLogger,
        cancel: CancelToken,
        report: _Report,
    ) -> list[LiveProbeResult] | None:
        check_id, name = "transport_probe", "Live Transport Probe"
        if not options.live_testing_enabled:
            report.check(
                check_id,
                name,
                CheckStatus.SKIPPED,
                (
                    "Schema-only validation requested"
                    if options.schema_only
                    else "Live testing not requested"
                ),
            )
            return None

        started = self._clock()
        probe = TransportProbe(http, registry=self._registry, clock=self._clock, logger=log)
        results = await probe.probe(card, options.probe_options(), cancel=cancel)
        errors, warnings = probe_findings(results)
        report.add(errors=errors, warnings=warnings)
        reachable = sum(1 for result in results if result.success)
        report.check(
            check_id,
            name,
            CheckStatus.PASSED if not errors else CheckStatus.FAILED,
            f"{reachable} of {len(results)} interfaces passed live probing",
            duration_ms=self._elapsed_ms(started),
        )
        return results

    def _unparseable(
        self, problem: ValidationFinding, options: ValidationOptions
    ) -> ValidationResult:
        """Result for input that never became a card: one error, nothing else ran."""
        compatibility = VersionCompatibilityAnalyzer(logger=self._logger).analyze(
            {}, options.strictness
        )
        scoring = calculate_scores(
            ScoringInputs(card={}),
            ScoringContext(
                schema_only=options.schema_only,
                skip_signature_verification=options.skip_signature_verification,
                test_live=False,
                strict=options.strict,
                now=self._now(),
            ),
        )
        return ValidationResult(
            success=False,
            score=scoring.legacy_score,
            errors=[problem],
            validations=[
                ValidationCheck(
                    id="schema_validation",
                    name="Schema Validation",
                    status=CheckStatus.FAILED,
                    message=problem.message,
                )
            ],
            version_info=VersionInfo(
                detected_version=UNDEFINED_VERSION,
                validator_version=VALIDATOR_VERSION,
                strictness=options.strictness,
                compatibility=compatibility,
            ),
            scoring_result=scoring,
        )


async def validate_card_async(
    card: Any,
    options: ValidationOptions | None = None,
    *,
    http: HttpTransport | None = None,
    logger: structlog.stdlib.BoundLogger | None = None,
) -> ValidationResult:
    """Validate a card with a fresh ``CardValidator``."""
    return await CardValidator(http, logger=logger).validate(card, options)


def validate_card(
    card: Any,
    options: ValidationOptions | None = None,
    *,
    http: HttpTransport | None = None,
    logger: structlog.stdlib.BoundLogger | None = None,
) -> ValidationResult:
    """Synchronous wrapper around ``validate_card_async``.

    Raises:
        RuntimeError: When called from inside a running event loop; use
            ``validate_card_async`` there.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(validate_card_async(card, options, http=http, logger=logger))
    raise RuntimeError(
        "validate_card() cannot be called from a running event loop; "
        "await validate_card_async() instead"
    )
