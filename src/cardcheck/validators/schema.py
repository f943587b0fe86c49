"""Structural and format validation of agent cards.

``SchemaValidator`` is a pure function of the card: it never performs I/O and
reports every violation as a ``ValidationFinding``. Rules are hand-written
rather than driven by a JSON Schema document so that each failure carries a
stable code and a field path.

A missing required field yields exactly one error for that field; checks that
depend on a missing field are skipped rather than reported a second time.
"""

from __future__ import annotations

import re
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable

import structlog

from cardcheck.models.constants import (
    KNOWN_PROTOCOL_VERSIONS,
    MAX_DESCRIPTION_LENGTH,
    MAX_NAME_LENGTH,
    MIME_TYPE_PATTERN,
    OPTIONAL_URL_FIELDS,
    SCHEMA_REQUIRED_FIELDS,
)
from cardcheck.models.enums import Severity, TransportProtocol
from cardcheck.models.results import ValidationFinding
from cardcheck.observability import get_logger
from cardcheck.utils.semver import is_semver
from cardcheck.utils.urls import is_https_url, is_ssrf_risk, is_valid_url

SCHEMA_VALIDATION_ERROR = "SCHEMA_VALIDATION_ERROR"
URL_SSRF_RISK = "URL_SSRF_RISK"
TRANSPORT_URL_CONFLICT = "TRANSPORT_URL_CONFLICT"
PRIMARY_INTERFACE_NOT_DECLARED = "PRIMARY_INTERFACE_NOT_DECLARED"
SKILL_MISSING_TAGS = "SKILL_MISSING_TAGS"
NO_SKILLS_DECLARED = "NO_SKILLS_DECLARED"

_MIME_RE = re.compile(MIME_TYPE_PATTERN, re.IGNORECASE | re.ASCII)
_TRANSPORT_CHOICES = ", ".join(t.value for t in TransportProtocol)
_CAPABILITY_FLAGS = ("streaming", "pushNotifications", "stateTransitionHistory")


def json_type(value: Any) -> str:
    """Name a Python value by its JSON type, for error messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def is_mime_type(value: object) -> bool:
    return isinstance(value, str) and _MIME_RE.match(value) is not None


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


@dataclass(frozen=True)
class SchemaResult:
    errors: list[ValidationFinding] = field(default_factory=list)
    warnings: list[ValidationFinding] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def passed(self) -> bool:
        return not self.errors


class _Findings:
    """Accumulates findings for a single validate() call."""

    def __init__(self) -> None:
        self.errors: list[ValidationFinding] = []
        self.warnings: list[ValidationFinding] = []

    def error(self, path: str, message: str, *, code: str = SCHEMA_VALIDATION_ERROR) -> None:
        self.errors.append(
            ValidationFinding(
                code=code,
                message=f"{path}: {message}",
                field=path,
                severity=Severity.ERROR,
                fixable=True,
            )
        )

    def warning(self, path: str | None, code: str, message: str) -> None:
        self.warnings.append(
            ValidationFinding(
                code=code,
                message=message,
                field=path,
                severity=Severity.WARNING,
                fixable=True,
            )
        )


class SchemaValidator:
    """Checks presence, type and format of every agent card field.

    Example:
        >>> result = SchemaValidator().validate(card)
        >>> [e.field for e in result.errors]
        []
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.perf_counter,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._clock = clock
        self._logger = logger or get_logger(__name__)

    def validate(self, card: Mapping[str, Any], *, strict: bool = False) -> SchemaResult:
        """Validate a parsed agent card.

        Args:
            card: The card as a JSON object.
            strict: Require https for every URL.

        Returns:
            SchemaResult with errors, warnings and the time spent.
        """
        started = self._clock()
        findings = _Findings()

        missing = self._check_required(card, findings)
        self._check_scalars(card, missing, findings)
        self._check_urls(card, strict, findings)
        self._check_provider(card, missing, strict, findings)
        self._check_transports(card, missing, strict, findings)
        self._check_modes(card, missing, findings)
        self._check_capabilities(card, missing, findings)
        self._check_skills(card, missing, findings)
        self._check_signatures(card, findings)
        self._check_transport_consistency(card, findings)

        duration_ms = round((self._clock() - started) * 1000, 2)
        self._logger.debug(
            "cardcheck.schema.completed",
            error_count=len(findings.errors),
            warning_count=len(findings.warnings),
            duration_ms=duration_ms,
        )
        return SchemaResult(
            errors=findings.errors, warnings=findings.warnings, duration_ms=duration_ms
        )

    def _check_required(self, card: Mapping[str, Any], findings: _Findings) -> set[str]:
        missing: set[str] = set()
        for name in SCHEMA_REQUIRED_FIELDS:
            if _is_missing(card.get(name)):
                findings.error(name, "Required")
                missing.add(name)
        return missing

    def _check_scalars(
        self, card: Mapping[str, Any], missing: set[str], findings: _Findings
    ) -> None:
        for name in ("name", "description", "url", "version", "protocolVersion"):
            value = card.get(name)
            if name not in missing and not isinstance(value, str):
                findings.error(name, f"Expected string, received {json_type(value)}")
                missing.add(name)

        limits = {"name": MAX_NAME_LENGTH, "description": MAX_DESCRIPTION_LENGTH}
        for name, limit in limits.items():
            if name not in missing and len(card[name]) > limit:
                findings.error(name, f"String must contain at most {limit} character(s)")

        if "version" not in missing and not is_semver(card["version"]):
            findings.error("version", "Version must follow semver format")

        protocol_version = card.get("protocolVersion")
        if "protocolVersion" not in missing and protocol_version not in KNOWN_PROTOCOL_VERSIONS:
            findings.error(
                "protocolVersion", f"Must be one of {', '.join(KNOWN_PROTOCOL_VERSIONS)}"
            )

    def _check_urls(self, card: Mapping[str, Any], strict: bool, findings: _Findings) -> None:
        candidates: list[tuple[str, Any]] = []
        if isinstance(card.get("url"), str) and card["url"]:
            candidates.append(("url", card["url"]))
        for name in OPTIONAL_URL_FIELDS:
            if card.get(name) is not None:
                candidates.append((name, card[name]))
        for path, value in candidates:
            self._check_url(path, value, strict, findings)

    def _check_url(self, path: str, value: Any, strict: bool, findings: _Findings) -> None:
        if not is_valid_url(value):
            findings.error(path, "Invalid URL format")
            return
        if strict and not is_https_url(value):
            findings.error(path, "URL must use HTTPS in strict mode")
        if is_ssrf_risk(value):
            findings.error(
                path,
                "URL points to a private, loopback or link-local address",
                code=URL_SSRF_RISK,
            )

    def _check_provider(
        self, card: Mapping[str, Any], missing: set[str], strict: bool, findings: _Findings
    ) -> None:
        if "provider" in missing:
            return
        provider = card["provider"]
        if not isinstance(provider, Mapping):
            findings.error("provider", f"Expected object, received {json_type(provider)}")
            return
        organization = provider.get("organization")
        if _is_missing(organization):
            findings.error("provider.organization", "Required")
        elif not isinstance(organization, str):
            findings.error(
                "provider.organization", f"Expected string, received {json_type(organization)}"
            )
        if _is_missing(provider.get("url")):
            findings.error("provider.url", "Required")
        else:
            self._check_url("provider.url", provider["url"], strict, findings)

    def _check_transports(
        self, card: Mapping[str, Any], missing: set[str], strict: bool, findings: _Findings
    ) -> None:
        if "preferredTransport" not in missing:
            if TransportProtocol.parse(card["preferredTransport"]) is None:
                findings.error("preferredTransport", f"Must be one of {_TRANSPORT_CHOICES}")

        interfaces = card.get("additionalInterfaces")
        if interfaces is None:
            return
        if not isinstance(interfaces, list):
            findings.error(
                "additionalInterfaces", f"Expected array, received {json_type(interfaces)}"
            )
            return
        for index, interface in enumerate(interfaces):
            path = f"additionalInterfaces.{index}"
            if not isinstance(interface, Mapping):
                findings.error(path, f"Expected object, received {json_type(interface)}")
                continue
            if _is_missing(interface.get("url")):
                findings.error(f"{path}.url", "Required")
            else:
                self._check_url(f"{path}.url", interface["url"], strict, findings)
            if _is_missing(interface.get("transport")):
                findings.error(f"{path}.transport", "Required")
            elif TransportProtocol.parse(interface["transport"]) is None:
                findings.error(f"{path}.transport", f"Must be one of {_TRANSPORT_CHOICES}")

    def _check_mode_list(self, path: str, value: Any, findings: _Findings) -> None:
        if not isinstance(value, list):
            findings.error(path, f"Expected array, received {json_type(value)}")
            return
        for index, mode in enumerate(value):
            if not isinstance(mode, str):
                findings.error(f"{path}.{index}", f"Expected string, received {json_type(mode)}")
            elif not is_mime_type(mode):
                findings.error(f"{path}.{index}", f'Invalid MIME type "{mode}"')

    def _check_modes(
        self, card: Mapping[str, Any], missing: set[str], findings: _Findings
    ) -> None:
        for name in ("defaultInputModes", "defaultOutputModes"):
            if name in missing:
                continue
            value = card[name]
            if isinstance(value, list) and not value:
                findings.error(name, "Array must contain at least 1 element(s)")
                continue
            self._check_mode_list(name, value, findings)

    def _check_capabilities(
        self, card: Mapping[str, Any], missing: set[str], findings: _Findings
    ) -> None:
        if "capabilities" in missing:
            return
        capabilities = card["capabilities"]
        if not isinstance(capabilities, Mapping):
            findings.error(
                "capabilities", f"Expected object, received {json_type(capabilities)}"
            )
            return
        for flag in _CAPABILITY_FLAGS:
            value = capabilities.get(flag)
            if value is not None and not isinstance(value, bool):
                findings.error(
                    f"capabilities.{flag}", f"Expected boolean, received {json_type(value)}"
                )

    def _check_skills(
        self, card: Mapping[str, Any], missing: set[str], findings: _Findings
    ) -> None:
        if "skills" in missing:
            return
        skills = card["skills"]
        if not isinstance(skills, list):
            findings.error("skills", f"Expected array, received {json_type(skills)}")
            return
        if not skills:
            findings.warning(
                "skills", NO_SKILLS_DECLARED, "Agent card declares no skills"
            )
            return

        seen_ids: set[str] = set()
        reported_duplicates: set[str] = set()
        for index, skill in enumerate(skills):
            path = f"skills.{index}"
            if not isinstance(skill, Mapping):
                findings.error(path, f"Expected object, received {json_type(skill)}")
                continue

            for name in ("id", "name", "description"):
                value = skill.get(name)
                if _is_missing(value):
                    findings.error(f"{path}.{name}", "Required")
                elif not isinstance(value, str):
                    findings.error(
                        f"{path}.{name}", f"Expected string, received {json_type(value)}"
                    )

            skill_id = skill.get("id")
            if isinstance(skill_id, str) and skill_id:
                if skill_id in seen_ids and skill_id not in reported_duplicates:
                    findings.error(f"{path}.id", f'Duplicate skill id "{skill_id}"')
                    reported_duplicates.add(skill_id)
                seen_ids.add(skill_id)

            name = skill.get("name")
            if isinstance(name, str) and len(name) > MAX_NAME_LENGTH:
                findings.error(
                    f"{path}.name", f"String must contain at most {MAX_NAME_LENGTH} character(s)"
                )
            description = skill.get("description")
            if isinstance(description, str) and len(description) > MAX_DESCRIPTION_LENGTH:
                findings.error(
                    f"{path}.description",
                    f"String must contain at most {MAX_DESCRIPTION_LENGTH} character(s)",
                )

            self._check_skill_tags(path, skill, findings)

            examples = skill.get("examples")
            if examples is not None:
                if not isinstance(examples, list):
                    findings.error(
                        f"{path}.examples", f"Expected array, received {json_type(examples)}"
                    )
                else:
                    for example_index, example in enumerate(examples):
                        if not isinstance(example, str):
                            findings.error(
                                f"{path}.examples.{example_index}",
                                f"Expected string, received {json_type(example)}",
                            )

            for mode_field in ("inputModes", "outputModes"):
                if skill.get(mode_field) is not None:
                    self._check_mode_list(f"{path}.{mode_field}", skill[mode_field], findings)

    def _check_skill_tags(
        self, path: str, skill: Mapping[str, Any], findings: _Findings
    ) -> None:
        tags = skill.get("tags")
        if tags is None or tags == []:
            label = skill.get("id") if isinstance(skill.get("id"), str) else path
            findings.warning(
                f"{path}.tags", SKILL_MISSING_TAGS, f'Skill "{label}" has no tags'
            )
            return
        if not isinstance(tags, list):
            findings.error(f"{path}.tags", f"Expected array, received {json_type(tags)}")
            return
        for tag_index, tag in enumerate(tags):
            if not isinstance(tag, str):
                findings.error(
                    f"{path}.tags.{tag_index}", f"Expected string, received {json_type(tag)}"
                )

    def _check_signatures(self, card: Mapping[str, Any], findings: _Findings) -> None:
        signatures = card.get("signatures")
        if signatures is None:
            return
        if not isinstance(signatures, list):
            findings.error("signatures", f"Expected array, received {json_type(signatures)}")
            return
        for index, signature in enumerate(signatures):
            path = f"signatures.{index}"
            if not isinstance(signature, Mapping):
                findings.error(path, f"Expected object, received {json_type(signature)}")
                continue
            for name in ("protected", "signature"):
                value = signature.get(name)
                if _is_missing(value):
                    findings.error(f"{path}.{name}", "Required")
                elif not isinstance(value, str):
                    findings.error(
                        f"{path}.{name}", f"Expected string, received {json_type(value)}"
                    )

    def _check_transport_consistency(
        self, card: Mapping[str, Any], findings: _Findings
    ) -> None:
        alternates = interface_bindings(card)
        primary = primary_binding(card)
        bindings = list(alternates)
        if primary is not None and isinstance(card.get("preferredTransport"), str):
            bindings.insert(0, primary)

        transports_by_url: dict[str, list[str]] = {}
        for url, transport in bindings:
            seen = transports_by_url.setdefault(_normalize_url(url), [])
            if transport not in seen:
                seen.append(transport)
        for url, transports in transports_by_url.items():
            if len(transports) > 1:
                findings.errors.append(
                    ValidationFinding(
                        code=TRANSPORT_URL_CONFLICT,
                        message=(
                            f"URL {url} is declared with conflicting transports: "
                            f"{', '.join(transports)}"
                        ),
                        field="additionalInterfaces",
                        severity=Severity.ERROR,
                        fixable=True,
                    )
                )

        if alternates and primary is not None:
            declared = {(_normalize_url(url), transport) for url, transport in alternates}
            if (_normalize_url(primary[0]), primary[1]) not in declared:
                findings.warning(
                    "additionalInterfaces",
                    PRIMARY_INTERFACE_NOT_DECLARED,
                    "The primary url/preferredTransport pair should also be listed in "
                    "additionalInterfaces",
                )


def _normalize_url(url: str) -> str:
    return url.rstrip("/")


def primary_binding(card: Mapping[str, Any]) -> tuple[str, str] | None:
    """Return the (url, transport) pair of the primary interface, if the card has a url.

    ``preferredTransport`` defaults to JSONRPC when absent.
    """
    url = card.get("url")
    if not isinstance(url, str) or not url:
        return None
    transport = card.get("preferredTransport")
    if not isinstance(transport, str) or not transport:
        transport = TransportProtocol.JSONRPC.value
    return url, transport


def interface_bindings(card: Mapping[str, Any]) -> list[tuple[str, str]]:
    """Return (url, transport) pairs of ``additionalInterfaces`` in declaration order.

    Malformed entries are skipped.
    """
    interfaces = card.get("additionalInterfaces")
    if not isinstance(interfaces, list):
        return []
    return [
        (interface["url"], interface["transport"])
        for interface in interfaces
        if isinstance(interface, Mapping)
        and isinstance(interface.get("url"), str)
        and isinstance(interface.get("transport"), str)
    ]


def declared_bindings(card: Mapping[str, Any]) -> list[tuple[str, str]]:
    """Return every declared (url, transport) pair: the primary first, then alternates."""
    primary = primary_binding(card)
    bindings = [primary] if primary is not None else []
    return bindings + interface_bindings(card)
