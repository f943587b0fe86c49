"""Protocol version compatibility analysis.

Compares the card's declared ``protocolVersion`` with the features it uses.
Each gated feature has a minimum protocol version (``FEATURE_MIN_VERSIONS``);
using it under an older (or missing) declaration is a mismatch. Whether a
mismatch blocks validation is decided by the orchestrator from the
strictness level, not here.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from cardcheck.models.constants import FEATURE_MIN_VERSIONS, LATEST_PROTOCOL_VERSION
from cardcheck.models.enums import Severity, ValidationStrictness
from cardcheck.models.results import VersionCompatibility, VersionMismatch
from cardcheck.observability import get_logger
from cardcheck.utils.semver import version_lt

UNDEFINED_VERSION = "undefined"


def _lookup(card: Mapping[str, Any], path: str) -> Any:
    current: Any = card
    for key in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _is_used(value: Any) -> bool:
    """A feature is in use when its flag is true or its list is non-empty."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return False


def used_features(card: Mapping[str, Any]) -> list[str]:
    """Return the gated feature paths the card uses, in table order."""
    return [path for path in FEATURE_MIN_VERSIONS if _is_used(_lookup(card, path))]


def migration_suggestion(required_version: str) -> str:
    return f'Update protocolVersion to "{required_version}" to match used features'


class VersionCompatibilityAnalyzer:
    """Detects features that need a newer protocol version than declared.

    Example:
        >>> analyzer = VersionCompatibilityAnalyzer()
        >>> result = analyzer.analyze({"protocolVersion": "0.2.0",
        ...                            "capabilities": {"streaming": True}})
        >>> result.compatible
        False
    """

    def __init__(self, *, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        self._logger = logger or get_logger(__name__)

    def analyze(
        self,
        card: Mapping[str, Any],
        strictness: ValidationStrictness = ValidationStrictness.PROGRESSIVE,
    ) -> VersionCompatibility:
        """Analyze a card.

        Args:
            card: Parsed agent card.
            strictness: Validation strictness, recorded in the log event. The
                mismatch list itself does not depend on it.

        Returns:
            VersionCompatibility with mismatches and migration suggestions.
        """
        declared = card.get("protocolVersion")
        detected = declared if isinstance(declared, str) and declared else None
        mismatches: list[VersionMismatch] = []

        for feature in used_features(card):
            required, label = FEATURE_MIN_VERSIONS[feature]
            if detected is None:
                mismatches.append(
                    VersionMismatch(
                        feature=feature,
                        required_version=required,
                        detected_version=UNDEFINED_VERSION,
                        severity=Severity.WARNING,
                        description=(
                            f"{label} requires protocolVersion to be specified "
                            f"(minimum {required})"
                        ),
                    )
                )
            elif version_lt(detected, required):
                mismatches.append(
                    VersionMismatch(
                        feature=feature,
                        required_version=required,
                        detected_version=detected,
                        severity=Severity.WARNING,
                        description=f"{label} was introduced in A2A v{required}",
                    )
                )

        suggestions: list[str] = []
        for mismatch in mismatches:
            suggestion = migration_suggestion(mismatch.required_version)
            if suggestion not in suggestions:
                suggestions.append(suggestion)

        self._logger.debug(
            "cardcheck.version.analyzed",
            detected_version=detected or UNDEFINED_VERSION,
            strictness=strictness.value,
            mismatch_count=len(mismatches),
        )
        return VersionCompatibility(
            detected_version=detected or UNDEFINED_VERSION,
            target_version=LATEST_PROTOCOL_VERSION,
            compatible=not mismatches,
            mismatches=mismatches,
            suggestions=suggestions,
        )
