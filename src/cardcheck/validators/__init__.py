"""Static validators: card schema, protocol version compatibility, runtime messages."""

from cardcheck.validators.runtime import (
    RuntimeIssue,
    RuntimeValidationResult,
    validate_message,
)
from cardcheck.validators.schema import SchemaResult, SchemaValidator
from cardcheck.validators.version import VersionCompatibilityAnalyzer

__all__ = [
    "RuntimeIssue",
    "RuntimeValidationResult",
    "SchemaResult",
    "SchemaValidator",
    "VersionCompatibilityAnalyzer",
    "validate_message",
]
