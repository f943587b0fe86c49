"""Custom assertions for cardcheck tests.

Functions:
    assert_valid_result: Assert a result has no errors, listing them if it does.
    assert_has_error: Assert an error with the given code (and field) exists.
    assert_has_warning: Same for warnings.
"""

from cardcheck.models.results import ValidationFinding, ValidationResult


def _describe(findings: list[ValidationFinding]) -> str:
    return ", ".join(f"{f.code}@{f.field}" for f in findings) or "none"


def _find(
    findings: list[ValidationFinding], code: str, field: str | None
) -> list[ValidationFinding]:
    return [
        finding
        for finding in findings
        if finding.code == code and (field is None or finding.field == field)
    ]


def assert_valid_result(result: ValidationResult) -> None:
    """Assert that validation succeeded.

    Raises:
        AssertionError: Naming every error when the result is not a success.
    """
    assert result.success, f"Expected success, got errors: {_describe(result.errors)}"
    assert not result.errors


def assert_has_error(
    result: ValidationResult, code: str, *, field: str | None = None
) -> ValidationFinding:
    """Assert an error with ``code`` (and ``field``, if given) was reported.

    Returns:
        The first matching finding, for further checks on its message.
    """
    matches = _find(result.errors, code, field)
    assert matches, f"Expected error {code}@{field}, got: {_describe(result.errors)}"
    return matches[0]


def assert_has_warning(
    result: ValidationResult, code: str, *, field: str | None = None
) -> ValidationFinding:
    matches = _find(result.warnings, code, field)
    assert matches, f"Expected warning {code}@{field}, got: {_describe(result.warnings)}"
    return matches[0]


__all__ = [
    "assert_has_error",
    "assert_has_warning",
    "assert_valid_result",
]
