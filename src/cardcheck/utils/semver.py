"""Semantic version helpers.

Cards must carry a full ``MAJOR.MINOR.PATCH[-pre][+build]`` version, which is
stricter than what ``packaging`` accepts, so validation uses a regex while
ordering is delegated to ``packaging.version``.
"""

import re

from packaging.version import InvalidVersion, Version

from cardcheck.models.constants import SEMVER_PATTERN

_SEMVER_RE = re.compile(SEMVER_PATTERN)


def is_semver(value: object) -> bool:
    """Return True if value is a string in full semver form.

    Example:
        >>> is_semver("1.2.3-beta.1+build.5")
        True
        >>> is_semver("1.2")
        False
    """
    return isinstance(value, str) and _SEMVER_RE.match(value) is not None


def parse_version(value: str) -> Version | None:
    """Parse the numeric core of a semver string for ordering, or None if invalid."""
    match = _SEMVER_RE.match(value)
    if match is None:
        return None
    try:
        return Version(".".join(match.group(1, 2, 3)))
    except InvalidVersion:
        return None


def version_lt(left: str, right: str) -> bool | None:
    """Return ``left < right`` for two semver strings, or None if either is invalid."""
    left_v = parse_version(left)
    right_v = parse_version(right)
    if left_v is None or right_v is None:
        return None
    return left_v < right_v
