"""Utility helpers for cardcheck."""

from cardcheck.utils.sanitization import sanitize_token, sanitize_url, truncate_body
from cardcheck.utils.semver import is_semver, parse_version, version_lt
from cardcheck.utils.urls import (
    get_hostname,
    is_http_url,
    is_https_url,
    is_ssrf_risk,
    is_valid_url,
)

__all__ = [
    "get_hostname",
    "is_http_url",
    "is_https_url",
    "is_semver",
    "is_ssrf_risk",
    "is_valid_url",
    "parse_version",
    "sanitize_token",
    "sanitize_url",
    "truncate_body",
    "version_lt",
]
