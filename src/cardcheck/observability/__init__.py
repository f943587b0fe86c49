"""Observability helpers for cardcheck.

Structured logging (structlog) with JSON output for pipelines and a console
renderer for humans.

Example:
    >>> from cardcheck.observability import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info("cardcheck.validation.started", url="https://agent.example.com")
"""

from cardcheck.observability.logging import (
    configure_logging,
    get_logger,
    is_debug_mode,
    sanitize_for_logging,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "is_debug_mode",
    "sanitize_for_logging",
]
