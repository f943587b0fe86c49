"""Structured logging configuration for cardcheck.

Events are emitted through structlog and rendered by a single stderr handler,
either as human-readable console lines or as one JSON object per line.

Loggers are plain values: every validation component accepts a ``logger``
argument and the orchestrator binds a per-validation logger (carrying the
``validation_id``) that it hands down to each stage. Two validations running
concurrently in the same process therefore never share log context.

Environment Variables:
    CARDCHECK_LOG_FORMAT: Set to "json" for JSON output, "console" for colored output
    CARDCHECK_LOG_LEVEL: Set log level (DEBUG, INFO, WARNING, ERROR)
    CARDCHECK_SERVICE_NAME: Service name to include in logs
    CARDCHECK_DEBUG: Set to "true" or "1" to log full payloads;
        otherwise sensitive fields are redacted

Example:
    >>> from cardcheck.observability.logging import get_logger, configure_logging
    >>>
    >>> configure_logging(log_format="json", log_level="INFO")
    >>> logger = get_logger("cardcheck.validator").bind(validation_id="val_123")
    >>> logger.info("cardcheck.schema.completed", error_count=0)
"""

import logging
import os
import sys
from typing import Any

import structlog
from structlog.typing import Processor

# Default configuration
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_LOG_FORMAT = "console"
DEFAULT_SERVICE_NAME = "cardcheck"

# Environment variable names
ENV_LOG_FORMAT = "CARDCHECK_LOG_FORMAT"
ENV_LOG_LEVEL = "CARDCHECK_LOG_LEVEL"
ENV_SERVICE_NAME = "CARDCHECK_SERVICE_NAME"
ENV_DEBUG = "CARDCHECK_DEBUG"

REDACTED_PLACEHOLDER = "***REDACTED***"

# Matched case-insensitively as substrings of dict keys
_SENSITIVE_KEY_PATTERNS = frozenset(
    {"password", "token", "secret", "authorization", "cookie", "private", "api_key"}
)

_logging_configured = False


def _is_sensitive_key(key: object) -> bool:
    lower = str(key).lower()
    return any(pattern in lower for pattern in _SENSITIVE_KEY_PATTERNS)


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key: REDACTED_PLACEHOLDER if _is_sensitive_key(key) else _redact(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_redact(item) for item in value]
    return value


def sanitize_for_logging(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` that is safe to attach to a log event.

    Values under keys containing password, token, secret, authorization,
    cookie, private or api_key (case-insensitive) become
    ``REDACTED_PLACEHOLDER``, at any nesting depth. Agent replies are remote
    input, so they are always passed through here before being logged.
    With CARDCHECK_DEBUG enabled the data is returned unredacted.

    Example:
        >>> sanitize_for_logging({"kind": "message", "auth": {"api_key": "k"}})
        {'kind': 'message', 'auth': {'api_key': '***REDACTED***'}}
    """
    if not data:
        return {}
    if is_debug_mode():
        return dict(data)
    return _redact(data)


def is_debug_mode() -> bool:
    """True when CARDCHECK_DEBUG is set to true/1/yes/on."""
    return _env(ENV_DEBUG, "").strip().lower() in ("true", "1", "yes", "on")


def _env(name: str, default: str) -> str:
    return os.environ.get(name, default)


def _shared_processors() -> list[Processor]:
    """Processors applied to structlog events and to foreign stdlib records alike."""
    return [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]


def configure_logging(
    log_format: str | None = None,
    log_level: str | None = None,
    service_name: str | None = None,
    force: bool = False,
) -> None:
    """Configure structured logging for the application.

    Logs go to stderr so that ``cardcheck validate --json`` keeps stdout
    machine-readable.

    Args:
        log_format: Output format - "json" or "console". Defaults to env var or "console"
        log_level: Minimum log level. Defaults to env var or "WARNING"
        service_name: Service name added to every event. Defaults to env var or "cardcheck"
        force: If True, reconfigure even if already configured
    """
    global _logging_configured

    if _logging_configured and not force:
        return

    fmt = log_format or _env(ENV_LOG_FORMAT, DEFAULT_LOG_FORMAT).lower()
    level = (log_level or _env(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL)).upper()
    service = service_name or _env(ENV_SERVICE_NAME, DEFAULT_SERVICE_NAME)

    def add_service(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service)
        return event_dict

    pre_chain = _shared_processors()
    structlog.configure(
        processors=[
            *pre_chain,
            add_service,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_stderr_handler(fmt, pre_chain))
    root.setLevel(getattr(logging, level, logging.WARNING))
    _logging_configured = True


def _stderr_handler(fmt: str, pre_chain: list[Processor]) -> logging.Handler:
    renderer: Processor
    if fmt == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(), exception_formatter=structlog.dev.plain_traceback
        )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    return handler


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return the structlog logger called ``name``, configuring logging on first use.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger = logger.bind(validation_id="val_123")
        >>> logger.info("cardcheck.probe.completed")
    """
    if not _logging_configured:
        configure_logging()

    return structlog.stdlib.get_logger(name)
