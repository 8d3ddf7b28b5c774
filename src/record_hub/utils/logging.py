"""Structured logging framework using structlog.

This module provides centralized logging configuration with:
- ISO-8601 timestamps
- JSON rendering for structured logs
- Automatic redaction of credentials (passwords, hashes, salts, tokens)
- Context binding support

Configuration is loaded from record_hub.config.settings:
- LOG_LEVEL: Set log level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Default: INFO

Usage:
    >>> from record_hub.utils.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("relational.user_lookup", username="alice")
"""

import logging
import os
import re
from typing import Any, Dict, MutableMapping

import structlog
from structlog.types import EventDict, Processor

from record_hub.config import get_settings

# Sensitive key patterns for sanitization
SENSITIVE_PATTERNS = [
    re.compile(r".*password.*", re.IGNORECASE),
    re.compile(r".*token.*", re.IGNORECASE),
    re.compile(r".*secret.*", re.IGNORECASE),
    re.compile(r".*salt.*", re.IGNORECASE),
    re.compile(r"^RECORD_HUB_.*_URL$", re.IGNORECASE),
]

REDACTED_VALUE = "[REDACTED]"


def sanitize_for_logging(data: Dict[str, Any]) -> Dict[str, Any]:
    """Redact sensitive values from a dictionary before logging.

    Example:
        >>> sanitize_for_logging({"password_hash": "abc", "username": "alice"})
        {'password_hash': '[REDACTED]', 'username': 'alice'}
    """
    sanitized: Dict[str, Any] = {}
    for key, value in data.items():
        if any(pattern.match(key) for pattern in SENSITIVE_PATTERNS):
            sanitized[key] = REDACTED_VALUE
        elif isinstance(value, dict):
            sanitized[key] = sanitize_for_logging(value)
        else:
            sanitized[key] = value
    return sanitized


def sanitization_processor(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> MutableMapping[str, Any]:
    """Structlog processor that redacts sensitive fields in event_dict."""
    return sanitize_for_logging(dict(event_dict))


def _get_log_level() -> int:
    try:
        level_name = get_settings().LOG_LEVEL.upper()
    except Exception:
        # Settings validation failures must not prevent logging from starting
        level_name = os.getenv("LOG_LEVEL", "INFO").upper()

    return getattr(logging, level_name, logging.INFO)


def _configure_structlog() -> None:
    """Configure structlog with JSON rendering and sanitization."""
    level = _get_log_level()
    logging.basicConfig(format="%(message)s", level=level, handlers=[])

    stdout_handler = logging.StreamHandler()
    stdout_handler.setLevel(level)
    logging.root.addHandler(stdout_handler)

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        sanitization_processor,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Configure structlog on module import
_configure_structlog()


def get_logger(name: str) -> Any:
    """Get a structlog BoundLogger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)
    """
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> Any:
    """Create a logger with bound context fields.

    Example:
        >>> logger = bind_context(backend="relational", username="alice")
        >>> logger.info("lookup_started")
    """
    return structlog.get_logger().bind(**kwargs)
