"""Logging setup with automatic redaction of credentials.

Requests built by the transport core carry bearer tokens in their
Authorization header. This module provides:
- String and header sanitization for log output
- A formatter that sanitizes every log record
- A one-shot ``setup_logging`` helper and ``configure_logging``, which
  reads the level from a ``RequestConfig``
"""

import logging
import re
import sys
from typing import TYPE_CHECKING, Iterable, List, Tuple

if TYPE_CHECKING:
    from .config.settings import RequestConfig

SENSITIVE_PATTERNS = {
    "bearer_token": re.compile(r"Bearer\s+[A-Za-z0-9._~+/=-]+", re.IGNORECASE),
    "basic_auth": re.compile(r"Basic\s+[A-Za-z0-9+/=]+", re.IGNORECASE),
}

# Headers that should never be logged
SENSITIVE_HEADERS = {
    "authorization",
    "cookie",
    "set-cookie",
    "dropbox-api-select-user",
}

_LOGGING_CONFIGURED = False


def sanitize_string(value: str) -> str:
    """Redact credentials embedded in a string.

    :param value: String to sanitize
    :type value: str
    :return: String with every credential match replaced
    :rtype: str
    """
    if not value:
        return value
    for pattern_name, pattern in SENSITIVE_PATTERNS.items():
        value = pattern.sub(f"<{pattern_name}:REDACTED>", value)
    return value


def sanitize_headers(headers: Iterable[Tuple[str, str]]) -> List[Tuple[str, str]]:
    """Sanitize an ordered header sequence for logging.

    :param headers: Sequence of ``(name, value)`` pairs
    :type headers: Iterable[Tuple[str, str]]
    :return: New list with sensitive values redacted
    :rtype: List[Tuple[str, str]]
    """
    sanitized = []
    for name, value in headers or ():
        if name.lower() in SENSITIVE_HEADERS:
            sanitized.append((name, f"<REDACTED:length={len(value)}>"))
        else:
            sanitized.append((name, sanitize_string(value)))
    return sanitized


class SanitizingFormatter(logging.Formatter):
    """Formatter that redacts credentials from log messages and arguments."""

    def format(self, record: logging.LogRecord) -> str:
        if record.args:
            try:
                record.msg = sanitize_string(record.msg % record.args)
                record.args = None
            except (TypeError, ValueError):
                record.msg = sanitize_string(str(record.msg))
                record.args = tuple(
                    sanitize_string(a) if isinstance(a, str) else a
                    for a in record.args
                )
        else:
            record.msg = sanitize_string(str(record.msg))
        return super().format(record)


def setup_logging(level: str = "INFO") -> None:
    """Install a sanitizing stream handler on the root logger.

    Subsequent calls are no-ops so handlers are never duplicated.

    :param level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    :type level: str
    """
    global _LOGGING_CONFIGURED

    if _LOGGING_CONFIGURED:
        logging.getLogger(__name__).debug("Logging already configured")
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        SanitizingFormatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        handlers=[handler],
        force=True,
    )
    # httpx logs full request lines at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    _LOGGING_CONFIGURED = True


def configure_logging(config: "RequestConfig") -> None:
    """Set up sanitized logging at ``config.log_level``.

    :param config: Request configuration carrying the log level
    :type config: RequestConfig
    """
    setup_logging(config.log_level)
