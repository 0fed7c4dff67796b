"""Structured logging configuration using structlog.

JSON output for production, console output for development. Chat users
type free text into scenario steps, so a redaction processor scrubs
contact details and secrets before anything is rendered.
"""

import re
import sys
from collections.abc import Mapping
from typing import Any, cast

import structlog
from structlog.types import EventDict, WrappedLogger

SENSITIVE_KEYS: frozenset[str] = frozenset({
    "password",
    "secret",
    "token",
    "bot_token",
    "api_key",
    "authorization",
    "credentials",
    "dsn",
    "connection_url",
    "email",
    "phone",
    "raw_input",
})

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_PATTERN = re.compile(r"\+\d[\d\s\-\(\)]{8,}\d")
DSN_PASSWORD_PATTERN = re.compile(r"(?P<scheme>[a-z+]+://[^:/@\s]+):[^@\s]+@")

LEVELS: Mapping[str, int] = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
    "CRITICAL": 50,
}


class PIIRedactor:
    """Processor that redacts PII from log events.

    Known sensitive keys are replaced wholesale; every other string value
    is scanned for e-mail addresses, phone numbers and DSN passwords.
    """

    def __call__(
        self,
        _logger: WrappedLogger,
        _method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        return cast(EventDict, self._redact(event_dict))

    def _redact(self, value: Any, key: str | None = None) -> Any:
        if key is not None and key.lower() in SENSITIVE_KEYS:
            return "[REDACTED]"
        if isinstance(value, Mapping):
            return {k: self._redact(v, str(k)) for k, v in value.items()}
        if isinstance(value, list | tuple):
            return [self._redact(item) for item in value]
        if isinstance(value, str):
            return self._redact_string(value)
        return value

    @staticmethod
    def _redact_string(value: str) -> str:
        value = DSN_PASSWORD_PATTERN.sub(r"\g<scheme>:***@", value)
        value = EMAIL_PATTERN.sub("[EMAIL]", value)
        return PHONE_PATTERN.sub("[PHONE]", value)


def setup_logging(
    level: str = "INFO",
    format: str = "json",
    redact_pii: bool = True,
) -> None:
    """Configure structured logging.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: "json" for production, "console" for development
        redact_pii: Whether to scrub PII from log events
    """
    processors: list[Any] = [structlog.contextvars.merge_contextvars]

    # Redact before the timestamp is added so ISO dates are never scanned.
    if redact_pii:
        processors.append(PIIRedactor())

    processors += [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(LEVELS.get(level.upper(), 20)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound to the given module name."""
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
