"""Structured logging configuration.

Development gets coloured console output, everything else one JSON object per
line (CloudWatch parses those). Request-scoped fields such as ``request_id``
are bound with `bind_request_context` and merged into every event.
"""

import logging
import re
import sys
from typing import Any, cast

import structlog
from structlog.typing import EventDict, WrappedLogger

from portfolio_agent.config import get_settings

REDACTED = "[redacted]"
SENSITIVE_KEYS = frozenset(
    {"authorization", "token", "secret", "jwt_secret", "api_key", "anthropic_api_key", "captcha_token"}
)
_BEARER_PATTERN = re.compile(r"Bearer\s+[A-Za-z0-9\-_.]+")
_QUIET_LOGGERS = ("uvicorn", "uvicorn.access", "httpx", "httpcore", "anthropic", "botocore", "boto3")


def redact_secrets(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Drop credential values before they reach a log line."""
    for key, value in event_dict.items():
        if key.lower() in SENSITIVE_KEYS and value:
            event_dict[key] = REDACTED
        elif isinstance(value, str) and "Bearer" in value:
            event_dict[key] = _BEARER_PATTERN.sub(f"Bearer {REDACTED}", value)
    return event_dict


def _build_processors(json_output: bool) -> list[Any]:
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    return processors


def setup_logging() -> None:
    """Configure structlog and the stdlib root logger."""
    settings = get_settings()

    structlog.configure(
        processors=_build_processors(json_output=not settings.is_development),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=logging.DEBUG if settings.app_debug else logging.INFO,
    )

    for logger_name in _QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def bind_request_context(request_id: str, **fields: Any) -> None:
    """Start a fresh per-request logging context."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, **fields)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance."""
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
