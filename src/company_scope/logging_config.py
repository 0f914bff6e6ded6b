"""structlog setup for company-scope applications.

Every log line emitted while a request is in flight carries the
``company_key`` / ``company_id`` (or ``company_failure``) that
CompanyScopeMiddleware binds through ``structlog.contextvars``.
Production renders JSON; other environments render a colored console.
"""

import logging
import sys
from collections.abc import Mapping
from typing import Any

import structlog

from company_scope.config import Environment

REDACTED = "***REDACTED***"

SENSITIVE_KEYS: frozenset[str] = frozenset(
    {"password", "secret", "token", "authorization", "cookie", "database_url"}
)

# Loggers too chatty at INFO when every request hits the company directory.
QUIET_LOGGERS: tuple[str, ...] = ("sqlalchemy.engine", "uvicorn.access")


def _redact(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {
            k: REDACTED if str(k).lower() in SENSITIVE_KEYS else _redact(v)
            for k, v in value.items()
        }
    return value


def _redact_sensitive_keys(
    logger: logging.Logger,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Mask sensitive values, including inside nested mappings like headers."""
    for key, value in event_dict.items():
        event_dict[key] = REDACTED if key.lower() in SENSITIVE_KEYS else _redact(value)
    return event_dict


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        _redact_sensitive_keys,
    ]


def _renderer(environment: str) -> structlog.types.Processor:
    if environment == Environment.PRODUCTION:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


def configure_logging(
    environment: str = Environment.DEVELOPMENT,
    log_level: str = "INFO",
) -> None:
    """Route structlog and stdlib logging through one formatter.

    Args:
        environment: ``production`` for JSON, anything else for console.
        log_level: Root level name (DEBUG, INFO, WARNING, ...).
    """
    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # foreign_pre_chain gives stdlib records (SQLAlchemy, uvicorn) the same
    # level, timestamp and company context as structlog events.
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(environment),
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(log_level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
