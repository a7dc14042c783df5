"""
structlog setup for the stock ledger.

Ledger and sale events carry enum members (movement types, sale types,
criticality levels) as keyword fields; they are logged by value so console
and JSON output read the same as the persisted ledger.
"""

import logging
import sys
from enum import Enum
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from stockledger.config.settings import get_settings

# Third-party loggers kept at WARNING regardless of LOG_LEVEL
QUIET_LOGGERS = ("aiosqlite", "uvicorn.access")


def add_service_context(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    settings = get_settings()
    event_dict.setdefault("service", settings.app_name)
    event_dict.setdefault("env", settings.environment)
    return event_dict


def enum_values(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Replace enum members with their stored value."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def _renderer(environment: str) -> list[Processor]:
    if environment == "development":
        return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]
    return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]


def configure_logging(level: str | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Overrides ``LOG_LEVEL`` from settings
    """
    settings = get_settings()
    level_name = level or settings.log_level

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        add_service_context,
        enum_values,
        *_renderer(settings.environment),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level_name)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
