"""Structured logging setup."""

import logging
import sys

import structlog

from ride_coach_server.core.config import settings


def configure_logging(level: str | None = None, json: bool | None = None) -> None:
    """Configure structlog on top of the stdlib logging module.

    Args:
        level: Log level name (defaults to settings.log_level)
        json: Render JSON lines instead of console output (defaults to settings.log_json)
    """
    level = level or settings.log_level
    json = settings.log_json if json is None else json

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    renderer: structlog.types.Processor
    if json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
