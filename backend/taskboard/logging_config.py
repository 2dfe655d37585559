"""structlog setup."""

import logging

import structlog

from taskboard.config import Settings


def configure_logging(settings: Settings) -> None:
    """Configure structlog once per process.

    Context bound by the request middleware (request id, method, path) is
    merged into every event. Development gets readable console output, other
    environments emit one JSON object per line.
    """
    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.environment == "development"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level)
        ),
        cache_logger_on_first_use=True,
    )
