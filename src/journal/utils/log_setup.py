"""structlog configuration per deployment environment.

- local: human readable console output, debug level
- dev: JSON lines, debug level
- prod: JSON lines, info level
"""

from __future__ import annotations

import logging

import structlog

from journal.config.app_config import ENV_DEV, ENV_LOCAL, ENV_PROD

_LEVELS = {
    ENV_LOCAL: logging.DEBUG,
    ENV_DEV: logging.DEBUG,
    ENV_PROD: logging.INFO,
}


def setup_logging(env: str) -> None:
    """Configure structlog for the given environment.

    Unknown environments fall back to the prod settings.
    """
    level = _LEVELS.get(env, logging.INFO)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if env == ENV_LOCAL:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())

    # loggers are not cached so each one picks up the current sys.stdout
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
