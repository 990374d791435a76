"""
Logging setup - Story Contest Platform
story_contest/core/logging_config.py

Configures structlog once per process from LOG_LEVEL / LOG_FORMAT.
Modules log events with `structlog.get_logger(__name__)`.
"""

import logging
import sys

import structlog

from story_contest.config import settings

_configured = False


def configure_logging(level: str = None, fmt: str = None) -> None:
    """Configure structlog and the stdlib root logger."""
    global _configured
    if _configured:
        return

    level_name = (level or settings.LOG_LEVEL).upper()
    log_format = fmt or settings.LOG_FORMAT

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level_name, logging.INFO),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    _configured = True
