"""Logging setup: structlog rendered through stdlib logging onto stderr."""
import logging
import sys

import structlog

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def configure_logging(level: str = "WARNING") -> None:
    level = level.upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of {', '.join(LOG_LEVELS)}")

    logging.basicConfig(
        level=getattr(logging, level),
        stream=sys.stderr,
        format="%(message)s",
        force=True,
    )
    # The docker SDK logs every HTTP round trip at DEBUG through urllib3.
    logging.getLogger("urllib3").setLevel(max(logging.INFO, getattr(logging, level)))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
