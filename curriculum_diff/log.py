"""
Structured logging using structlog.

The CLI calls setup_logging() once; library modules only call get_logger().
Until then every logger goes through stdlib logging, so records below the
root level (WARNING by default) are dropped and nothing reaches stdout.
"""

from __future__ import annotations

import logging
import sys

import structlog
from structlog.stdlib import LoggerFactory


def _configure(log_format: str, cache: bool) -> None:
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=cache,
    )


def setup_logging(log_level: str = "INFO", log_format: str = "console") -> None:
    """
    Configure stdlib logging + structlog.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_format: "json" for machine-readable lines, "console" for humans
    """
    level = getattr(logging, log_level.upper())

    # stderr keeps stdout free for the report itself
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level, force=True)
    _configure(log_format, cache=True)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


if not structlog.is_configured():
    # not cached, so a later setup_logging() still takes effect
    _configure("console", cache=False)
