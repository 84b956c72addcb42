"""structlog setup.

Library modules only call ``structlog.get_logger(__name__)``; applications
that want formatted output call :func:`configure_logging` once at startup.
Connection passwords never reach the log: pool and adapter events carry the
connection fingerprint, which excludes credentials.
"""

from __future__ import annotations

import logging
import sys

import structlog
from structlog.types import Processor


def configure_logging(level: str | int = "INFO", *, json: bool = False) -> None:
    """Route structlog events through stdlib logging at *level*.

    Args:
        level: Log level name or number.
        json: Render events as JSON lines instead of the console renderer.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    logging.getLogger().setLevel(level)

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
