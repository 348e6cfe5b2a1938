"""
Structured logging setup for the intent ensemble.

Configures structlog for JSON-formatted structured logging. Every log
line includes timestamp, level and event. Per-request context
(request_id) is bound through ``structlog.contextvars`` at processing time.
"""

from __future__ import annotations

import logging
import sys

import structlog


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """Install the structlog processor chain and stdlib root level.

    Args:
        level: Logging level name (``DEBUG``, ``INFO``...).
        json_output: Render JSON lines; ``False`` uses the console renderer.

    Raises:
        ValueError: If *level* is not a known logging level.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level '{level}'")

    renderer: structlog.typing.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )
    # uvicorn and other stdlib loggers follow the same level.
    logging.basicConfig(level=numeric_level, stream=sys.stdout, format="%(message)s")
    logging.getLogger().setLevel(numeric_level)
