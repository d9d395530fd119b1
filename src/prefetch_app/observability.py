"""Logging setup for the prefetch application.

Library modules only ever call ``structlog.get_logger(__name__)``; the
application decides once, at startup, how those events are rendered.
"""

import logging
import sys

import structlog


def configure_logging(log_level: str = "INFO", dev_mode: bool = False) -> None:
    """Configure structlog for the command-line application.

    Events are written to stderr so that command output on stdout stays
    machine readable.

    Args:
        log_level: Minimum level name to emit ("DEBUG", "INFO", ...).
        dev_mode: Render colored key/value lines instead of JSON.

    Raises:
        ValueError: If the level name is unknown.
    """
    level = logging.getLevelNamesMapping().get(log_level.upper())
    if level is None:
        error_message = f"Unknown log level: {log_level}"
        raise ValueError(error_message)

    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if dev_mode:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.extend(
            [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
