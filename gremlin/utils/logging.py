"""Structured logging for Gremlin.

The library only emits through structlog. Applications embedding it call
``configure_logging`` once; without arguments the level and renderer come
from the ``GREMLIN_LOG_*`` settings.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Optional

import structlog


def _processors(json_format: bool, include_timestamp: bool) -> list:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]
    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
    processors.append(structlog.processors.format_exc_info)

    if json_format:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return processors


def configure_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
    include_timestamp: bool = True,
) -> None:
    """Route structlog output through stdlib logging on stdout.

    Args:
        level: Log level name; defaults to ``GREMLIN_LOG_LEVEL``
        json_format: Render JSON lines; defaults to ``GREMLIN_LOG_JSON``
        include_timestamp: Stamp each entry with an ISO-8601 UTC time

    Raises:
        ValueError: If the level name is not a stdlib log level
    """
    if level is None or json_format is None:
        from gremlin.config import get_settings

        settings = get_settings()
        level = settings.log_level if level is None else level
        json_format = settings.log_json if json_format is None else json_format

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)

    structlog.configure(
        processors=_processors(json_format, include_timestamp),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None, **context) -> structlog.BoundLogger:
    """Logger with optional bound context."""
    log = structlog.get_logger(name)
    return log.bind(**context) if context else log


class LogContext:
    """Bind context variables for every log entry inside the block.

    Usage:
        with LogContext(spec_name="checkout", framework="maestro"):
            generator.generate_files(spec)
    """

    def __init__(self, **context):
        self.context = context

    def __enter__(self) -> "LogContext":
        structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        structlog.contextvars.unbind_contextvars(*self.context)


@contextmanager
def log_operation(
    operation: str,
    logger: Optional[structlog.BoundLogger] = None,
    **context,
):
    """Log the start and outcome of a codec or generation step.

    Yields a dict the caller fills with result fields; they are logged on
    completion. Errors are logged with the same context and re-raised.

    Example:
        with log_operation("compress_session", session_id="abc") as op:
            data = compress_optimized(optimized)
            op["compressed_size"] = len(data)
    """
    log = (logger or get_logger()).bind(operation=operation, **context)
    log.debug(f"{operation} started")
    result = {"success": False, "error": None}

    try:
        yield result
    except Exception as e:
        result["error"] = str(e)
        log.error(f"{operation} failed", **result)
        raise

    result["success"] = True
    log.debug(f"{operation} completed", **result)
