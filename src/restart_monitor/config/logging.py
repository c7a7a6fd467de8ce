"""Logging configuration using structlog for structured logging."""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger

# Level names accepted from older configurations
_LEVEL_ALIASES = {"WARN": "WARNING", "ERR": "ERROR"}


def resolve_level(level: str) -> int:
    """Convert a level name such as ``INFO`` or ``WARN`` to a logging constant."""
    name = level.upper()
    name = _LEVEL_ALIASES.get(name, name)
    return getattr(logging, name, logging.INFO)


def configure_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_logs: bool = False,
    max_size_mb: int = 10,
    backup_count: int = 5,
) -> FilteringBoundLogger:
    """Configure structured logging with structlog.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path for file logging
        json_logs: Whether to use JSON formatting
        max_size_mb: Size at which the log file is rotated
        backup_count: Number of rotated files to keep

    Returns:
        Configured structlog logger
    """
    numeric_level = resolve_level(level)

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )
    root_logger.setLevel(numeric_level)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(file_handler)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger()


def get_logger(name: str, **initial_context: Any) -> FilteringBoundLogger:
    """Get a logger instance with optional initial context.

    Args:
        name: Logger name (typically __name__)
        **initial_context: Initial context to bind to logger
    """
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger


def log_restart_event(
    logger: FilteringBoundLogger,
    trigger: str,
    outcome: str,
    **context: Any
) -> None:
    """Log a restart decision in a uniform shape.

    Args:
        logger: Structlog logger instance
        trigger: ``vote`` or ``performance``
        outcome: What happened (triggered, blocked, failed, ...)
        **context: Additional context such as tally or reading
    """
    log = logger.error if outcome == "failed" else logger.info
    log(
        "Restart event",
        trigger=trigger,
        outcome=outcome,
        metric_type="restart",
        **context
    )
