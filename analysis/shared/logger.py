"""
Structured logging for the Matrix price oracle.

Every event carries the emitting component. Per-round context such as the
asset being evaluated is attached with `AgentLogger.bind`.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from .errors import ConfigurationError


class AgentLogger:
    """Component logger that tags every event with the component name."""

    def __init__(self, component: str, **context: Any):
        self.component = component
        self.context = context
        self.logger = structlog.get_logger(component, component=component, **context)

    def info(self, message: str, **context: Any) -> None:
        self.logger.info(message, **context)

    def warning(self, message: str, **context: Any) -> None:
        self.logger.warning(message, **context)

    def error(self, message: str, **context: Any) -> None:
        self.logger.error(message, **context)

    def debug(self, message: str, **context: Any) -> None:
        self.logger.debug(message, **context)

    def exception(self, message: str, **context: Any) -> None:
        """Log with the active traceback attached."""
        self.logger.exception(message, **context)

    def bind(self, **context: Any) -> "AgentLogger":
        """Logger for the same component with extra context on every event."""
        return AgentLogger(self.component, **{**self.context, **context})


def _parse_level(level: str) -> int:
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ConfigurationError(f"Unknown log level: {level}", {"level": level})
    return value


def configure_logging(
    level: str = "INFO",
    json_format: bool = False,
) -> None:
    """Configure structlog and the stdlib root logger."""
    log_level = _parse_level(level)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_format:
        processors: list[Processor] = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(default=str),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def configure_from_config(config: Any) -> None:
    """Apply the monitoring section of an OracleConfig."""
    configure_logging(
        level=config.monitoring.log_level,
        json_format=config.monitoring.json_logs or config.is_production(),
    )


configure_logging()
