"""Structured logging: JSON output, correlation ids, bound context and timing."""

from src.commons.telemetry.decorators import LogContext, timed
from src.commons.telemetry.logger import (
    JsonFormatter,
    TextFormatter,
    clear_log_context,
    configure_logging,
    get_correlation_id,
    get_log_context,
    get_logger,
    set_correlation_id,
    set_log_context,
)

__all__ = [
    "JsonFormatter",
    "LogContext",
    "TextFormatter",
    "clear_log_context",
    "configure_logging",
    "get_correlation_id",
    "get_log_context",
    "get_logger",
    "set_correlation_id",
    "set_log_context",
    "timed",
]
