"""
Logging infrastructure for the work log.

Provides loguru handler setup and component-bound loggers.
"""

from .logger import (
    WorkLogLogger,
    get_worklog_logger,
    initialize_logging,
    get_logger_instance,
    log_history_operation,
)

__all__ = [
    "WorkLogLogger",
    "get_worklog_logger",
    "initialize_logging",
    "get_logger_instance",
    "log_history_operation",
]
