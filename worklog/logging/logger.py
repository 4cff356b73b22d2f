"""
Logging setup for the work log.

Provides structured logging with:
- Component-bound loggers (storage, history, cli)
- Optional rotating file output
- A separate error log
"""

import sys
from pathlib import Path
from typing import Optional, Any
from loguru import logger


class WorkLogLogger:
    """
    Handler configuration for work log logging.

    Features:
    - Structured logging with context
    - Console and file handlers
    - Log rotation and retention
    """

    def __init__(
        self,
        log_dir: Optional[Path] = None,
        rotation: str = "10 MB",
        retention: str = "1 month",
        level: str = "INFO",
        format_string: Optional[str] = None,
        enable_file_logging: bool = True,
        enable_console_logging: bool = True,
    ):
        """
        Initialize the work log logger.

        Args:
            log_dir: Directory for log files
            rotation: When to rotate log files
            retention: How long to keep old logs
            level: Default log level
            format_string: Custom format string
            enable_file_logging: Whether to log to files
            enable_console_logging: Whether to log to console
        """
        self.log_dir = log_dir or Path("logs")
        self.rotation = rotation
        self.retention = retention
        self.level = level

        self.format_string = format_string or (
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[component]}</cyan> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        )

        # Remove default handler
        logger.remove()
        logger.configure(extra={"component": "system"})

        if enable_console_logging:
            logger.add(
                sys.stderr,
                format=self.format_string,
                level=level,
                colorize=True,
            )

        if enable_file_logging:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            self._add_file_handlers()

        self.logger = logger.bind(component="system")

    def _add_file_handlers(self) -> None:
        """Add the main and error log files."""
        logger.add(
            self.log_dir / "worklog.log",
            format=self.format_string,
            level=self.level,
            rotation=self.rotation,
            retention=self.retention,
            compression="zip",
        )

        # Error log (ERROR and above only)
        logger.add(
            self.log_dir / "errors.log",
            format=self.format_string,
            level="ERROR",
            rotation=self.rotation,
            retention=self.retention,
            compression="zip",
        )

    def get_logger(self, component: str) -> Any:
        """
        Get a logger bound to a specific component.

        Args:
            component: Component name (e.g., "storage", "history", "cli")

        Returns:
            Logger instance bound to the component
        """
        return logger.bind(component=component)


def get_worklog_logger(component: str = "system") -> Any:
    """
    Get a component-specific logger.

    Args:
        component: Component name

    Returns:
        Logger instance

    Example:
        >>> log = get_worklog_logger("storage")
        >>> log.debug("Wrote entry", entry_id="3f9a0c1b2d4e")
    """
    return logger.bind(component=component)


def log_history_operation(logger_instance: Any, operation: str, **kwargs: Any) -> None:
    """
    Log a work log history operation at DEBUG level.

    Args:
        logger_instance: Logger to use
        operation: Operation name (e.g., "record", "tag", "diff")
        **kwargs: Additional context
    """
    logger_instance.debug(
        f"History operation: {operation}",
        operation=operation,
        **kwargs,
    )


# Global logger instance
_worklog_logger: Optional[WorkLogLogger] = None


def initialize_logging(
    log_dir: Optional[Path] = None, level: str = "INFO", **kwargs: Any
) -> WorkLogLogger:
    """
    Initialize the logging system.

    This should be called once at application startup.

    Args:
        log_dir: Directory for log files
        level: Default log level
        **kwargs: Additional configuration for WorkLogLogger

    Returns:
        Configured WorkLogLogger instance
    """
    global _worklog_logger
    _worklog_logger = WorkLogLogger(log_dir=log_dir, level=level, **kwargs)
    return _worklog_logger


def get_logger_instance() -> Optional[WorkLogLogger]:
    """Get the global logger instance."""
    return _worklog_logger
