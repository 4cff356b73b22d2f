"""
Configuration management for the work log.

This module provides centralized configuration for all components:
- On-disk store layout and ID widths
- Logging settings
"""

import os
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables from .env file
load_dotenv()


class StoreConfig(BaseModel):
    """Configuration for the file-backed work log store."""

    dir_name: str = Field(
        default=".worklog",
        min_length=1,
        description="Directory created inside the project to hold the log",
    )
    default_branch: str = Field(
        default="main",
        min_length=1,
        description="Branch created on init; can never be deleted",
    )
    id_length: int = Field(
        default=12, ge=8, le=64, description="Hex characters kept from an entry ID hash"
    )
    short_id_length: int = Field(
        default=7, gt=0, description="Hex characters shown in one-line renderings"
    )
    content_hash_length: int = Field(
        default=8, ge=4, le=64, description="Hex characters kept from a content hash"
    )
    json_indent: int = Field(
        default=2, ge=0, description="Indentation used when writing JSON files"
    )


class LogConfig(BaseModel):
    """Configuration for logging system."""

    level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: str = Field(
        default="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
        "<level>{message}</level>",
        description="Log message format",
    )
    rotation: str = Field(default="10 MB", description="Log file rotation size")
    retention: str = Field(default="1 month", description="Log file retention period")
    log_dir: str = Field(default="logs", description="Directory for log files")
    enable_file_logging: bool = Field(
        default=False, description="Whether to enable file logging"
    )
    enable_console_logging: bool = Field(
        default=True, description="Whether to enable console logging"
    )


class Config(BaseModel):
    """Main configuration object for the work log."""

    store: StoreConfig = Field(default_factory=StoreConfig)
    logging: LogConfig = Field(default_factory=LogConfig)

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables."""
        return cls(
            store=StoreConfig(
                dir_name=os.getenv("WORKLOG_DIR_NAME", ".worklog"),
                default_branch=os.getenv("WORKLOG_DEFAULT_BRANCH", "main"),
                id_length=int(os.getenv("WORKLOG_ID_LENGTH", "12")),
            ),
            logging=LogConfig(
                level=cast(
                    Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                    os.getenv("LOG_LEVEL", "INFO"),
                ),
                log_dir=os.getenv("WORKLOG_LOG_DIR", "logs"),
                enable_file_logging=os.getenv("WORKLOG_FILE_LOGGING", "false").lower()
                in ("1", "true", "yes"),
            ),
        )


# Global configuration instance
# This can be imported throughout the codebase
config = Config.from_env()
