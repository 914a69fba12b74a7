"""Utility modules for configuration, logging, and error types."""

from .config import AppConfig, get_config, load_config, reset_config
from .logger import (
    get_logger,
    log_exception,
    log_execution_time,
    set_log_level,
    set_package_log_level,
)

__all__ = [
    # Configuration
    "AppConfig",
    "get_config",
    "load_config",
    "reset_config",
    # Logging
    "get_logger",
    "log_exception",
    "log_execution_time",
    "set_log_level",
    "set_package_log_level",
]
