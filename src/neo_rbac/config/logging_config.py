"""Centralized logging configuration for neo-rbac.

Provides consistent, configurable logging for the library with
environment-based control over verbosity and format. Only the ``neo_rbac``
logger namespace is configured; the host application's root logger is
left untouched.
"""

import logging
import logging.config
import os
from enum import Enum
from typing import Any, Dict


LIBRARY_LOGGER = "neo_rbac"


class LogLevel(str, Enum):
    """Supported log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogVerbosity(str, Enum):
    """Log verbosity modes."""
    QUIET = "QUIET"      # Only errors and critical
    NORMAL = "NORMAL"    # Standard logging (warnings and above)
    VERBOSE = "VERBOSE"  # Info level logging
    DEBUG = "DEBUG"      # Full debug logging


class LogFormat(str, Enum):
    """Log format options."""
    SIMPLE = "simple"
    DETAILED = "detailed"
    JSON = "json"


FORMAT_STRINGS = {
    LogFormat.SIMPLE: "%(asctime)s - %(levelname)s - %(message)s",
    LogFormat.DETAILED: "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
    LogFormat.JSON: '{"time":"%(asctime)s","level":"%(levelname)s","module":"%(name)s","message":"%(message)s"}',
}


def get_log_level_from_verbosity(verbosity: str) -> str:
    """Map verbosity mode to log level."""
    verbosity_map = {
        LogVerbosity.QUIET: LogLevel.ERROR.value,
        LogVerbosity.NORMAL: LogLevel.WARNING.value,
        LogVerbosity.VERBOSE: LogLevel.INFO.value,
        LogVerbosity.DEBUG: LogLevel.DEBUG.value,
    }
    try:
        return verbosity_map[LogVerbosity(verbosity.upper())]
    except ValueError:
        return LogLevel.WARNING.value


def get_format_string(log_format: str) -> str:
    """Resolve a format name, falling back to the simple format."""
    try:
        return FORMAT_STRINGS[LogFormat(log_format.lower())]
    except ValueError:
        return FORMAT_STRINGS[LogFormat.SIMPLE]


class LoggingConfig:
    """Logging configuration manager for the neo_rbac namespace."""

    # Modules that are chatty at DEBUG; kept at WARNING unless DEBUG verbosity
    DEFAULT_QUIET_MODULES = [
        "neo_rbac.features.cache.strategies.ttl_strategy",
        "neo_rbac.features.cache.adapters.memory_adapter",
    ]

    @classmethod
    def build_config(cls) -> Dict[str, Any]:
        """Build a dictConfig mapping from environment variables."""
        log_level = os.getenv("LOG_LEVEL")
        log_verbosity = os.getenv("LOG_VERBOSITY", "NORMAL")
        log_format = os.getenv("LOG_FORMAT", "simple")

        # An explicit LOG_LEVEL wins over the verbosity mode
        if log_level and log_level.upper() in LogLevel.__members__:
            effective_log_level = log_level.upper()
        else:
            effective_log_level = get_log_level_from_verbosity(log_verbosity)

        logging_config: Dict[str, Any] = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": get_format_string(log_format),
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "neo_rbac_console": {
                    "class": "logging.StreamHandler",
                    "level": effective_log_level,
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                },
            },
            "loggers": {
                LIBRARY_LOGGER: {
                    "level": effective_log_level,
                    "handlers": ["neo_rbac_console"],
                    "propagate": False,
                },
            },
        }

        for module in cls.DEFAULT_QUIET_MODULES:
            logging_config["loggers"][module] = {
                "level": "WARNING" if effective_log_level != "DEBUG" else "DEBUG",
            }

        return logging_config

    @classmethod
    def configure(cls) -> None:
        """Configure logging based on environment variables."""
        logging_config = cls.build_config()
        logging.config.dictConfig(logging_config)

        logger = logging.getLogger(__name__)
        logger.debug(
            f"Logging configured: level={logging_config['loggers'][LIBRARY_LOGGER]['level']}"
        )

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a logger for the given module name.

        Args:
            name: Module name (usually __name__)

        Returns:
            Logger instance
        """
        return logging.getLogger(name)

    @classmethod
    def set_module_level(cls, module_name: str, level: str) -> None:
        """Set log level for a specific module.

        Args:
            module_name: Name of the module
            level: Log level to set
        """
        logger = logging.getLogger(module_name)
        logger.setLevel(getattr(logging, level.upper()))

    @classmethod
    def silence_module(cls, module_name: str) -> None:
        """Silence all logging from a module."""
        cls.set_module_level(module_name, "CRITICAL")


def setup_logging() -> None:
    """Setup logging configuration from environment variables.

    Library users who manage logging themselves can skip this; every
    module logs through ``logging.getLogger(__name__)`` regardless.
    """
    LoggingConfig.configure()


def get_logger(name: str) -> logging.Logger:
    """Get a logger.

    Args:
        name: Module name (usually __name__)

    Returns:
        Logger instance
    """
    return LoggingConfig.get_logger(name)
