"""
Logging configuration and utilities.

Handlers are attached to the package logger so that engine, store and CLI
messages share one format and destination.
"""

import logging
import sys
from pathlib import Path

from fasting_water_tracker.utils.exceptions import ConfigurationError
from fasting_water_tracker.utils.parameters import LoggingConfig

PACKAGE_LOGGER = "fasting_water_tracker"


def _resolve_level(level_name: str) -> int:
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown logging level: {level_name}")
    return level


def setup_logging(
    config: LoggingConfig, logger_name: str | None = PACKAGE_LOGGER
) -> logging.Logger:
    """
    Set up logging for the tracker.

    Args:
        config: Logging configuration.
        logger_name: Logger to configure. Defaults to the package logger.

    Returns:
        Configured logger instance.

    Raises:
        ConfigurationError: If the configured level is unknown.
    """
    level = _resolve_level(config.level)

    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = logging.Formatter(config.format)
    handlers: list[logging.Handler] = []

    if config.console:
        handlers.append(logging.StreamHandler(sys.stderr))

    if config.file:
        log_file = Path(config.file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance by name.

    Args:
        name: Logger name (typically __name__ of the module).

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)
