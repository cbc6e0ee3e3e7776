"""
Logging manager for gqlkit.

This module provides centralized logging configuration and management.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Dict

from ..config.models import LoggingConfig, LogLevel
from .filters import SensitiveDataFilter
from .formatters import StructuredFormatter

PACKAGE_LOGGER = "gqlkit"


class LoggingManager:
    """Centralized logging manager for the ``gqlkit`` logger hierarchy."""

    def __init__(self, logger_name: str = PACKAGE_LOGGER) -> None:
        """
        Initialize logging manager.

        Args:
            logger_name: Logger the handlers are attached to
        """
        self.logger_name = logger_name
        self._configured = False
        self._handlers: Dict[str, logging.Handler] = {}
        self._loggers: Dict[str, logging.Logger] = {}

    @property
    def logger(self) -> logging.Logger:
        """Logger the manager configures."""
        return logging.getLogger(self.logger_name)

    def setup_logging(self, config: LoggingConfig) -> None:
        """
        Setup logging based on configuration.

        Args:
            config: Logging configuration
        """
        if self._configured:
            self.cleanup()

        logger = self.logger
        logger.setLevel(getattr(logging, config.level.value))

        if config.enable_console:
            self._setup_console_handler(config)

        if config.file_path:
            self._setup_file_handler(config)

        self._setup_component_loggers(config)

        self._configured = True
        logger.debug("Logging system configured")

    def _formatter(self, config: LoggingConfig) -> logging.Formatter:
        if config.enable_structured:
            return StructuredFormatter()
        return logging.Formatter(config.format)

    def _setup_console_handler(self, config: LoggingConfig) -> None:
        """Setup console logging handler."""
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(self._formatter(config))
        handler.setLevel(getattr(logging, config.level.value))
        if config.mask_sensitive:
            handler.addFilter(SensitiveDataFilter())

        self.add_handler("console", handler)

    def _setup_file_handler(self, config: LoggingConfig) -> None:
        """Setup rotating file logging handler."""
        log_path = Path(str(config.file_path))
        log_path.parent.mkdir(parents=True, exist_ok=True)

        handler = logging.handlers.RotatingFileHandler(
            filename=str(log_path),
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        handler.setFormatter(self._formatter(config))
        handler.setLevel(getattr(logging, config.level.value))
        if config.mask_sensitive:
            handler.addFilter(SensitiveDataFilter())

        self.add_handler("file", handler)

    def _setup_component_loggers(self, config: LoggingConfig) -> None:
        """Set the levels of component loggers, e.g. ``gqlkit.link``."""
        for component, level in config.component_levels.items():
            logger = logging.getLogger(component)
            logger.setLevel(getattr(logging, level.value))
            self._loggers[component] = logger

    def set_level(self, level: LogLevel, component: str = "") -> None:
        """
        Set logging level.

        Args:
            level: New logging level
            component: Specific component (empty for the managed logger)
        """
        log_level = getattr(logging, level.value)

        if component:
            logging.getLogger(component).setLevel(log_level)
            return

        self.logger.setLevel(log_level)
        for handler in self._handlers.values():
            handler.setLevel(log_level)

    def add_handler(self, name: str, handler: logging.Handler) -> None:
        """
        Add logging handler.

        Args:
            name: Handler name
            handler: Logging handler
        """
        self.logger.addHandler(handler)
        self._handlers[name] = handler

    def remove_handler(self, name: str) -> None:
        """
        Remove logging handler.

        Args:
            name: Handler name
        """
        handler = self._handlers.pop(name, None)
        if handler is not None:
            self.logger.removeHandler(handler)
            handler.close()

    def cleanup(self) -> None:
        """Remove and close every handler added by the manager."""
        for name in list(self._handlers):
            self.remove_handler(name)

        for logger in self._loggers.values():
            logger.setLevel(logging.NOTSET)
        self._loggers.clear()
        self._configured = False

    def is_configured(self) -> bool:
        """Check if logging is configured."""
        return self._configured


# Global logging manager instance
_logging_manager = LoggingManager()


def setup_logging(config: LoggingConfig) -> None:
    """
    Setup logging with configuration.

    Args:
        config: Logging configuration
    """
    _logging_manager.setup_logging(config)


def get_logger(name: str) -> logging.Logger:
    """Get logger for component."""
    return logging.getLogger(name)


def cleanup_logging() -> None:
    """Cleanup logging system."""
    _logging_manager.cleanup()
