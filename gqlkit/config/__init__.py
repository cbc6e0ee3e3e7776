"""
Configuration management for gqlkit.

This module provides settings models and a loader that reads them from
configuration files and environment variables.
"""

from .loader import ConfigLoader
from .models import ClientSettings, LoggingConfig, LogLevel

__all__ = [
    "ClientSettings",
    "LoggingConfig",
    "LogLevel",
    "ConfigLoader",
]
