"""
Logging support for gqlkit.

This module provides logging setup for the ``gqlkit`` logger hierarchy with
console and rotating file output, structured JSON formatting and masking of
credentials carried in request headers.
"""

from .filters import SensitiveDataFilter
from .formatters import StructuredFormatter
from .manager import LoggingManager, cleanup_logging, get_logger, setup_logging

__all__ = [
    "LoggingManager",
    "setup_logging",
    "get_logger",
    "cleanup_logging",
    "StructuredFormatter",
    "SensitiveDataFilter",
]
