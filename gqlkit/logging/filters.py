"""
Custom logging filters for gqlkit.

This module provides a filter that keeps credentials carried in request
headers out of log output.
"""

import logging
import re
from typing import List, Pattern, Tuple


class SensitiveDataFilter(logging.Filter):
    """Filter to mask sensitive data in log messages."""

    def __init__(self) -> None:
        """Initialize sensitive data filter."""
        super().__init__()

        self.rules: List[Tuple[Pattern[str], str]] = [
            # Bearer / Basic credentials
            (re.compile(r"\b(bearer|basic)(\s+)[^\s'\",}]+", re.IGNORECASE), r"\1\2***MASKED***"),
            # Authorization-like headers in dict reprs or "Name: value" form
            (
                re.compile(
                    r"((?:authorization|x-api-key|api[_-]?key|token|secret|cookie)['\"]?\s*[:=]\s*['\"]?)"
                    r"(?!(?:bearer|basic)\s)[^'\",}\s]+",
                    re.IGNORECASE,
                ),
                r"\1***MASKED***",
            ),
            # Passwords
            (re.compile(r"((?:password|passwd|pwd)['\"]?\s*[:=]\s*['\"]?)[^\s'\",}]+", re.IGNORECASE), r"\1***MASKED***"),
            # URLs with credentials
            (re.compile(r"(https?://[^:/\s]+):([^@/\s]+)@", re.IGNORECASE), r"\1:***MASKED***@"),
        ]

    def mask(self, message: str) -> str:
        """Apply every masking rule to a message."""
        for pattern, replacement in self.rules:
            message = pattern.sub(replacement, message)
        return message

    def filter(self, record: logging.LogRecord) -> bool:
        """Filter log record to mask sensitive data."""
        record.msg = self.mask(record.getMessage())
        record.args = ()
        return True
