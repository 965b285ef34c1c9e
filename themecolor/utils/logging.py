"""
ThemeColor Structured Logging
Centralized logging configuration using loguru.
"""
import sys
from typing import Dict, Any, Optional

from loguru import logger

from themecolor.config import config

# Handler id loguru assigns to the stderr sink it installs on import
_LOGURU_DEFAULT_HANDLER_ID = 0


class StructuredLogger:
    """Structured logger for ThemeColor services."""

    def __init__(self, level: Optional[str] = None):
        """Initialize structured logger."""
        self.level = level or config.LOG_LEVEL
        self._handler_id: Optional[int] = None
        self._configure_logger()

    def _configure_logger(self):
        """Configure loguru logger with structured format."""
        # Only loguru's default stderr handler and our own sink are replaced,
        # sinks added by the host application stay attached
        if self._handler_id is not None:
            logger.remove(self._handler_id)
        else:
            try:
                logger.remove(_LOGURU_DEFAULT_HANDLER_ID)
            except ValueError:
                pass  # already removed by an earlier logger or the host

        self._handler_id = logger.add(
            sys.stderr,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message} | {extra}",
            level=self.level,
            serialize=False  # Set to True for JSON output
        )

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log info message with optional extra data."""
        if extra:
            logger.bind(**extra).info(message)
        else:
            logger.info(message)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log warning message with optional extra data."""
        if extra:
            logger.bind(**extra).warning(message)
        else:
            logger.warning(message)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log error message with optional extra data."""
        if extra:
            logger.bind(**extra).error(message)
        else:
            logger.error(message)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log debug message with optional extra data."""
        if extra:
            logger.bind(**extra).debug(message)
        else:
            logger.debug(message)


_logger: Optional[StructuredLogger] = None


def get_logger() -> StructuredLogger:
    """Get or create the process logger."""
    global _logger
    if _logger is None:
        _logger = StructuredLogger()
    return _logger
