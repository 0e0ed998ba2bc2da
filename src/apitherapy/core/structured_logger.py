"""
Structured logging utilities for application and migration logging
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from .config import LoggingSettings


class StructuredLogger:
    """
    Event logger: one named event per line with its fields attached
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def log(self, level: str, message: str, **kwargs):
        """Log an event; fields are appended as key=value and handed to JSONFormatter as extra_data"""
        fields = " ".join(f"{key}={value}" for key, value in kwargs.items())
        self.logger.log(
            getattr(logging, level.upper()),
            f"{message} {fields}" if fields else message,
            extra={"extra_data": {"event": message, **kwargs}},
            stacklevel=3,
        )

    def info(self, message: str, **kwargs):
        """Log info level"""
        self.log("info", message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning level"""
        self.log("warning", message, **kwargs)

    def error(self, message: str, **kwargs):
        """Log error level"""
        self.log("error", message, **kwargs)

    def debug(self, message: str, **kwargs):
        """Log debug level"""
        self.log("debug", message, **kwargs)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Add exception info if present
        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        # Add extra fields if present
        if hasattr(record, "extra_data"):
            log_obj.update(record.extra_data)

        return json.dumps(log_obj, default=str)


def setup_logging(settings: Optional[LoggingSettings] = None) -> None:
    """Install a stdout handler on the package logger, JSON or plain text."""
    settings = settings or LoggingSettings()
    logger = logging.getLogger("apitherapy")
    logger.setLevel(settings.level)

    for handler in list(logger.handlers):
        if getattr(handler, "_apitherapy_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if settings.format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    handler._apitherapy_handler = True
    logger.addHandler(handler)


def get_logger(name: str) -> StructuredLogger:
    """Get or create a structured logger"""
    return StructuredLogger(name)
