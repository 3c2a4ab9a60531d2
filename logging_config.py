#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Logging configuration for the Shorts Slider backend.

Provides structured JSON logging, a context-carrying logger wrapper and the
setup function used by the server entry point. API keys passed as context
fields are masked before they reach any handler.
"""

import logging
import logging.handlers
import json
import sys
from typing import Dict, Any, Optional

# Context field names whose values are credentials
SECRET_FIELDS = frozenset({"api_key", "key", "admin_token"})


def mask_secret(value: Any) -> str:
    """Return a masked form of a credential, keeping only the last 4 characters."""
    text = str(value or "")
    if len(text) <= 4:
        return "*" * len(text)
    return "*" * (len(text) - 4) + text[-4:]


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Each record becomes one JSON object with fixed fields plus any context
    attached through ``StructuredLogger``.
    """

    def format(self, record):
        """Format the log record as a JSON object."""
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "name": record.name,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        if record.exc_info and record.exc_info[0] is not None:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info)
            }

        extra_data = getattr(record, "data", None)
        if isinstance(extra_data, dict):
            for key, value in extra_data.items():
                log_data[key] = value

        return json.dumps(log_data, default=str)


class StructuredLogger:
    """Logger that supports structured logging with additional context data."""

    def __init__(self, name: str, extra: Optional[Dict[str, Any]] = None):
        self.logger = logging.getLogger(name)
        self.extra = extra or {}

    def bind(self, **kwargs) -> "StructuredLogger":
        """Return a logger of the same name carrying additional context."""
        bound = StructuredLogger(self.logger.name, {**self.extra, **kwargs})
        return bound

    def _log(self, level: int, message: str, exc_info=None, **kwargs):
        if not self.logger.isEnabledFor(level):
            return
        extra_data = {**self.extra, **kwargs}
        for field in SECRET_FIELDS.intersection(extra_data):
            extra_data[field] = mask_secret(extra_data[field])
        self.logger.log(level, message, exc_info=exc_info, extra={"data": extra_data})

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, exc_info=True, **kwargs):
        """Log an error message; the active exception is attached by default."""
        self._log(logging.ERROR, message, exc_info=exc_info, **kwargs)

    def critical(self, message: str, exc_info=True, **kwargs):
        self._log(logging.CRITICAL, message, exc_info=exc_info, **kwargs)


def setup_logging(log_level_console=logging.INFO, log_level_file=logging.DEBUG,
                  structured=True, log_file: Optional[str] = None):
    """Configure logging to console and a rotating file.

    Args:
        log_level_console: Level for the stdout handler.
        log_level_file: Level for the rotating file handler.
        structured: Emit JSON lines when True, plain text otherwise.
        log_file: Log file path; ``None`` uses ``config.LOG_FILE``.
    """
    if log_file is None:
        from config import config
        log_file = config.LOG_FILE

    root_logger = logging.getLogger()

    # Remove any existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    formatter = JSONFormatter() if structured else logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level_file)
        root_logger.addHandler(file_handler)
    except OSError as e:
        print(f"Warning: Could not create log file '{log_file}': {e}", file=sys.stderr)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level_console)
    root_logger.addHandler(console_handler)

    root_logger.setLevel(min(log_level_console, log_level_file))

    # googleapiclient logs every request URL at INFO, including the developer key
    logging.getLogger("googleapiclient.discovery").setLevel(logging.WARNING)

    logging.getLogger(__name__).info("Logging setup complete.")
