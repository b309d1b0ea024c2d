"""Structured logging configuration for the rate limiter.

This module provides a structured logging setup using Python's standard
logging module with JSON formatting for production environments.
"""

import json
import logging
import logging.config
import sys
import traceback
from datetime import datetime
from typing import Any, Dict, Optional

from ratelimiter.app.core.config import settings


# Attributes every LogRecord carries; anything else arrived through extra=
_RESERVED_ATTRS = frozenset((
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "exc_info", "exc_text", "stack_info",
    "lineno", "funcName", "created", "msecs", "relativeCreated",
    "thread", "threadName", "processName", "process", "taskName",
    "message", "asctime", "timestamp", "logger", "level", "source",
))


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Outputs log records as JSON objects for consumption by log aggregation
    systems like ELK Stack or Grafana Loki.
    """

    # Contextual fields for admission decisions
    CONTEXT_FIELDS = [
        "rate_limit_key",  # Key being checked (hashed by the middleware)
        "algorithm",       # token_bucket, leaky_bucket, ...
        "backend",         # local or redis
        "allowed",         # Admission decision
        "reason",          # Backend failure reason
        "duration_ms",     # Check duration in milliseconds
    ]

    def __init__(self, datefmt: Optional[str] = None):
        super().__init__(datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON string representation of the log record
        """
        log_data: Dict[str, Any] = {}

        record.message = record.getMessage()

        log_data["timestamp"] = datetime.now().astimezone().isoformat()
        log_data["level"] = record.levelname
        log_data["logger"] = record.name
        log_data["message"] = record.message

        log_data["source"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
        }

        # Context fields are only emitted when set
        for field in self.CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in self.CONTEXT_FIELDS:
                continue
            log_data.setdefault("extra", {})[key] = value

        if record.exc_info and record.exc_info != (None, None, None):
            log_data["exception"] = traceback.format_exception(*record.exc_info)

        return json.dumps(log_data, default=str, ensure_ascii=False)


class ContextFilter(logging.Filter):
    """Logging filter that adds contextual fields to log records.

    Guarantees the structured format string can reference every context
    field even when the caller did not pass it.
    """

    CONTEXT_DEFAULTS = {field: None for field in JSONFormatter.CONTEXT_FIELDS}

    def filter(self, record: logging.LogRecord) -> bool:
        for field, default in self.CONTEXT_DEFAULTS.items():
            if not hasattr(record, field):
                setattr(record, field, default)
        return True


def get_logging_config() -> Dict[str, Any]:
    """Get logging configuration dictionary.

    Returns:
        Logging configuration dict compatible with logging.config.dictConfig
    """
    log_format = getattr(settings, "log_format", "text").lower()
    log_level = getattr(settings, "log_level", "INFO").upper()

    formatters = {
        "standard": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        },
        "structured": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s - key=%(rate_limit_key)s - algorithm=%(algorithm)s - backend=%(backend)s"
        },
    }

    if log_format == "json":
        formatters["json"] = {
            "()": "ratelimiter.app.core.logging.JSONFormatter",
        }
        default_formatter = "json"
    else:
        default_formatter = "structured" if log_format == "structured" else "standard"

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": log_level,
            "formatter": default_formatter,
            "stream": sys.stdout,
            "filters": ["context"],
        },
        "error_console": {
            "class": "logging.StreamHandler",
            "level": "ERROR",
            "formatter": default_formatter,
            "stream": sys.stderr,
            "filters": ["context"],
        },
    }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": {
            "context": {
                "()": "ratelimiter.app.core.logging.ContextFilter",
            },
        },
        "handlers": handlers,
        "loggers": {
            "ratelimiter": {
                "level": log_level,
                "handlers": ["console", "error_console"],
                "propagate": False,
            },
        },
        "root": {
            "level": log_level,
            "handlers": ["console"],
        },
    }


def setup_logging() -> None:
    """Configure logging for the rate limiter."""
    logging.config.dictConfig(get_logging_config())

    # Reduce noise from the Redis client
    logging.getLogger("redis").setLevel(logging.WARNING)


def get_logger(name: str = "ratelimiter") -> logging.Logger:
    """Get a logger instance with the specified name.

    Args:
        name: Logger name, defaults to "ratelimiter"

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


def get_log_context(
    rate_limit_key: Optional[str] = None,
    algorithm: Optional[str] = None,
    backend: Optional[str] = None,
    **extra
) -> Dict[str, Any]:
    """Create a log context dictionary for use with extra parameter.

    Args:
        rate_limit_key: Key being checked
        algorithm: Algorithm name
        backend: "local" or "redis"
        **extra: Additional custom fields (allowed, reason, duration_ms, ...)

    Returns:
        Dictionary suitable for passing as extra= parameter to logging calls

    Example:
        >>> logger.warning(
        ...     "Backend unavailable",
        ...     extra=get_log_context(rate_limit_key="user-1", backend="redis", reason="timeout")
        ... )
    """
    context = {
        "rate_limit_key": rate_limit_key,
        "algorithm": algorithm,
        "backend": backend,
    }
    context.update(extra)
    return {k: v for k, v in context.items() if v is not None}
