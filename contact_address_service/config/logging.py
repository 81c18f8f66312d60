"""Logging configuration for the application."""

import json
import logging
import logging.config
import sys
import uuid
from contextvars import ContextVar
from typing import Dict, Any, Optional

from .settings import settings

correlation_id: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "correlation_id", "taskName"}


class CorrelationIdFormatter(logging.Formatter):
    """Formatter that stamps the current correlation ID on each record."""

    def format(self, record: logging.LogRecord) -> str:
        record.correlation_id = correlation_id.get() or "N/A"
        return super().format(record)


class StructuredFormatter(CorrelationIdFormatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as a single JSON line."""
        log_entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": correlation_id.get() or "N/A",
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key.startswith('_'):
                continue
            log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def get_logging_config() -> Dict[str, Any]:
    """Build a dictConfig mapping from the current settings."""

    if settings.log_format == "json":
        formatter_config = {
            "()": "contact_address_service.config.logging.StructuredFormatter",
            "datefmt": "%Y-%m-%dT%H:%M:%S"
        }
    else:
        formatter_config = {
            "()": "contact_address_service.config.logging.CorrelationIdFormatter",
            "format": "%(asctime)s - %(correlation_id)s - %(name)s - %(levelname)s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S"
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": formatter_config,
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "stream": sys.stdout,
                "formatter": "default",
                "level": settings.log_level,
            },
        },
        "root": {
            "level": settings.log_level,
            "handlers": ["console"],
        },
        "loggers": {
            "contact_address_service": {
                "level": settings.log_level,
                "handlers": ["console"],
                "propagate": False,
            },
            "uvicorn": {
                "level": "INFO",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def setup_logging() -> None:
    logging.config.dictConfig(get_logging_config())


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def set_correlation_id(corr_id: str) -> None:
    correlation_id.set(corr_id)


def get_correlation_id() -> Optional[str]:
    return correlation_id.get()


class LoggingService:
    """Thin wrapper giving every layer the same structured log fields."""

    def __init__(self, logger_name: str):
        self.logger = logging.getLogger(logger_name)

    def log_operation(self, level: str, message: str, username: Optional[str] = None,
                      contact_id: Optional[int] = None, address_id: Optional[int] = None,
                      operation: Optional[str] = None, error: Optional[str] = None,
                      **kwargs) -> None:
        """Log a message with the standard address-service fields.

        Args:
            level: Log level name (debug, info, warning, error)
            message: Log message
            username: Caller the operation runs on behalf of
            contact_id: Parent contact involved in the operation
            address_id: Address involved in the operation
            operation: Operation name
            error: Error message if applicable
            **kwargs: Additional fields to log
        """
        extra = {}
        if username is not None:
            extra['username'] = username
        if contact_id is not None:
            extra['contact_id'] = contact_id
        if address_id is not None:
            extra['address_id'] = address_id
        if operation:
            extra['operation'] = operation
        if error:
            extra['error'] = error
        extra.update(kwargs)

        log_method = getattr(self.logger, level.lower())
        log_method(message, extra=extra)

    def log_crud_operation(self, operation: str, success: bool, error: Optional[str] = None,
                           **kwargs) -> None:
        """Log the outcome of a create/read/update/delete/list operation.

        Failures carrying an error message are logged at ERROR, other
        failures (not found, rejected input) at WARNING.
        """
        if success:
            self.log_operation(
                "info",
                f"{operation.capitalize()} operation completed successfully",
                operation=operation,
                **kwargs
            )
        else:
            self.log_operation(
                "error" if error else "warning",
                f"{operation.capitalize()} operation failed",
                operation=operation,
                error=error,
                **kwargs
            )

    def log_error(self, message: str, error: Exception, operation: Optional[str] = None,
                  **kwargs) -> None:
        self.log_operation(
            "error",
            message,
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
            **kwargs
        )
