"""Centralized logging configuration."""
from __future__ import annotations

import logging
from logging.config import dictConfig

from aligned.core.context import get_request_id, get_user_id


class RequestContextFilter(logging.Filter):
    """Stamp request_id and user_id onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - minimal logic
        record.request_id = get_request_id() or "-"
        record.user_id = get_user_id() or "-"
        return True


def configure_logging(*, log_level: str = "INFO") -> None:
    """Configure application logging once at startup."""
    if getattr(configure_logging, "_configured", False):
        return

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | req=%(request_id)s | user=%(user_id)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S%z",
                }
            },
            "filters": {
                "request_context": {
                    "()": "aligned.core.logging.RequestContextFilter",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": log_level,
                    "filters": ["request_context"],
                }
            },
            "loggers": {
                # httpx logs every request line at INFO, including the keyed Gemini URL.
                "httpx": {"level": "WARNING"},
                # RequestIDMiddleware writes the access line with the request id attached.
                "uvicorn.access": {"level": "WARNING"},
                "opik": {"level": "WARNING"},
                "aligned": {"level": log_level},
            },
            "root": {
                "handlers": ["console"],
                "level": log_level,
            },
        }
    )

    logging.getLogger(__name__).debug("Logging configured at %s", log_level)
    setattr(configure_logging, "_configured", True)
