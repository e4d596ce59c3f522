"""
Structured logging for the aggregator.

Every record carries the request's correlation id, and secrets are scrubbed
from both the rendered message and ``extra`` fields before any handler sees
them (adapter errors routinely embed request URLs with tokens).

Usage:
    from observability import get_logger

    logger = get_logger(__name__)
    logger.info("Source disabled", extra={"source": "gumtree"})
"""

import logging
import os
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from listings.utils.redaction import REDACTED, redact_secrets

SERVICE_NAME = "rental-listings-aggregator"

_correlation_id_ctx: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> Optional[str]:
    return _correlation_id_ctx.get()


class correlation_id_context:
    """Binds a correlation id (generated when not given) for a block of work."""

    def __init__(self, correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id or f"req-{uuid.uuid4().hex[:16]}"
        self.token = None

    def __enter__(self) -> str:
        self.token = _correlation_id_ctx.set(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb):
        _correlation_id_ctx.reset(self.token)


class CorrelationIDFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "none"
        return True


class SensitiveDataFilter(logging.Filter):
    """Redacts credential-named extra fields and secrets inside messages."""

    SENSITIVE_KEYS = {
        "password", "token", "api_key", "apikey", "secret", "authorization",
        "apify_api_token", "feed_api_key",
    }

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        scrubbed = redact_secrets(message)
        if scrubbed != message:
            record.msg, record.args = scrubbed, None

        for key in list(record.__dict__):
            if key.lower() in self.SENSITIVE_KEYS:
                setattr(record, key, REDACTED)
        return True


class ListingsJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["correlation_id"] = getattr(record, "correlation_id", "none")
        log_record["service"] = SERVICE_NAME
        log_record["environment"] = os.getenv("ENVIRONMENT", "development")


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Install the root handler.

    Arguments override the environment:
    - LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default INFO)
    - LOG_FORMAT: json or text (default json when ENVIRONMENT=production)
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    default_format = "json" if os.getenv("ENVIRONMENT") == "production" else "text"
    log_format = (log_format or os.getenv("LOG_FORMAT", default_format)).lower()

    handler = logging.StreamHandler()
    if log_format == "json":
        handler.setFormatter(
            ListingsJsonFormatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s",
                rename_fields={"asctime": "@timestamp"},
            )
        )
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    handler.addFilter(CorrelationIDFilter())
    handler.addFilter(SensitiveDataFilter())

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Per-request lines from uvicorn and httpx duplicate the middleware's metrics
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
