"""
Request correlation for structured logging.

RequestIDMiddleware stores the current request ID in thread-local storage and
RequestIDFilter copies it onto every log record, so a checkout can be traced
from the API call through the services it touches.
"""

from __future__ import annotations

import logging
import threading

# Thread-local storage for request context
_request_context = threading.local()


def set_request_id(request_id: str) -> None:
    """Set the current request ID in thread-local storage."""
    _request_context.request_id = request_id


def get_request_id() -> str | None:
    return getattr(_request_context, "request_id", None)


def clear_request_id() -> None:
    _request_context.request_id = None


class RequestIDFilter(logging.Filter):
    """Add request_id attribute to log records ("-" outside a request)"""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = getattr(_request_context, "request_id", None) or "-"  # type: ignore[attr-defined]
        return True
