"""
Correlation ID context.

Provides request tracing across the filter pipeline with:
- Unique request IDs for every request
- A logging filter that stamps every record with the current ID
"""

import logging
import uuid
from contextvars import ContextVar

# Context variable for request ID - accessible anywhere in the async context
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    """Get current request ID from context."""
    return request_id_var.get()


def set_request_id(request_id: str) -> str:
    """Set request ID in context."""
    request_id_var.set(request_id)
    return request_id


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return uuid.uuid4().hex[:12]


class RequestContextFilter(logging.Filter):
    """Logging filter to add request ID to all log records."""

    def filter(self, record):
        record.request_id = get_request_id() or "no-request-id"
        return True
