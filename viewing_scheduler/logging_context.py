"""Request correlation ID logging context.

Provides a request_id-aware logger that attaches a correlation ID to every
log record, so a single user action (a booking, a reschedule) can be traced
across the slot generator, the booking engine and the store.

Usage:
    from viewing_scheduler.logging_context import get_request_logger, set_request_id

    set_request_id("REQ-abc123")
    logger = get_request_logger(__name__)
    logger.info("Booking visit")  # record.request_id == "REQ-abc123"
"""

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

NO_REQUEST_ID = "NO_REQUEST_ID"

_request_id: ContextVar[str] = ContextVar("request_id", default=NO_REQUEST_ID)


def set_request_id(request_id: Optional[str] = None) -> str:
    """Set the correlation ID for the current context, generating one if omitted."""
    if request_id is None:
        request_id = f"REQ-{uuid.uuid4().hex[:8]}"
    _request_id.set(request_id)
    return request_id


def get_request_id() -> str:
    """Retrieve the current correlation ID."""
    return _request_id.get()


@contextmanager
def request_scope() -> Iterator[str]:
    """Reuse the caller's correlation ID, or open a fresh one for this block.

    A generated ID is cleared again on exit, so consecutive operations by a
    caller that never sets one get distinct IDs. Nested scopes share the
    outer ID.
    """
    current = _request_id.get()
    if current != NO_REQUEST_ID:
        yield current
        return
    token = _request_id.set(f"REQ-{uuid.uuid4().hex[:8]}")
    try:
        yield _request_id.get()
    finally:
        _request_id.reset(token)


class RequestIdFilter(logging.Filter):
    """Injects request_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()  # type: ignore[attr-defined]
        return True


def get_request_logger(name: str) -> logging.Logger:
    """Return a logger with the RequestIdFilter attached.

    The filter adds ``request_id`` to each record so formatters can
    include ``%(request_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, RequestIdFilter) for f in logger.filters):
        logger.addFilter(RequestIdFilter())
    return logger
