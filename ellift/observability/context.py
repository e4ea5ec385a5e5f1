"""Request ID context management for request tracing.

A ContextVar holds the ID of the HTTP request (or CLI invocation) currently
being served. It propagates across ``await`` points, so every log entry
emitted while serving a request carries the same ``request_id``.

Usage:
    from ellift.observability.context import request_id_context

    with request_id_context(request.headers.get("x-request-id")) as req_id:
        response = await call_next(request)
"""

import uuid
from contextvars import ContextVar
from contextlib import contextmanager
from typing import Optional, Generator

REQUEST_ID_HEADER = "X-Request-ID"

_request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def set_request_id(req_id: Optional[str] = None) -> str:
    """Set the request ID for the current context.

    Args:
        req_id: Optional request ID. If None, generates a UUID v4.

    Returns:
        The request ID that was set.
    """
    if req_id is None:
        req_id = str(uuid.uuid4())

    _request_id_var.set(req_id)
    return req_id


def get_request_id() -> Optional[str]:
    """Get the current request ID, or None outside a request."""
    return _request_id_var.get()


def clear_request_id() -> None:
    """Reset the request ID to None."""
    _request_id_var.set(None)


@contextmanager
def request_id_context(
    req_id: Optional[str] = None,
) -> Generator[str, None, None]:
    """Scope a request ID to a block and restore the previous value on exit.

    Args:
        req_id: Optional request ID (e.g. from an incoming header). Blank or
            missing values are replaced with a generated UUID.

    Yields:
        The request ID in effect inside the block.
    """
    if not req_id or not req_id.strip():
        req_id = str(uuid.uuid4())

    token = _request_id_var.set(req_id.strip())

    try:
        yield req_id.strip()
    finally:
        _request_id_var.reset(token)
