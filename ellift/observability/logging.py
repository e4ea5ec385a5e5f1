"""Structured logging for the adaptation service.

Every entry carries the current request ID, log level and an ISO timestamp.
Backend credentials are masked before rendering, and uvicorn's standard
library loggers are routed through the same renderer so a single stream
holds all service output.

Usage:
    configure_logging(level="INFO", json_output=True)

    logger = get_logger("dispatch")
    logger.info("backend_selected", backend="primary")
    # {"event": "backend_selected", "backend": "primary",
    #  "component": "dispatch", "request_id": "abc-123", ...}
"""

import logging
import sys
from typing import Any, List, Optional

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

from ellift.observability.context import get_request_id

# Event keys whose values are never written to the log
SECRET_KEYS = frozenset({"api_key", "x-api-key", "authorization", "claude_api_key", "openai_api_key"})
REDACTED = "***"

_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def add_request_id_processor(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add ``request_id`` to the entry, "none" outside a request."""
    event_dict["request_id"] = get_request_id() or "none"
    return event_dict


def redact_secrets_processor(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Mask credential values, including inside a logged ``headers`` mapping."""
    for key in list(event_dict):
        if key.lower() in SECRET_KEYS and event_dict[key]:
            event_dict[key] = REDACTED

    headers = event_dict.get("headers")
    if isinstance(headers, dict):
        event_dict["headers"] = {
            name: REDACTED if name.lower() in SECRET_KEYS else value
            for name, value in headers.items()
        }
    return event_dict


def _shared_processors() -> List[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        add_request_id_processor,
        structlog.processors.add_log_level,
        redact_secrets_processor,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog and the standard library loggers.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_output: JSON lines when True (production), colored console
            output otherwise (development)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    renderer: Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=_shared_processors(),
        )
    )
    for name in _UVICORN_LOGGERS:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [handler]
        std_logger.setLevel(log_level)
        std_logger.propagate = False


def get_logger(component: Optional[str] = None, **initial_context: Any) -> Any:
    """Return a structlog logger bound to ``component`` and any extra context."""
    logger = structlog.get_logger()
    if component:
        logger = logger.bind(component=component)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger


def bind_context(**context: Any) -> None:
    """Bind context to every later entry logged by the current task.

    Example:
        bind_context(client="203.0.113.7")
        logger.info("admitted")  # includes client
    """
    structlog.contextvars.bind_contextvars(**context)


def clear_context() -> None:
    """Clear all bound context. Call at request boundaries."""
    structlog.contextvars.clear_contextvars()
