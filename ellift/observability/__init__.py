"""Observability for the adaptation service.

Provides:
- Request ID context management for request tracing
- Structured logging with context propagation
- Prometheus metrics for monitoring
- Operation timing via the performance recorder

Usage:
    from ellift.observability import (
        request_id_context,
        get_logger,
        LLM_REQUESTS_TOTAL,
    )

    with request_id_context(request.headers.get("X-Request-ID")):
        logger = get_logger("api")
        logger.info("request_started", path="/api/adapt")

    LLM_REQUESTS_TOTAL.labels(backend="primary", status="success").inc()
"""

from ellift.observability.context import (
    REQUEST_ID_HEADER,
    set_request_id,
    get_request_id,
    clear_request_id,
    request_id_context,
)
from ellift.observability.logging import (
    get_logger,
    configure_logging,
    add_request_id_processor,
    redact_secrets_processor,
)
from ellift.observability.metrics import (
    # Counters
    LLM_REQUESTS_TOTAL,
    LLM_TOKENS_TOTAL,
    CACHE_OPERATIONS,
    RATE_LIMIT_DECISIONS,
    PDF_EXTRACTIONS,
    SLOW_OPERATIONS,
    # Histograms
    LLM_REQUEST_DURATION,
    OPERATION_DURATION,
    PDF_PAGES_PROCESSED,
    # Registry and utilities
    REGISTRY,
    get_metrics_text,
    get_metrics_content_type,
)
from ellift.observability.performance import PerformanceRecorder

__all__ = [
    # Context
    "REQUEST_ID_HEADER",
    "set_request_id",
    "get_request_id",
    "clear_request_id",
    "request_id_context",
    # Logging
    "get_logger",
    "configure_logging",
    "add_request_id_processor",
    "redact_secrets_processor",
    # Counters
    "LLM_REQUESTS_TOTAL",
    "LLM_TOKENS_TOTAL",
    "CACHE_OPERATIONS",
    "RATE_LIMIT_DECISIONS",
    "PDF_EXTRACTIONS",
    "SLOW_OPERATIONS",
    # Histograms
    "LLM_REQUEST_DURATION",
    "OPERATION_DURATION",
    "PDF_PAGES_PROCESSED",
    # Utilities
    "REGISTRY",
    "get_metrics_text",
    "get_metrics_content_type",
    # Timing
    "PerformanceRecorder",
]
