"""Prometheus metrics definitions for the adaptation service.

Defines counters and histograms for monitoring:
- LLM backend requests, tokens and latency
- Fingerprint cache hits, misses and evictions
- Rate limiter admissions and rejections
- PDF extraction outcomes
- Operation timings from the performance recorder

Usage:
    from ellift.observability.metrics import LLM_REQUESTS_TOTAL

    LLM_REQUESTS_TOTAL.labels(backend="primary", status="success").inc()

Metrics are exposed via the /metrics endpoint.
"""

from prometheus_client import (
    Counter,
    Histogram,
    CollectorRegistry,
    generate_latest,
    CONTENT_TYPE_LATEST,
)

# Private registry so tests and multiple app instances do not collide with
# the process-wide default registry
REGISTRY = CollectorRegistry(auto_describe=True)

# =============================================================================
# COUNTERS
# =============================================================================

LLM_REQUESTS_TOTAL = Counter(
    name="ellift_llm_requests_total",
    documentation="Total LLM backend requests",
    labelnames=["backend", "status"],  # primary/secondary, success/failed
    registry=REGISTRY,
)

LLM_TOKENS_TOTAL = Counter(
    name="ellift_llm_tokens_total",
    documentation="Total LLM tokens used",
    labelnames=["backend", "type"],  # primary/secondary, input/output
    registry=REGISTRY,
)

CACHE_OPERATIONS = Counter(
    name="ellift_cache_operations_total",
    documentation="Total fingerprint cache operations",
    labelnames=["operation"],  # hit, miss, expired, set, evict, error
    registry=REGISTRY,
)

RATE_LIMIT_DECISIONS = Counter(
    name="ellift_rate_limit_decisions_total",
    documentation="Total rate limiter admission decisions",
    labelnames=["decision"],  # allowed, rejected, degraded
    registry=REGISTRY,
)

PDF_EXTRACTIONS = Counter(
    name="ellift_pdf_extractions_total",
    documentation="Total PDF text extractions by outcome",
    labelnames=["status"],  # done, or a failure kind
    registry=REGISTRY,
)

SLOW_OPERATIONS = Counter(
    name="ellift_slow_operations_total",
    documentation="Operations exceeding the slow-operation threshold",
    labelnames=["operation"],
    registry=REGISTRY,
)

# =============================================================================
# HISTOGRAMS
# =============================================================================

LLM_REQUEST_DURATION = Histogram(
    name="ellift_llm_request_duration_seconds",
    documentation="LLM backend request duration in seconds",
    labelnames=["backend"],
    buckets=(0.5, 1, 2, 5, 10, 30, 60, 120, float("inf")),
    registry=REGISTRY,
)

OPERATION_DURATION = Histogram(
    name="ellift_operation_duration_seconds",
    documentation="Timed operation duration in seconds",
    labelnames=["operation"],
    buckets=(0.1, 0.5, 1, 2, 5, 10, 30, 60, 120, float("inf")),
    registry=REGISTRY,
)

PDF_PAGES_PROCESSED = Histogram(
    name="ellift_pdf_pages_processed",
    documentation="Pages decoded per extraction job",
    buckets=(1, 2, 5, 10, 20, 50, 100, float("inf")),
    registry=REGISTRY,
)


def get_metrics_text() -> bytes:
    """Generate Prometheus metrics in text exposition format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Content-Type header value for Prometheus metrics responses."""
    return CONTENT_TYPE_LATEST
