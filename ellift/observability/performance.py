"""Operation timing and bounded metrics log.

Usage:
    recorder = PerformanceRecorder()

    recorder.start_timer("adapt_material")
    ...
    record = recorder.end_timer("adapt_material", backend="primary")

    async with recorder.track("extract_text", pages=3):
        text = await pipeline.extract(data)

Timers are keyed by operation name and are one-shot: ending a timer removes
its start marker, so ending it again returns None. ``track()`` uses a unique
internal key so concurrent operations with the same name never collide.
"""

import time
import uuid
from collections import deque
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable, Deque, Dict, MutableMapping, Optional

import structlog

from ellift.models.config import PerformanceConfig
from ellift.models.performance import PerformanceRecord, PerformanceReport
from ellift.observability.metrics import OPERATION_DURATION, SLOW_OPERATIONS

logger = structlog.get_logger()

# Record fields that operation tags may not override
RESERVED_FIELDS = frozenset({"operation", "duration", "duration_ms", "timestamp", "slow"})


class PerformanceRecorder:
    """Records operation durations into a bounded, append-only log."""

    def __init__(
        self,
        config: Optional[PerformanceConfig] = None,
        store: Optional[MutableMapping[str, Any]] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        """
        Args:
            config: Log size, slow threshold and storage key
            store: Optional key/value store the log is persisted to
            clock: Monotonic clock returning seconds
        """
        self.config = config or PerformanceConfig()
        self._store = store
        self._clock = clock
        self._timers: Dict[str, float] = {}
        self._log: Deque[PerformanceRecord] = deque(maxlen=self.config.log_size)
        self._load_persisted()

    # ==================== Timers ====================

    def start_timer(self, operation: str) -> None:
        """Record the start instant for ``operation``."""
        self._timers[operation] = self._clock()
        logger.debug("timer_started", operation=operation)

    def end_timer(self, operation: str, **tags: Any) -> Optional[PerformanceRecord]:
        """Stop the timer for ``operation`` and append a record.

        Returns None (and logs a warning) when no matching timer exists.
        """
        return self._finish(operation, operation, tags)

    @asynccontextmanager
    async def track(self, operation: str, **tags: Any) -> AsyncIterator[Dict[str, Any]]:
        """Time the enclosed block.

        Yields a dict that the block may add tags to. The record is written
        whether or not the block raises; failures are tagged ``error``.
        """
        key = f"{operation}#{uuid.uuid4().hex}"
        extra: Dict[str, Any] = dict(tags)
        self._timers[key] = self._clock()
        try:
            yield extra
        except BaseException as e:
            extra["error"] = type(e).__name__
            raise
        finally:
            self._finish(key, operation, extra)

    def _finish(
        self, key: str, operation: str, tags: Dict[str, Any]
    ) -> Optional[PerformanceRecord]:
        started = self._timers.pop(key, None)
        if started is None:
            logger.warning("timer_not_found", operation=operation)
            return None

        duration_ms = max(0, round((self._clock() - started) * 1000))
        slow = duration_ms > self.config.slow_operation_ms

        colliding = sorted(RESERVED_FIELDS.intersection(tags))
        if colliding:
            logger.warning("reserved_tags_dropped", operation=operation, tags=colliding)
        fields = {k: v for k, v in tags.items() if k not in RESERVED_FIELDS}
        fields.update(
            operation=operation,
            duration=duration_ms,
            timestamp=datetime.now(timezone.utc).isoformat(),
            slow=slow,
        )
        record = PerformanceRecord.model_validate(fields)
        self._log.append(record)

        OPERATION_DURATION.labels(operation=operation).observe(duration_ms / 1000)
        logger.info("operation_completed", operation=operation, duration_ms=duration_ms)

        if slow:
            SLOW_OPERATIONS.labels(operation=operation).inc()
            logger.warning(
                "slow_operation_detected",
                operation=operation,
                duration_ms=duration_ms,
                threshold_ms=self.config.slow_operation_ms,
            )

        self._persist()
        return record

    # ==================== Log ====================

    @property
    def records(self) -> list[PerformanceRecord]:
        """Snapshot of the metrics log, oldest first."""
        return list(self._log)

    def get_report(self) -> PerformanceReport:
        """Summarize the metrics log."""
        records = self.records
        if not records:
            return PerformanceReport()

        total = sum(r.duration_ms for r in records)
        return PerformanceReport(
            total_operations=len(records),
            average_duration=total / len(records),
            slowest_operation=max(records, key=lambda r: r.duration_ms),
            recent_operations=records[-10:],
        )

    def _persist(self) -> None:
        if self._store is None:
            return
        try:
            self._store[self.config.storage_key] = [r.to_stored() for r in self._log]
        except Exception as e:
            logger.error("performance_log_persist_error", error=str(e))

    def _load_persisted(self) -> None:
        if self._store is None:
            return
        try:
            stored = self._store.get(self.config.storage_key) or []
            for item in stored[-self.config.log_size :]:
                self._log.append(PerformanceRecord.model_validate(item))
        except Exception as e:
            logger.error("performance_log_load_error", error=str(e))
