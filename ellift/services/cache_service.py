"""
Fingerprint cache for adaptation results.

Identical adaptation requests (same content prefix, subject, proficiency
level, material type and bilingual settings) map to the same key, so repeated
submissions are answered without calling a model backend.

Storage is any mutable mapping: an in-process dict by default, or a
diskcache.Cache when results should survive restarts. Only keys carrying the
cache prefix belong to this service; other keys in the same store are left
alone.
"""

import json
import time
from typing import Any, Callable, List, MutableMapping, Optional, Tuple

import structlog

from ellift.models.adaptation import AdaptationRequest, AdaptationResult
from ellift.models.cache import CacheConfig, CacheEntry, CacheStats
from ellift.observability.metrics import CACHE_OPERATIONS

logger = structlog.get_logger()


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def rolling_hash(text: str) -> int:
    """32-bit signed ``h * 31 + c`` hash over UTF-16 code units."""
    data = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        h = (h * 31 + int.from_bytes(data[i : i + 2], "little")) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


class FingerprintCache:
    """
    Content-addressed cache with a 24 hour TTL and a small fixed capacity.

    Storage faults never propagate: reads degrade to a miss and writes to a
    no-op.
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        store: Optional[MutableMapping[str, Any]] = None,
        clock: Callable[[], int] = _epoch_ms,
    ):
        """
        Initialize cache service.

        Args:
            config: Cache configuration
            store: Backing key/value store (defaults to a plain dict)
            clock: Returns the current time in epoch milliseconds
        """
        self.config = config or CacheConfig()
        self.store: MutableMapping[str, Any] = store if store is not None else {}
        self._clock = clock
        self._hits = 0
        self._misses = 0
        self._expired = 0
        self._evicted = 0

        logger.info(
            "cache_service_initialized",
            enabled=self.config.enabled,
            ttl_hours=self.config.ttl_hours,
            capacity=self.config.capacity,
            store=type(self.store).__name__,
        )

    def compute_key(self, request: AdaptationRequest) -> str:
        """
        Derive the deterministic cache key for a request.

        Args:
            request: Adaptation request

        Returns:
            Key of the form ``<prefix><n>``
        """
        fingerprint = {
            "content": request.content[: self.config.content_prefix_chars],
            "subject": request.subject,
            "proficiencyLevel": request.proficiency_level.value,
            "materialType": request.material_type.value,
            "includeBilingualSupport": request.bilingual_support,
        }
        if request.native_language is not None:
            fingerprint["nativeLanguage"] = request.native_language

        canonical = json.dumps(fingerprint, separators=(",", ":"), ensure_ascii=False)
        return f"{self.config.key_prefix}{abs(rolling_hash(canonical))}"

    def get(self, key: str) -> Optional[AdaptationResult]:
        """
        Get a cached result.

        Returns:
            The stored result, or None when missing, expired or unreadable
        """
        if not self.config.enabled:
            return None

        try:
            raw = self.store.get(key)
            if raw is None:
                self._record_miss(key)
                return None

            try:
                entry = CacheEntry.from_stored(key, raw)
            except (KeyError, TypeError, ValueError) as e:
                # Unreadable entries are dropped so the next lookup is a plain miss
                del self.store[key]
                CACHE_OPERATIONS.labels(operation="error").inc()
                logger.warning("cache_entry_corrupt", cache_key=key, error=str(e))
                self._record_miss(key)
                return None

            if self._clock() - entry.created_at >= self.config.ttl_ms:
                del self.store[key]
                self._expired += 1
                CACHE_OPERATIONS.labels(operation="expired").inc()
                logger.debug("cache_entry_expired", cache_key=key)
                self._record_miss(key)
                return None

            self._hits += 1
            CACHE_OPERATIONS.labels(operation="hit").inc()
            logger.info("cache_hit", cache_key=key)
            return entry.result

        except Exception as e:
            CACHE_OPERATIONS.labels(operation="error").inc()
            logger.error("cache_get_error", cache_key=key, error=str(e))
            return None

    def put(self, key: str, result: AdaptationResult) -> None:
        """
        Store a result, evicting the oldest entries to stay within capacity.

        Re-putting an existing key replaces it and makes it the newest entry.
        """
        if not self.config.enabled:
            return

        try:
            if key in self.store:
                del self.store[key]

            entries = self._entries_oldest_first()
            overflow = len(entries) - self.config.capacity + 1
            for old_key, _ in entries[: max(0, overflow)]:
                del self.store[old_key]
                self._evicted += 1
                CACHE_OPERATIONS.labels(operation="evict").inc()
                logger.debug("cache_entry_evicted", cache_key=old_key)

            entry = CacheEntry(key=key, result=result, created_at=self._clock())
            self.store[key] = entry.to_stored()
            CACHE_OPERATIONS.labels(operation="set").inc()
            logger.debug("cache_set", cache_key=key)

        except Exception as e:
            CACHE_OPERATIONS.labels(operation="error").inc()
            logger.error("cache_set_error", cache_key=key, error=str(e))

    def clear(self) -> int:
        """
        Remove every cache entry.

        Returns:
            Number of entries removed
        """
        try:
            keys = self._cache_keys()
            for key in keys:
                del self.store[key]
            logger.info("cache_cleared", removed=len(keys))
            return len(keys)
        except Exception as e:
            logger.error("cache_clear_error", error=str(e))
            return 0

    def stats(self) -> CacheStats:
        """Get cache statistics"""
        try:
            size = len(self._cache_keys())
        except Exception as e:
            logger.error("cache_stats_error", error=str(e))
            size = 0

        return CacheStats(
            size=size,
            hits=self._hits,
            misses=self._misses,
            expired=self._expired,
            evicted=self._evicted,
        )

    def _record_miss(self, key: str) -> None:
        self._misses += 1
        CACHE_OPERATIONS.labels(operation="miss").inc()
        logger.debug("cache_miss", cache_key=key)

    def _cache_keys(self) -> List[str]:
        return [
            k
            for k in list(self.store)
            if isinstance(k, str) and k.startswith(self.config.key_prefix)
        ]

    def _entries_oldest_first(self) -> List[Tuple[str, int]]:
        entries = []
        for key in self._cache_keys():
            raw = self.store.get(key)
            timestamp = raw.get("timestamp", 0) if isinstance(raw, dict) else 0
            entries.append((key, int(timestamp)))
        # Stable sort keeps store order for equal timestamps
        entries.sort(key=lambda item: item[1])
        return entries
