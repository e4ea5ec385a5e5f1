"""
Data models for the fingerprint cache.

Defines cache configuration, stored entries and statistics.
"""

from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict

from ellift.models.adaptation import AdaptationResult


class CacheConfig(BaseModel):
    """Cache configuration"""

    model_config = ConfigDict(protected_namespaces=())

    enabled: bool = True
    key_prefix: str = "ellift_cache_"

    # Expiry and capacity
    ttl_hours: int = Field(default=24, ge=1)
    capacity: int = Field(default=5, ge=1)

    # Only the first N characters of content take part in the fingerprint
    content_prefix_chars: int = Field(default=1000, ge=1)

    @property
    def ttl_ms(self) -> int:
        return self.ttl_hours * 3600 * 1000


class CacheEntry(BaseModel):
    """A stored adaptation result and the instant it was written (epoch ms)."""

    key: str
    result: AdaptationResult
    created_at: int = Field(..., ge=0)

    def to_stored(self) -> dict:
        """Persisted layout: ``{result, timestamp}``."""
        return {
            "result": self.result.model_dump(by_alias=True),
            "timestamp": self.created_at,
        }

    @classmethod
    def from_stored(cls, key: str, data: dict) -> "CacheEntry":
        return cls(
            key=key,
            result=AdaptationResult.model_validate(data["result"]),
            created_at=int(data["timestamp"]),
        )


class CacheStats(BaseModel):
    """Cache statistics"""

    size: int = 0
    hits: int = 0
    misses: int = 0
    expired: int = 0
    evicted: int = 0

    last_updated: datetime = Field(default_factory=datetime.now)

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate"""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total
