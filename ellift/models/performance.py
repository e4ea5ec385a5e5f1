"""Performance recording data models."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PerformanceRecord(BaseModel):
    """One completed, timed operation.

    Operation-specific tags are kept as extra fields so that the stored
    record stays flat: ``{operation, duration, timestamp, ...tags}``.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    operation: str
    duration_ms: int = Field(..., ge=0, alias="duration")
    timestamp: str
    slow: bool = False

    @property
    def tags(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})

    def to_stored(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class PerformanceReport(BaseModel):
    """Summary over the bounded metrics log."""

    model_config = ConfigDict(populate_by_name=True)

    total_operations: int = Field(default=0, alias="totalOperations")
    average_duration: float = Field(default=0.0, alias="averageDuration")
    slowest_operation: Optional[PerformanceRecord] = Field(
        default=None, alias="slowestOperation"
    )
    recent_operations: List[PerformanceRecord] = Field(
        default_factory=list, alias="recentOperations"
    )
