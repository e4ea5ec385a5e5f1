"""Rate limiting data models."""

from enum import Enum

from pydantic import BaseModel, Field


class UnidentifiedClientPolicy(str, Enum):
    """What to do with requests whose client identity cannot be determined."""

    SHARED = "shared"  # All unidentified clients share the "unknown" window
    REJECT = "reject"  # Refuse the request outright


class RateLimitConfig(BaseModel):
    """Default admission policy, overridable per call site."""

    enabled: bool = True
    max_requests: int = Field(default=5, ge=1)
    window_ms: int = Field(default=60_000, ge=1)
    unidentified_client_policy: UnidentifiedClientPolicy = (
        UnidentifiedClientPolicy.SHARED
    )


class RateLimitDecision(BaseModel):
    """Outcome of one admission check.

    Attributes:
        allowed: Whether the request was admitted
        remaining: Requests left in the current window
        reset_time: Epoch milliseconds at which the window next admits
    """

    allowed: bool
    remaining: int = Field(..., ge=0)
    reset_time: int = Field(..., ge=0)

    def to_response(self) -> dict:
        return {
            "allowed": self.allowed,
            "remaining": self.remaining,
            "resetTime": self.reset_time,
        }
