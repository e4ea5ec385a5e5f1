import time
from typing import Callable, Dict, List, Mapping, Optional

import structlog

from ellift.models.rate_limit import (
    RateLimitConfig,
    RateLimitDecision,
    UnidentifiedClientPolicy,
)
from ellift.observability.metrics import RATE_LIMIT_DECISIONS
from ellift.utils.exceptions import InputValidationError

logger = structlog.get_logger()

UNKNOWN_CLIENT = "unknown"


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class ClientIdentityError(InputValidationError):
    """Client identity could not be determined and the policy rejects it"""


def client_identity(
    headers: Mapping[str, str],
    peer: Optional[str] = None,
    policy: UnidentifiedClientPolicy = UnidentifiedClientPolicy.SHARED,
) -> str:
    """Resolve the rate-limit identity for a request.

    Order: first address in X-Forwarded-For, then X-Real-IP, then the
    transport peer. Unidentified callers share the "unknown" window, or are
    rejected under the REJECT policy.
    """
    forwarded = headers.get("x-forwarded-for") or ""
    first = forwarded.split(",")[0].strip()
    if first:
        return first

    real_ip = (headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip

    if peer:
        return peer

    if policy == UnidentifiedClientPolicy.REJECT:
        raise ClientIdentityError("Unable to identify client for rate limiting")
    return UNKNOWN_CLIENT


class SlidingWindowRateLimiter:
    """Per-identity sliding-window admission control.

    Each identity keeps the timestamps (epoch ms) of its admitted requests
    within the trailing window. State lives in process memory and resets on
    restart.
    """

    def __init__(
        self,
        config: Optional[RateLimitConfig] = None,
        clock: Callable[[], int] = _epoch_ms,
    ):
        self.config = config or RateLimitConfig()
        self._clock = clock
        self._windows: Dict[str, List[int]] = {}

    def check(
        self,
        identity: str,
        max_requests: Optional[int] = None,
        window_ms: Optional[int] = None,
    ) -> RateLimitDecision:
        """Decide whether to admit one request from ``identity``.

        Admitted requests are recorded. Internal faults admit the request.
        """
        if max_requests is None:
            max_requests = self.config.max_requests
        if window_ms is None:
            window_ms = self.config.window_ms
        now = self._clock()

        if not self.config.enabled:
            return RateLimitDecision(
                allowed=True, remaining=max_requests, reset_time=now + window_ms
            )

        try:
            # 1. Prune timestamps outside the window
            valid = [t for t in self._windows.get(identity, []) if now - t < window_ms]

            # 2. Reject when the window is full
            if len(valid) >= max_requests:
                self._windows[identity] = valid
                RATE_LIMIT_DECISIONS.labels(decision="rejected").inc()
                reset_time = min(valid) + window_ms if valid else now + window_ms
                logger.warning(
                    "rate_limit_exceeded",
                    identity=identity,
                    max_requests=max_requests,
                    reset_time=reset_time,
                )
                return RateLimitDecision(allowed=False, remaining=0, reset_time=reset_time)

            # 3. Admit and record
            valid.append(now)
            self._windows[identity] = valid
            RATE_LIMIT_DECISIONS.labels(decision="allowed").inc()
            return RateLimitDecision(
                allowed=True,
                remaining=max_requests - len(valid),
                reset_time=now + window_ms,
            )

        except Exception as e:
            RATE_LIMIT_DECISIONS.labels(decision="degraded").inc()
            logger.error("rate_limit_check_error", identity=identity, error=str(e))
            return RateLimitDecision(
                allowed=True, remaining=max_requests, reset_time=now + window_ms
            )

    def now(self) -> int:
        """Current time on the limiter's clock, in epoch milliseconds."""
        return self._clock()

    def reset(self, identity: Optional[str] = None) -> None:
        """Forget one identity's window, or every window when None."""
        if identity is None:
            self._windows.clear()
        else:
            self._windows.pop(identity, None)
