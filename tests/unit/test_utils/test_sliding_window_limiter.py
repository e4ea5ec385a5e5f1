"""Tests for the sliding-window rate limiter and client identity resolution."""

import pytest

from ellift.models.rate_limit import RateLimitConfig, UnidentifiedClientPolicy
from ellift.observability.metrics import RATE_LIMIT_DECISIONS
from ellift.utils.exceptions import InputValidationError
from ellift.utils.rate_limiter import (
    ClientIdentityError,
    SlidingWindowRateLimiter,
    client_identity,
)


class FakeClock:
    def __init__(self, now: int = 1_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return SlidingWindowRateLimiter(RateLimitConfig(), clock=clock)


class TestCheck:
    def test_admits_up_to_max(self, limiter, clock):
        remaining = [limiter.check("1.2.3.4").remaining for _ in range(5)]
        assert remaining == [4, 3, 2, 1, 0]

    def test_admitted_reset_time_is_now_plus_window(self, limiter, clock):
        decision = limiter.check("1.2.3.4")
        assert decision.allowed
        assert decision.reset_time == clock.now + 60_000

    def test_sixth_request_rejected_with_oldest_reset(self, limiter, clock):
        start = clock.now
        for _ in range(5):
            limiter.check("1.2.3.4")
            clock.now += 1000

        decision = limiter.check("1.2.3.4")
        assert not decision.allowed
        assert decision.remaining == 0
        assert decision.reset_time == start + 60_000

    def test_rejection_is_not_recorded(self, limiter, clock):
        start = clock.now
        for _ in range(5):
            limiter.check("1.2.3.4")
        clock.now += 30_000
        limiter.check("1.2.3.4")

        clock.now = start + 60_000
        assert limiter.check("1.2.3.4").allowed

    def test_recovers_after_window(self, limiter, clock):
        for _ in range(5):
            limiter.check("1.2.3.4")
        clock.now += 59_999
        assert not limiter.check("1.2.3.4").allowed

        clock.now += 1
        decision = limiter.check("1.2.3.4")
        assert decision.allowed
        assert decision.remaining == 4

    def test_identities_are_independent(self, limiter):
        for _ in range(5):
            limiter.check("1.2.3.4")
        assert limiter.check("5.6.7.8").allowed

    def test_per_call_overrides(self, limiter):
        assert limiter.check("a", max_requests=1, window_ms=10).allowed
        assert not limiter.check("a", max_requests=1, window_ms=10).allowed

    def test_explicit_zero_limit_rejects(self, limiter, clock):
        decision = limiter.check("a", max_requests=0)

        assert not decision.allowed
        assert decision.remaining == 0
        assert decision.reset_time == clock.now + 60_000

    def test_disabled_always_admits(self, clock):
        limiter = SlidingWindowRateLimiter(RateLimitConfig(enabled=False), clock=clock)
        for _ in range(10):
            assert limiter.check("1.2.3.4").allowed

    def test_internal_fault_admits(self, clock):
        limiter = SlidingWindowRateLimiter(clock=clock)
        limiter._windows = None  # type: ignore[assignment]
        before = RATE_LIMIT_DECISIONS.labels(decision="degraded")._value.get()

        assert limiter.check("1.2.3.4").allowed
        assert RATE_LIMIT_DECISIONS.labels(decision="degraded")._value.get() == before + 1

    def test_reset_one_identity(self, limiter):
        for _ in range(5):
            limiter.check("a")
            limiter.check("b")
        limiter.reset("a")

        assert limiter.check("a").allowed
        assert not limiter.check("b").allowed

    def test_reset_all(self, limiter):
        for _ in range(5):
            limiter.check("a")
        limiter.reset()
        assert limiter.check("a").allowed


class TestClientIdentity:
    def test_forwarded_for_first_address(self):
        headers = {"x-forwarded-for": "203.0.113.7, 10.0.0.1", "x-real-ip": "10.0.0.2"}
        assert client_identity(headers, peer="10.0.0.3") == "203.0.113.7"

    def test_real_ip_when_no_forwarded_for(self):
        assert client_identity({"x-real-ip": "198.51.100.4"}, peer="10.0.0.3") == "198.51.100.4"

    def test_peer_when_no_headers(self):
        assert client_identity({}, peer="10.0.0.3") == "10.0.0.3"

    def test_unknown_sentinel(self):
        assert client_identity({}, peer=None) == "unknown"

    def test_reject_policy(self):
        with pytest.raises(ClientIdentityError) as exc_info:
            client_identity({}, peer=None, policy=UnidentifiedClientPolicy.REJECT)
        assert isinstance(exc_info.value, InputValidationError)
        assert exc_info.value.status_code == 400

    def test_reject_policy_still_accepts_identified(self):
        assert (
            client_identity({}, peer="10.0.0.3", policy=UnidentifiedClientPolicy.REJECT)
            == "10.0.0.3"
        )
