"""Tests for the performance recorder."""

import asyncio

import pytest
from structlog.testing import capture_logs

from ellift.models.config import PerformanceConfig
from ellift.observability.metrics import OPERATION_DURATION, SLOW_OPERATIONS
from ellift.observability.performance import PerformanceRecorder


class FakeClock:
    """Monotonic clock in seconds."""

    def __init__(self):
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class BrokenStore(dict):
    def get(self, key, default=None):
        raise OSError("store unavailable")

    def __setitem__(self, key, value):
        raise OSError("store unavailable")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def recorder(clock):
    return PerformanceRecorder(clock=clock)


class TestTimers:
    def test_start_end_round_trip(self, recorder, clock):
        recorder.start_timer("adapt_material")
        clock.now += 1.5
        record = recorder.end_timer("adapt_material", backend="primary")

        assert record is not None
        assert record.operation == "adapt_material"
        assert record.duration_ms == 1500
        assert record.slow is False
        assert record.tags == {"backend": "primary"}
        assert recorder.records == [record]

    def test_end_without_start_returns_none(self, recorder):
        assert recorder.end_timer("never_started") is None
        assert recorder.records == []

    def test_timer_is_one_shot(self, recorder):
        recorder.start_timer("op")
        assert recorder.end_timer("op") is not None
        assert recorder.end_timer("op") is None

    def test_reserved_tag_names_do_not_override_fields(self, recorder, clock):
        recorder.start_timer("op")
        clock.now += 0.25
        with capture_logs() as logs:
            record = recorder.end_timer("op", duration=5, slow=True, timestamp="x", pages=2)

        assert record.duration_ms == 250
        assert record.slow is False
        assert record.timestamp != "x"
        assert record.tags == {"pages": 2}
        dropped = [e for e in logs if e["event"] == "reserved_tags_dropped"]
        assert dropped[0]["tags"] == ["duration", "slow", "timestamp"]

    def test_slow_operation_flagged(self, recorder, clock):
        before = SLOW_OPERATIONS.labels(operation="slow_op")._value.get()
        recorder.start_timer("slow_op")
        clock.now += 30.001
        record = recorder.end_timer("slow_op")

        assert record.slow is True
        assert SLOW_OPERATIONS.labels(operation="slow_op")._value.get() == before + 1

    def test_threshold_is_exclusive(self, recorder, clock):
        recorder.start_timer("edge_op")
        clock.now += 30.0
        assert recorder.end_timer("edge_op").slow is False

    def test_duration_observed_in_histogram(self, recorder, clock):
        histogram = OPERATION_DURATION.labels(operation="observed_op")
        before = histogram._sum.get()
        recorder.start_timer("observed_op")
        clock.now += 2
        recorder.end_timer("observed_op")

        assert histogram._sum.get() == pytest.approx(before + 2)

    def test_log_is_bounded(self, clock):
        recorder = PerformanceRecorder(PerformanceConfig(log_size=3), clock=clock)
        for i in range(5):
            recorder.start_timer(f"op{i}")
            recorder.end_timer(f"op{i}")

        assert [r.operation for r in recorder.records] == ["op2", "op3", "op4"]


class TestTrack:
    @pytest.mark.asyncio
    async def test_track_records_with_tags(self, recorder, clock):
        async with recorder.track("extract_text", pages=3) as tags:
            clock.now += 0.25
            tags["chars"] = 1200

        record = recorder.records[-1]
        assert record.operation == "extract_text"
        assert record.duration_ms == 250
        assert record.tags == {"pages": 3, "chars": 1200}

    @pytest.mark.asyncio
    async def test_track_records_failures(self, recorder):
        with pytest.raises(ValueError):
            async with recorder.track("failing"):
                raise ValueError("boom")

        assert recorder.records[-1].tags == {"error": "ValueError"}

    @pytest.mark.asyncio
    async def test_concurrent_tracks_do_not_collide(self):
        recorder = PerformanceRecorder()

        async def work():
            async with recorder.track("same_name"):
                await asyncio.sleep(0)

        await asyncio.gather(work(), work(), work())
        assert len(recorder.records) == 3


class TestReport:
    def test_empty_report(self, recorder):
        report = recorder.get_report()
        assert report.total_operations == 0
        assert report.slowest_operation is None

    def test_report_summary(self, recorder, clock):
        for name, seconds in [("a", 1), ("b", 3), ("c", 2)]:
            recorder.start_timer(name)
            clock.now += seconds
            recorder.end_timer(name)

        report = recorder.get_report()
        assert report.total_operations == 3
        assert report.average_duration == 2000
        assert report.slowest_operation.operation == "b"
        assert [r.operation for r in report.recent_operations] == ["a", "b", "c"]

    def test_report_serializes_camel_case(self, recorder, clock):
        recorder.start_timer("a")
        recorder.end_timer("a")
        body = recorder.get_report().model_dump(by_alias=True)
        assert set(body) == {
            "totalOperations",
            "averageDuration",
            "slowestOperation",
            "recentOperations",
        }
        assert "duration" in body["slowestOperation"]


class TestPersistence:
    def test_log_persisted_and_reloaded(self, clock):
        store = {}
        first = PerformanceRecorder(store=store, clock=clock)
        first.start_timer("op")
        first.end_timer("op", backend="secondary")

        assert store["ellift_performance"][0]["operation"] == "op"
        assert store["ellift_performance"][0]["backend"] == "secondary"

        second = PerformanceRecorder(store=store, clock=clock)
        assert [r.operation for r in second.records] == ["op"]

    def test_store_failures_are_not_raised(self, clock):
        recorder = PerformanceRecorder(store=BrokenStore(), clock=clock)
        recorder.start_timer("op")
        assert recorder.end_timer("op") is not None
