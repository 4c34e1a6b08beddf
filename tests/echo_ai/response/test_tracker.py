import pytest

from echo_ai.errors import ErrorKind
from echo_ai.response.tracker import RequestTracker


def test_start_end_reports_latency(clock):
    tracker = RequestTracker(clock=clock)
    tracker.start("r1")
    clock.advance(0.25)

    assert tracker.end("r1") == pytest.approx(250.0)
    assert tracker.end("r1") is None
    assert tracker.stats()["completed"] == 1


def test_track_closes_on_failure(clock):
    tracker = RequestTracker(clock=clock)

    with pytest.raises(RuntimeError):
        with tracker.track() as request_id:
            assert request_id.startswith("req_")
            assert tracker.in_flight() == 1
            raise RuntimeError("boom")

    assert tracker.in_flight() == 0
    assert tracker.stats()["completed"] == 1


def test_stats_aggregate_errors_and_latency(clock):
    tracker = RequestTracker(clock=clock)
    for latency in (0.1, 0.3):
        with tracker.track():
            clock.advance(latency)
    tracker.record_error(ErrorKind.RATE_LIMIT)
    tracker.record_error(ErrorKind.RATE_LIMIT)

    stats = tracker.stats()

    assert stats["total_requests"] == 2
    assert stats["avg_latency_ms"] == pytest.approx(200.0)
    assert stats["errors_by_kind"] == {"rate_limit_error": 2}
    assert stats["error_rate"] == 1.0


def test_empty_stats_have_zero_rates():
    stats = RequestTracker().stats()

    assert stats["avg_latency_ms"] == 0.0
    assert stats["error_rate"] == 0.0
    assert stats["errors_by_kind"] == {}
