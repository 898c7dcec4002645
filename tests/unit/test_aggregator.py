"""Tests for WorkerLocalStats and post-run aggregation."""

from __future__ import annotations

import pytest

from kvload.metrics.aggregator import aggregate
from kvload.metrics.models import AggregateReport, RequestOutcome, WorkerLocalStats
from kvload.workload.policy import Operation


def _ok(latency_ms: float) -> RequestOutcome:
    return RequestOutcome(succeeded=True, latency_ns=int(latency_ms * 1_000_000), status_code=200)


def _failed(latency_ms: float = 1.0, status_code: int = 500) -> RequestOutcome:
    return RequestOutcome(succeeded=False, latency_ns=int(latency_ms * 1_000_000), status_code=status_code)


def _stats(worker_id: int, successes: list[float], failures: int = 0) -> WorkerLocalStats:
    stats = WorkerLocalStats(worker_id=worker_id)
    for latency in successes:
        stats.record(Operation.READ, _ok(latency))
    for _ in range(failures):
        stats.record(Operation.CREATE, _failed())
    return stats


class TestWorkerLocalStats:
    def test_starts_empty(self):
        stats = WorkerLocalStats()
        assert stats.success_count == 0
        assert stats.total_latency_ns == 0
        assert stats.attempts == 0
        assert stats.histogram.total_count == 0

    def test_success_accrues_latency(self):
        stats = WorkerLocalStats()
        stats.record(Operation.READ, _ok(2.0))
        assert stats.success_count == 1
        assert stats.attempts == 1
        assert stats.total_latency_ns == 2_000_000
        assert stats.histogram.total_count == 1

    def test_failure_counts_attempt_only(self):
        stats = WorkerLocalStats()
        stats.record(Operation.DELETE, _failed(latency_ms=50.0))
        assert stats.success_count == 0
        assert stats.attempts == 1
        assert stats.failure_count == 1
        assert stats.total_latency_ns == 0
        assert stats.histogram.total_count == 0

    def test_operation_counts_track_attempts(self):
        stats = _stats(0, [1.0, 1.0], failures=3)
        assert stats.operation_counts == {"read": 2, "create": 3}
        assert stats.success_count <= stats.attempts


class TestAggregate:
    def test_sums_across_workers(self):
        report = aggregate([_stats(0, [1.0, 3.0]), _stats(1, [2.0], failures=2)], elapsed_seconds=1.0)

        assert report.total_requests == 3
        assert report.total_attempts == 5
        assert report.failed_requests == 2
        assert report.workers == 2
        assert report.average_latency_ms == pytest.approx(2.0)
        assert report.operation_counts == {"read": 3, "create": 2}
        assert report.has_data

    def test_throughput_is_truncated(self):
        report = aggregate([_stats(0, [1.0] * 7)], elapsed_seconds=2.0)
        assert report.throughput_per_sec == 3
        assert isinstance(report.throughput_per_sec, int)

    def test_percentiles_come_from_merged_histograms(self):
        report = aggregate([_stats(0, [1.0] * 50), _stats(1, [9.0] * 50)], elapsed_seconds=1.0)
        assert report.latency_p50_ms == pytest.approx(1.0, rel=0.01)
        assert report.latency_p99_ms == pytest.approx(9.0, rel=0.01)
        assert report.latency_max_ms == pytest.approx(9.0, rel=0.01)

    def test_zero_successes_is_defined_no_data_state(self):
        report = aggregate([_stats(0, [], failures=4), _stats(1, [], failures=1)], elapsed_seconds=1.0)

        assert report.total_requests == 0
        assert report.throughput_per_sec == 0
        assert report.average_latency_ms == 0.0
        assert report.latency_p99_ms == 0.0
        assert report.failed_requests == 5
        assert report.success_rate == 0.0
        assert not report.has_data

    def test_no_workers(self):
        report = aggregate([], elapsed_seconds=1.0)
        assert report.total_requests == 0
        assert report.total_attempts == 0
        assert report.success_rate == 0.0

    def test_zero_elapsed_does_not_divide(self):
        report = aggregate([_stats(0, [1.0])], elapsed_seconds=0.0)
        assert report.throughput_per_sec == 0
        assert report.total_requests == 1

    def test_aggregating_twice_is_identical(self):
        snapshots = [_stats(0, [1.0, 2.0, 4.0]), _stats(1, [8.0], failures=1)]
        first = aggregate(snapshots, elapsed_seconds=1.5)
        second = aggregate(snapshots, elapsed_seconds=1.5)
        assert first == second
        assert snapshots[0].histogram.total_count == 3

    def test_report_is_frozen(self):
        report = aggregate([_stats(0, [1.0])], elapsed_seconds=1.0)
        assert isinstance(report, AggregateReport)
        with pytest.raises(AttributeError):
            report.total_requests = 10  # type: ignore[misc]
