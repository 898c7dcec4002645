"""Measurement dataclasses for kvload."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from kvload.metrics.histogram import LatencyHistogram

if TYPE_CHECKING:
    from kvload._internal.types import OperationCounts
    from kvload.workload.policy import Operation

__all__ = [
    "AggregateReport",
    "RequestOutcome",
    "WorkerLocalStats",
]


@dataclass(frozen=True)
class RequestOutcome:
    """Result of a single request attempt.

    Attributes:
        succeeded: True only if the call completed with HTTP 200.
        latency_ns: Wall-clock time from dispatch to observed outcome.
        status_code: HTTP status code (0 if the transport failed).
        error: ``"<ExceptionType>: <message>"`` for transport failures.
    """

    succeeded: bool
    latency_ns: int
    status_code: int = 0
    error: str | None = None


@dataclass
class WorkerLocalStats:
    """Counters owned by exactly one worker for the whole run.

    Only the owning worker calls :meth:`record`. The aggregator reads the
    final values after the worker's thread has been joined.

    Attributes:
        worker_id: Index of the owning worker.
        success_count: Requests that completed with HTTP 200.
        total_latency_ns: Sum of latencies of successful requests.
        attempts: Every request issued, successful or not.
        operation_counts: Attempts per operation name.
        histogram: Latencies of successful requests.
    """

    worker_id: int = 0
    success_count: int = 0
    total_latency_ns: int = 0
    attempts: int = 0
    operation_counts: OperationCounts = field(default_factory=dict)
    histogram: LatencyHistogram = field(default_factory=LatencyHistogram)

    @property
    def failure_count(self) -> int:
        """Return the number of failed attempts."""
        return self.attempts - self.success_count

    def record(self, operation: Operation, outcome: RequestOutcome) -> None:
        """Account for one finished request.

        Latency is accumulated only for successful requests.
        """
        self.attempts += 1
        name = operation.value
        self.operation_counts[name] = self.operation_counts.get(name, 0) + 1
        if outcome.succeeded:
            self.success_count += 1
            self.total_latency_ns += outcome.latency_ns
            self.histogram.record_latency_ns(outcome.latency_ns)


@dataclass(frozen=True)
class AggregateReport:
    """Combined result of a run, built once after every worker has joined.

    When no request succeeded, throughput and every latency figure are 0
    and :attr:`has_data` is False.

    Attributes:
        total_requests: Successful requests across all workers.
        throughput_per_sec: ``total_requests / elapsed_seconds``, truncated.
        average_latency_ms: Mean latency of successful requests.
        total_attempts: Requests issued, successful or not.
        failed_requests: ``total_attempts - total_requests``.
        elapsed_seconds: Wall time from before spawn to after the last join.
        workers: Number of workers whose statistics were merged.
        latency_p50_ms: Median latency of successful requests.
        latency_p95_ms: 95th percentile latency.
        latency_p99_ms: 99th percentile latency.
        latency_max_ms: Maximum latency.
        operation_counts: Attempts per operation name across all workers.
    """

    total_requests: int
    throughput_per_sec: int
    average_latency_ms: float
    total_attempts: int = 0
    failed_requests: int = 0
    elapsed_seconds: float = 0.0
    workers: int = 0
    latency_p50_ms: float = 0.0
    latency_p95_ms: float = 0.0
    latency_p99_ms: float = 0.0
    latency_max_ms: float = 0.0
    operation_counts: OperationCounts = field(default_factory=dict)

    @property
    def has_data(self) -> bool:
        """Return True if at least one request succeeded."""
        return self.total_requests > 0

    @property
    def success_rate(self) -> float:
        """Return the fraction of attempts that succeeded (0.0 if none)."""
        if self.total_attempts == 0:
            return 0.0
        return self.total_requests / self.total_attempts
