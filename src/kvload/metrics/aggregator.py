"""Post-run aggregation of per-worker statistics.

Runs once, after every worker thread has been joined. It only reads the
workers' ``WorkerLocalStats``; merging histograms goes into a fresh
histogram, so aggregating the same snapshots twice gives identical
reports.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from kvload._internal.logging import get_logger
from kvload.metrics.histogram import LatencyHistogram
from kvload.metrics.models import AggregateReport

if TYPE_CHECKING:
    from collections.abc import Sequence

    from kvload.metrics.models import WorkerLocalStats

logger = get_logger("metrics.aggregator")

_NANOS_PER_MS = 1_000_000


def aggregate(stats: Sequence[WorkerLocalStats], elapsed_seconds: float) -> AggregateReport:
    """Combine worker statistics into an AggregateReport.

    Args:
        stats: Final statistics of every finished worker.
        elapsed_seconds: Coordinator-measured wall time of the run.

    Returns:
        The aggregate report. With zero successful requests (or zero
        elapsed time) the derived rates are 0 instead of a division fault.
    """
    total_requests = sum(s.success_count for s in stats)
    total_attempts = sum(s.attempts for s in stats)
    total_latency_ns = sum(s.total_latency_ns for s in stats)

    operation_counts: dict[str, int] = defaultdict(int)
    for s in stats:
        for name, count in s.operation_counts.items():
            operation_counts[name] += count

    if total_requests == 0:
        logger.debug("No successful requests across %d workers", len(stats))
        return AggregateReport(
            total_requests=0,
            throughput_per_sec=0,
            average_latency_ms=0.0,
            total_attempts=total_attempts,
            failed_requests=total_attempts,
            elapsed_seconds=elapsed_seconds,
            workers=len(stats),
            operation_counts=dict(operation_counts),
        )

    throughput = int(total_requests / elapsed_seconds) if elapsed_seconds > 0 else 0
    merged = LatencyHistogram.merge(s.histogram for s in stats)

    return AggregateReport(
        total_requests=total_requests,
        throughput_per_sec=throughput,
        average_latency_ms=total_latency_ns / total_requests / _NANOS_PER_MS,
        total_attempts=total_attempts,
        failed_requests=total_attempts - total_requests,
        elapsed_seconds=elapsed_seconds,
        workers=len(stats),
        latency_p50_ms=merged.get_percentile_ms(50.0),
        latency_p95_ms=merged.get_percentile_ms(95.0),
        latency_p99_ms=merged.get_percentile_ms(99.0),
        latency_max_ms=merged.get_max_ms(),
        operation_counts=dict(operation_counts),
    )
