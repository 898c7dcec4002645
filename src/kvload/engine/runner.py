"""Top-level load run orchestrator."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from kvload._internal.errors import EngineError
from kvload._internal.logging import get_logger, setup_logging
from kvload.engine.coordinator import Coordinator
from kvload.engine.worker import run_worker
from kvload.metrics.aggregator import aggregate

if TYPE_CHECKING:
    from kvload._internal.config import RunConfig
    from kvload.engine.coordinator import WorkerTarget
    from kvload.metrics.models import AggregateReport

logger = get_logger("engine.runner")


class LoadTestRunner:
    """Runs one load test from a validated RunConfig to an AggregateReport.

    Wires together the coordinator (worker threads) and the aggregator.
    ``run()`` blocks until every worker has passed its deadline.

    Attributes:
        config: The run configuration.
    """

    def __init__(
        self,
        config: RunConfig,
        *,
        log_level: int = logging.INFO,
        worker_target: WorkerTarget = run_worker,
    ) -> None:
        """Initialize the runner.

        Args:
            config: Validated run configuration.
            log_level: Logging level.
            worker_target: Function run on each worker thread.
        """
        self.config = config
        self._log_level = log_level
        self._worker_target = worker_target
        self.seed_entropy: int | None = None

    def run(self) -> AggregateReport:
        """Execute the load test and return the aggregate report.

        Returns:
            The AggregateReport of the run. A run in which no request
            succeeded yields a report with ``has_data == False``.

        Raises:
            EngineError: If every worker thread crashed.
        """
        setup_logging(level=self._log_level)

        coordinator = Coordinator(self.config, worker_target=self._worker_target)
        self.seed_entropy = coordinator.seed_entropy

        logger.info(
            "Starting load test: workers=%d, duration=%.1fs, workload=%s, target=%s, seed=%d",
            self.config.workers,
            self.config.duration_seconds,
            self.config.workload.value,
            self.config.base_url,
            coordinator.seed_entropy,
        )

        results = coordinator.run()

        failed = [r for r in results if not r.success]
        for r in failed:
            logger.warning("Worker %d failed: %s", r.worker_id, r.error_message)
        if len(failed) == len(results):
            msg = f"All {len(results)} workers failed"
            raise EngineError(msg)

        stats = [r.stats for r in results if r.stats is not None]
        report = aggregate(stats, coordinator.elapsed_seconds)

        logger.info(
            "Load test completed: duration=%.2fs, total_requests=%d, throughput=%d/s, "
            "avg_latency=%.3fms, failed=%d",
            report.elapsed_seconds,
            report.total_requests,
            report.throughput_per_sec,
            report.average_latency_ms,
            report.failed_requests,
        )
        return report
