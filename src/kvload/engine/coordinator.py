"""Worker thread coordinator."""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

from kvload._internal.logging import get_logger
from kvload.engine.protocol import WorkerResult
from kvload.engine.worker import run_worker
from kvload.workload.keys import spawn_worker_rngs

if TYPE_CHECKING:
    from collections.abc import Callable

    import numpy as np

    from kvload._internal.config import RunConfig
    from kvload.metrics.models import WorkerLocalStats

    WorkerTarget = Callable[[int, RunConfig, np.random.Generator], WorkerLocalStats]

logger = get_logger("engine.coordinator")


class Coordinator:
    """Manages the lifecycle of N worker threads.

    Each worker gets its own random generator and publishes exactly one
    WorkerResult into its own slot. The join in :meth:`join` is the only
    synchronisation point between workers and the coordinator.

    Attributes:
        num_workers: Number of worker threads.
        seed_entropy: Entropy the worker RNGs were spawned from; pass it as
            ``seed`` to reproduce the request streams.
    """

    def __init__(
        self,
        config: RunConfig,
        *,
        worker_target: WorkerTarget = run_worker,
    ) -> None:
        """Initialize the coordinator.

        Args:
            config: Validated run configuration.
            worker_target: Function run on each worker thread.
        """
        self.num_workers = config.workers
        self._config = config
        self._worker_target = worker_target
        self._rngs, self.seed_entropy = spawn_worker_rngs(config.workers, config.seed)

        self._threads: list[threading.Thread] = []
        self._results: list[WorkerResult | None] = [None] * config.workers
        self._start_time: float | None = None
        self._end_time: float | None = None

    @property
    def elapsed_seconds(self) -> float:
        """Return wall time from before spawning to after the last join."""
        if self._start_time is None:
            return 0.0
        end = self._end_time if self._end_time is not None else time.monotonic()
        return end - self._start_time

    @property
    def is_alive(self) -> bool:
        """Return True if any worker thread is still running."""
        return any(t.is_alive() for t in self._threads)

    def start(self) -> None:
        """Spawn all worker threads.

        Raises:
            RuntimeError: If the coordinator was already started.
        """
        if self._threads:
            msg = "Coordinator already started"
            raise RuntimeError(msg)

        self._threads = [
            threading.Thread(
                target=self._worker_entry,
                args=(i,),
                name=f"kvload-worker-{i}",
                daemon=False,
            )
            for i in range(self.num_workers)
        ]

        self._start_time = time.monotonic()
        for thread in self._threads:
            thread.start()

        logger.info("Started %d worker threads", self.num_workers)

    def join(self) -> list[WorkerResult]:
        """Block until every worker has stopped on its own deadline.

        There is no join timeout: every worker loop terminates through its
        deadline check.

        Returns:
            One WorkerResult per worker, ordered by worker id.
        """
        for thread in self._threads:
            thread.join()
        self._end_time = time.monotonic()

        results: list[WorkerResult] = []
        for i, result in enumerate(self._results):
            if result is None:
                result = WorkerResult(
                    worker_id=i,
                    stats=None,
                    success=False,
                    error_message="No result received",
                )
            results.append(result)

        logger.info(
            "All %d workers stopped after %.2fs", self.num_workers, self.elapsed_seconds
        )
        return results

    def run(self) -> list[WorkerResult]:
        """Start all workers and wait for them to finish."""
        self.start()
        return self.join()

    def _worker_entry(self, worker_id: int) -> None:
        """Thread target: run one worker and publish its result."""
        try:
            stats = self._worker_target(worker_id, self._config, self._rngs[worker_id])
        except Exception as exc:
            logger.exception("Worker %d: failed", worker_id)
            self._results[worker_id] = WorkerResult(
                worker_id=worker_id,
                stats=None,
                success=False,
                error_message=f"{type(exc).__name__}: {exc}",
            )
        else:
            self._results[worker_id] = WorkerResult(
                worker_id=worker_id,
                stats=stats,
                success=True,
            )
