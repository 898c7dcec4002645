"""Worker request loop, run once per worker thread."""

from __future__ import annotations

import asyncio
import sys
import time
from typing import TYPE_CHECKING

from kvload._internal.logging import get_logger
from kvload.engine.executor import RequestExecutor
from kvload.metrics.models import WorkerLocalStats
from kvload.workload.keys import KeyValueGenerator
from kvload.workload.policy import plan_request

if TYPE_CHECKING:
    from collections.abc import Callable

    import numpy as np

    from kvload._internal.config import RunConfig
    from kvload.engine.protocol import RequestSender

logger = get_logger("engine.worker")


def _uvloop_factory() -> Callable[[], asyncio.AbstractEventLoop] | None:
    """Return uvloop's loop factory if available.

    Falls back to the default asyncio event loop on Windows or if uvloop
    is not installed.
    """
    if sys.platform == "win32":
        return None

    try:
        import uvloop
    except ImportError:
        logger.debug("uvloop not available, using default asyncio event loop")
        return None
    return uvloop.new_event_loop


def run_worker(
    worker_id: int,
    config: RunConfig,
    rng: np.random.Generator,
) -> WorkerLocalStats:
    """Run one worker to its deadline on the calling thread.

    Creates a private event loop (uvloop when available) and a private
    RequestExecutor, so nothing is shared with other workers.

    Args:
        worker_id: Worker identifier.
        config: Shared read-only run configuration.
        rng: Random generator owned by this worker.

    Returns:
        The worker's final statistics.
    """
    with asyncio.Runner(loop_factory=_uvloop_factory()) as runner:
        return runner.run(_run_with_executor(worker_id, config, rng))


async def _run_with_executor(
    worker_id: int,
    config: RunConfig,
    rng: np.random.Generator,
) -> WorkerLocalStats:
    async with RequestExecutor(
        config.base_url,
        timeout=config.request_timeout,
        worker_id=worker_id,
    ) as executor:
        return await run_request_loop(config, executor, rng, worker_id=worker_id)


async def run_request_loop(
    config: RunConfig,
    executor: RequestSender,
    rng: np.random.Generator,
    *,
    worker_id: int = 0,
) -> WorkerLocalStats:
    """Issue requests back to back until the worker's deadline passes.

    The deadline is captured when the loop starts and is only checked
    between iterations: a request in flight at the deadline is allowed to
    finish and is counted. Failed requests never end the loop.

    Args:
        config: Shared read-only run configuration.
        executor: Sender used for every request of this worker.
        rng: Random generator owned by this worker.
        worker_id: Worker identifier.

    Returns:
        The worker's final statistics.
    """
    stats = WorkerLocalStats(worker_id=worker_id)
    generator = KeyValueGenerator(
        key_space=config.key_space,
        hot_key_count=config.hot_key_count,
        value_length=config.value_length,
    )
    deadline = time.monotonic() + config.duration_seconds
    logger.debug("Worker %d: started, workload=%s", worker_id, config.workload.value)

    while time.monotonic() < deadline:
        request = plan_request(config.workload, rng, generator)
        outcome = await executor.execute(request.operation, request.key, request.value)
        stats.record(request.operation, outcome)

    logger.debug(
        "Worker %d: stopped, attempts=%d, successes=%d",
        worker_id,
        stats.attempts,
        stats.success_count,
    )
    return stats
