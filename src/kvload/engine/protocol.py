"""Types exchanged between the coordinator, workers and executors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from kvload._internal.types import Key, Value
    from kvload.metrics.models import RequestOutcome, WorkerLocalStats
    from kvload.workload.policy import Operation


class RequestSender(Protocol):
    """Anything that can issue one operation and report its outcome."""

    async def execute(self, operation: Operation, key: Key, value: Value) -> RequestOutcome:
        """Issue *operation* and return its outcome without raising."""
        ...


@dataclass(frozen=True)
class WorkerResult:
    """What a worker thread publishes to the coordinator on exit.

    Attributes:
        worker_id: Identifier of the worker that produced this result.
        stats: Final worker statistics, or None if the worker crashed
            before producing any.
        success: Whether the worker loop ran to its deadline.
        error_message: Error description if the worker failed.
    """

    worker_id: int
    stats: WorkerLocalStats | None
    success: bool
    error_message: str | None = None
