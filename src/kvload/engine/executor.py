"""Timed execution of single key/value operations over aiohttp."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import aiohttp

from kvload._internal.logging import get_logger
from kvload.metrics.models import RequestOutcome
from kvload.workload.policy import Operation

if TYPE_CHECKING:
    from kvload._internal.types import Key, Value

logger = get_logger("engine.executor")

_SUCCESS_STATUS = 200


class RequestExecutor:
    """Issues one operation per call against the target service.

    Wraps a private ``aiohttp.ClientSession`` limited to a single
    keep-alive connection; every worker owns its own executor, so
    sessions are never shared between workers.

    Operation mapping:
        - CREATE: ``POST /create`` with form body ``key=..&value=..``
        - READ: ``GET /read?key=..``
        - DELETE: ``DELETE /delete?key=..``

    Attributes:
        base_url: Target service base URL.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float | None = 30.0,
        worker_id: int = 0,
    ) -> None:
        """Initialize the executor.

        Args:
            base_url: Target service base URL, e.g. ``http://127.0.0.1:8080``.
            timeout: Total per-request timeout in seconds, None for none.
            worker_id: Owning worker, used in log messages.
        """
        self.base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._worker_id = worker_id
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> RequestExecutor:
        """Open the underlying session."""
        self._session = aiohttp.ClientSession(
            timeout=self._timeout,
            connector=aiohttp.TCPConnector(limit=1),
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        """Close the underlying session."""
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def execute(self, operation: Operation, key: Key, value: Value) -> RequestOutcome:
        """Issue *operation* and classify the result.

        The timer starts right before dispatch and stops once the response
        body has been read or the failure has surfaced. Transport errors,
        timeouts and non-200 statuses become a failed outcome; nothing is
        retried and nothing is raised.

        Args:
            operation: Operation to issue.
            key: Key the operation targets.
            value: Value to store (CREATE only).

        Returns:
            The RequestOutcome of this attempt.

        Raises:
            RuntimeError: If the executor is used outside of an async
                context manager.
        """
        if self._session is None:
            msg = "RequestExecutor must be used as an async context manager"
            raise RuntimeError(msg)

        method, path, kwargs = self._build_request(operation, key, value)
        url = f"{self.base_url}{path}"

        start = time.perf_counter_ns()
        try:
            async with self._session.request(method, url, **kwargs) as resp:  # type: ignore[arg-type]
                await resp.read()
                latency_ns = time.perf_counter_ns() - start
                status_code = resp.status
        except (aiohttp.ClientError, TimeoutError, OSError) as exc:
            latency_ns = time.perf_counter_ns() - start
            error = f"{type(exc).__name__}: {exc}"
            logger.debug("Worker %d: %s %s failed: %s", self._worker_id, method, path, error)
            return RequestOutcome(succeeded=False, latency_ns=latency_ns, error=error)

        if status_code != _SUCCESS_STATUS:
            logger.debug(
                "Worker %d: %s %s returned HTTP %d", self._worker_id, method, path, status_code
            )
        return RequestOutcome(
            succeeded=status_code == _SUCCESS_STATUS,
            latency_ns=latency_ns,
            status_code=status_code,
        )

    @staticmethod
    def _build_request(
        operation: Operation,
        key: Key,
        value: Value,
    ) -> tuple[str, str, dict[str, object]]:
        """Map an operation to (method, path, aiohttp keyword arguments)."""
        if operation is Operation.CREATE:
            # A dict body is sent as application/x-www-form-urlencoded
            return "POST", "/create", {"data": {"key": key, "value": value}}
        if operation is Operation.READ:
            return "GET", "/read", {"params": {"key": key}}
        return "DELETE", "/delete", {"params": {"key": key}}
