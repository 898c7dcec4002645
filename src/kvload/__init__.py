"""kvload — concurrent load generator for key/value HTTP services."""

from __future__ import annotations

from kvload._internal.config import RunConfig, build_run_config
from kvload._internal.errors import ConfigError, EngineError, KvLoadError
from kvload.engine.runner import LoadTestRunner
from kvload.metrics.models import AggregateReport
from kvload.workload.policy import Operation, WorkloadKind

__version__ = "0.1.0"

__all__ = [
    "AggregateReport",
    "ConfigError",
    "EngineError",
    "KvLoadError",
    "LoadTestRunner",
    "Operation",
    "RunConfig",
    "WorkloadKind",
    "build_run_config",
]
