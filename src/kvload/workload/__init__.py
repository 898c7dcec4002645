"""Workload definition: what each request iteration sends.

The generator draws keys and values; the policy decides which operation
an iteration performs for a given :class:`WorkloadKind`.
"""

from __future__ import annotations

from kvload.workload.keys import KeyValueGenerator, spawn_worker_rngs
from kvload.workload.policy import (
    Operation,
    PlannedRequest,
    WorkloadKind,
    choose_operation,
    parse_workload,
    plan_request,
)

__all__ = [
    "KeyValueGenerator",
    "Operation",
    "PlannedRequest",
    "WorkloadKind",
    "choose_operation",
    "parse_workload",
    "plan_request",
    "spawn_worker_rngs",
]
