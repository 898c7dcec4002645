"""Workload kinds and the per-iteration operation selection rule."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from kvload._internal.errors import ConfigError

if TYPE_CHECKING:
    import numpy as np

    from kvload._internal.types import Key, Value
    from kvload.workload.keys import KeyValueGenerator


class WorkloadKind(Enum):
    """Operation mix a run exercises."""

    PUT_ALL = "putall"
    GET_ALL = "getall"
    POPULAR_GET = "popular"
    MIXED = "mixed"


class Operation(Enum):
    """Single operation issued against the target service."""

    CREATE = "create"
    READ = "read"
    DELETE = "delete"


_MIXED_OPERATIONS = (Operation.CREATE, Operation.READ, Operation.DELETE)

_WORKLOAD_ALIASES: dict[str, WorkloadKind] = {
    "putall": WorkloadKind.PUT_ALL,
    "getall": WorkloadKind.GET_ALL,
    "popular": WorkloadKind.POPULAR_GET,
    "getpopular": WorkloadKind.POPULAR_GET,
    "mixed": WorkloadKind.MIXED,
}


@dataclass(frozen=True)
class PlannedRequest:
    """Operation and payload chosen for one loop iteration."""

    operation: Operation
    key: Key
    value: Value


def parse_workload(name: str) -> WorkloadKind:
    """Parse a workload name into a WorkloadKind.

    Args:
        name: One of ``putall``, ``getall``, ``popular``, ``getpopular``
            or ``mixed`` (case-insensitive).

    Returns:
        The matching WorkloadKind.

    Raises:
        ConfigError: If the name is not a known workload.
    """
    kind = _WORKLOAD_ALIASES.get(name.strip().lower())
    if kind is None:
        choices = ", ".join(_WORKLOAD_ALIASES)
        msg = f"Unknown workload: {name!r}. Choose from: {choices}"
        raise ConfigError(msg)
    return kind


def choose_operation(kind: WorkloadKind, rng: np.random.Generator) -> Operation:
    """Select the operation for one iteration.

    Only MIXED consumes a random draw: CREATE, READ and DELETE with equal
    weight, drawn independently every iteration.
    """
    if kind is WorkloadKind.PUT_ALL:
        return Operation.CREATE
    if kind is WorkloadKind.MIXED:
        return _MIXED_OPERATIONS[int(rng.integers(0, len(_MIXED_OPERATIONS)))]
    return Operation.READ


def plan_request(
    kind: WorkloadKind,
    rng: np.random.Generator,
    generator: KeyValueGenerator,
) -> PlannedRequest:
    """Draw the key, value and operation for one iteration.

    A fresh key from the full key space and a fresh value are drawn every
    iteration. POPULAR_GET reads a key from the hot set instead; DELETE
    targets the freshly drawn key.

    Args:
        kind: Workload kind of the run.
        rng: Worker-owned random generator.
        generator: Key/value generator configured for the run.

    Returns:
        The PlannedRequest for this iteration.
    """
    key = generator.next_key(rng)
    value = generator.next_value(rng)
    operation = choose_operation(kind, rng)
    if kind is WorkloadKind.POPULAR_GET:
        key = generator.next_hot_key(rng)
    return PlannedRequest(operation=operation, key=key, value=value)
