"""Run configuration for kvload."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass

from kvload._internal.errors import ConfigError
from kvload.workload.policy import WorkloadKind, parse_workload

DEFAULT_PORT = 8080
DEFAULT_KEY_SPACE = 500_000
DEFAULT_HOT_KEY_COUNT = 5
DEFAULT_VALUE_LENGTH = 12
DEFAULT_REQUEST_TIMEOUT = 30.0


@dataclass(frozen=True)
class WorkloadSettings:
    """Workload tunables that usually come from the environment.

    Attributes:
        key_space: Number of distinct keys, ``k1`` .. ``k<key_space>``.
        hot_key_count: Size of the popular-key set, ``k1`` .. ``k<n>``.
        value_length: Length of every generated value.
        request_timeout: Per-request timeout in seconds.
    """

    key_space: int = DEFAULT_KEY_SPACE
    hot_key_count: int = DEFAULT_HOT_KEY_COUNT
    value_length: int = DEFAULT_VALUE_LENGTH
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT


@dataclass(frozen=True)
class RunConfig:
    """Immutable description of one load run, shared read-only by all workers.

    Attributes:
        workers: Number of worker threads.
        duration_seconds: How long each worker keeps issuing requests.
        workload: Operation mix every worker applies.
        host: Target service host.
        port: Target service port.
        key_space: Number of distinct keys in the full key space.
        hot_key_count: Size of the popular-key set.
        value_length: Length of generated values.
        request_timeout: Per-request timeout in seconds, ``None`` for none.
        seed: Base seed for the per-worker RNG streams, ``None`` for fresh
            OS entropy.
    """

    workers: int
    duration_seconds: float
    workload: WorkloadKind
    host: str
    port: int = DEFAULT_PORT
    key_space: int = DEFAULT_KEY_SPACE
    hot_key_count: int = DEFAULT_HOT_KEY_COUNT
    value_length: int = DEFAULT_VALUE_LENGTH
    request_timeout: float | None = DEFAULT_REQUEST_TIMEOUT
    seed: int | None = None

    @property
    def base_url(self) -> str:
        """Return the target service base URL."""
        return f"http://{self.host}:{self.port}"


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable.

    Args:
        name: Environment variable name.
        default: Value used when the variable is unset.

    Returns:
        The parsed integer.

    Raises:
        ConfigError: If the variable is set but not an integer.
    """
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        msg = f"{name} must be an integer, got: {raw!r}"
        raise ConfigError(msg) from None


def _env_float(name: str, default: float) -> float:
    """Read a float environment variable.

    Args:
        name: Environment variable name.
        default: Value used when the variable is unset.

    Returns:
        The parsed float.

    Raises:
        ConfigError: If the variable is set but not a number.
    """
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        msg = f"{name} must be a number, got: {raw!r}"
        raise ConfigError(msg) from None


def load_settings() -> WorkloadSettings:
    """Load workload tunables from environment variables with defaults.

    Environment variables:
        KVLOAD_KEY_SPACE: Key space size (default: 500000).
        KVLOAD_HOT_KEYS: Popular-key set size (default: 5).
        KVLOAD_VALUE_LENGTH: Generated value length (default: 12).
        KVLOAD_TIMEOUT: Per-request timeout in seconds (default: 30.0).

    Returns:
        Populated WorkloadSettings instance.

    Raises:
        ConfigError: If an environment variable has an invalid value.
    """
    settings = WorkloadSettings(
        key_space=_env_int("KVLOAD_KEY_SPACE", DEFAULT_KEY_SPACE),
        hot_key_count=_env_int("KVLOAD_HOT_KEYS", DEFAULT_HOT_KEY_COUNT),
        value_length=_env_int("KVLOAD_VALUE_LENGTH", DEFAULT_VALUE_LENGTH),
        request_timeout=_env_float("KVLOAD_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
    )
    _validate_workload_settings(
        settings.key_space,
        settings.hot_key_count,
        settings.value_length,
        settings.request_timeout,
    )
    return settings


def build_run_config(
    workers: int,
    duration_seconds: float,
    workload: str | WorkloadKind,
    host: str,
    port: int = DEFAULT_PORT,
    *,
    key_space: int | None = None,
    hot_key_count: int | None = None,
    value_length: int | None = None,
    request_timeout: float | None = None,
    seed: int | None = None,
    settings: WorkloadSettings | None = None,
) -> RunConfig:
    """Validate raw run parameters and build a RunConfig.

    Tunables left as ``None`` fall back to *settings*, which in turn
    defaults to :func:`load_settings`.

    Args:
        workers: Number of worker threads. Must be >= 1.
        duration_seconds: Run duration. Must be positive.
        workload: Workload name (``putall``, ``getall``, ``popular``,
            ``getpopular``, ``mixed``) or a WorkloadKind.
        host: Target service host.
        port: Target service port.
        key_space: Override for the key space size.
        hot_key_count: Override for the popular-key set size.
        value_length: Override for the generated value length.
        request_timeout: Override for the per-request timeout.
        seed: Base RNG seed. Must be >= 0.
        settings: Pre-loaded tunables.

    Returns:
        A validated, immutable RunConfig.

    Raises:
        ConfigError: If any parameter is invalid.
    """
    kind = workload if isinstance(workload, WorkloadKind) else parse_workload(workload)

    if workers < 1:
        msg = f"workers must be >= 1, got {workers}"
        raise ConfigError(msg)
    _validate_positive(duration_seconds, "duration_seconds")
    _validate_host(host)
    if not 1 <= port <= 65535:
        msg = f"port must be between 1 and 65535, got {port}"
        raise ConfigError(msg)
    if seed is not None and seed < 0:
        msg = f"seed must be >= 0, got {seed}"
        raise ConfigError(msg)

    base = settings if settings is not None else load_settings()
    resolved_key_space = key_space if key_space is not None else base.key_space
    resolved_hot_keys = hot_key_count if hot_key_count is not None else base.hot_key_count
    resolved_value_length = value_length if value_length is not None else base.value_length
    resolved_timeout = request_timeout if request_timeout is not None else base.request_timeout
    _validate_workload_settings(
        resolved_key_space, resolved_hot_keys, resolved_value_length, resolved_timeout
    )

    return RunConfig(
        workers=workers,
        duration_seconds=float(duration_seconds),
        workload=kind,
        host=host,
        port=port,
        key_space=resolved_key_space,
        hot_key_count=resolved_hot_keys,
        value_length=resolved_value_length,
        request_timeout=resolved_timeout,
        seed=seed,
    )


def _validate_workload_settings(
    key_space: int,
    hot_key_count: int,
    value_length: int,
    request_timeout: float,
) -> None:
    if key_space < 1:
        msg = f"key_space must be >= 1, got {key_space}"
        raise ConfigError(msg)
    if not 1 <= hot_key_count <= key_space:
        msg = f"hot_key_count must be between 1 and key_space ({key_space}), got {hot_key_count}"
        raise ConfigError(msg)
    if value_length < 1:
        msg = f"value_length must be >= 1, got {value_length}"
        raise ConfigError(msg)
    _validate_positive(request_timeout, "request_timeout")


def _validate_positive(value: float, name: str) -> None:
    """Raise :class:`ConfigError` if *value* is not a finite number above zero."""
    if not math.isfinite(value) or value <= 0:
        msg = f"{name} must be positive and finite, got {value}"
        raise ConfigError(msg)


def _validate_host(host: str) -> None:
    """Raise :class:`ConfigError` if *host* cannot be resolved as a hostname.

    The host must survive the IDNA encoding applied at name resolution,
    which rejects empty or oversized labels such as ``a..b``.
    """
    if not host:
        msg = "host must not be empty"
        raise ConfigError(msg)
    try:
        host.encode("idna")
    except UnicodeError:
        msg = f"host is not a valid hostname: {host!r}"
        raise ConfigError(msg) from None
