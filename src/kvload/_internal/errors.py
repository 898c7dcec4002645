"""Custom exception hierarchy for kvload."""

from __future__ import annotations


class KvLoadError(Exception):
    """Base exception for all kvload errors.

    All custom exceptions raised by the harness inherit from this class,
    so the CLI can catch any kvload-specific failure with a single
    except clause.
    """


class ConfigError(KvLoadError):
    """Raised when a run configuration is invalid.

    Always raised before any worker is spawned, so a configuration
    problem never produces a partial run.

    Examples:
        - Unknown workload name.
        - Non-positive worker count or duration.
        - Environment variable with an invalid value.
    """


class EngineError(KvLoadError):
    """Raised when the load run itself cannot be carried out.

    Examples:
        - Every worker thread crashed before producing statistics.
    """
