"""Shared type aliases for kvload."""

from __future__ import annotations

# Key sent to the target service (e.g. "k42").
Key = str

# Random value stored under a key.
Value = str

# Attempt counts keyed by operation name ("create", "read", "delete").
OperationCounts = dict[str, int]
