"""Random key and value generation for workload requests.

Every worker owns its own ``numpy.random.Generator``. Generators are
spawned from a single ``SeedSequence`` so their streams are statistically
independent, and no worker ever touches another worker's RNG.
"""

from __future__ import annotations

import string

import numpy as np

from kvload._internal.types import Key, Value

_ALPHABET = np.array(list(string.ascii_lowercase + string.ascii_uppercase + string.digits))


def make_key(index: int) -> Key:
    """Return the key name for a 1-based key index."""
    return f"k{index}"


class KeyValueGenerator:
    """Draws workload keys and values from a caller-supplied RNG.

    Keys are ``k1`` .. ``k<key_space>``. The popular ("hot") set is the
    first ``hot_key_count`` keys of that space.

    Attributes:
        key_space: Number of distinct keys.
        hot_key_count: Number of popular keys.
        value_length: Default value length.
    """

    def __init__(self, key_space: int, hot_key_count: int, value_length: int) -> None:
        self.key_space = key_space
        self.hot_key_count = hot_key_count
        self.value_length = value_length

    @property
    def hot_keys(self) -> tuple[Key, ...]:
        """Return the popular-key set."""
        return tuple(make_key(i) for i in range(1, self.hot_key_count + 1))

    def next_key(self, rng: np.random.Generator) -> Key:
        """Draw a key uniformly from the full key space."""
        return make_key(int(rng.integers(1, self.key_space, endpoint=True)))

    def next_hot_key(self, rng: np.random.Generator) -> Key:
        """Draw a key uniformly from the popular-key set."""
        return make_key(int(rng.integers(1, self.hot_key_count, endpoint=True)))

    def next_value(self, rng: np.random.Generator, length: int | None = None) -> Value:
        """Draw an alphanumeric value.

        Args:
            rng: Worker-owned random generator.
            length: Value length. Defaults to ``value_length``.

        Returns:
            A string of *length* characters from ``[a-zA-Z0-9]``.
        """
        size = self.value_length if length is None else length
        return "".join(rng.choice(_ALPHABET, size=size))


def spawn_worker_rngs(
    count: int,
    seed: int | None = None,
) -> tuple[list[np.random.Generator], int]:
    """Create one independent random generator per worker.

    Args:
        count: Number of workers.
        seed: Base seed. ``None`` draws fresh entropy from the OS.

    Returns:
        Tuple of (generators, entropy). Passing *entropy* back as *seed*
        reproduces the same per-worker streams.
    """
    root = np.random.SeedSequence(seed)
    generators = [np.random.default_rng(child) for child in root.spawn(count)]
    return generators, int(root.entropy)
