"""HDR histogram wrapper for per-worker latency percentiles.

Each worker records into its own histogram; the aggregator merges them
into a fresh histogram after the run. Values are recorded as integer
microseconds, the public API speaks nanoseconds in and milliseconds out.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from hdrh.histogram import HdrHistogram  # type: ignore[import-untyped]

if TYPE_CHECKING:
    from collections.abc import Iterable

# Range: 1 microsecond to 60 seconds (in microseconds)
_LOWEST_TRACKABLE_US = 1
_HIGHEST_TRACKABLE_US = 60_000_000
_SIGNIFICANT_DIGITS = 3


class LatencyHistogram:
    """Latency histogram backed by ``hdrh``.

    Attributes:
        lowest_us: Lowest trackable value in microseconds.
        highest_us: Highest trackable value in microseconds.
    """

    def __init__(
        self,
        lowest_us: int = _LOWEST_TRACKABLE_US,
        highest_us: int = _HIGHEST_TRACKABLE_US,
        significant_digits: int = _SIGNIFICANT_DIGITS,
    ) -> None:
        """Initialize the histogram.

        Args:
            lowest_us: Lowest trackable value in microseconds.
            highest_us: Highest trackable value in microseconds.
            significant_digits: Number of significant value digits to maintain.
        """
        self.lowest_us = lowest_us
        self.highest_us = highest_us
        self._histogram: HdrHistogram = HdrHistogram(  # type: ignore[no-any-unimported]
            lowest_us, highest_us, significant_digits
        )

    def record_latency_ns(self, latency_ns: int) -> None:
        """Record one latency, clamped to the trackable range."""
        value_us = max(self.lowest_us, min(latency_ns // 1000, self.highest_us))
        self._histogram.record_value(value_us)

    @property
    def total_count(self) -> int:
        """Return the number of recorded values."""
        return int(self._histogram.total_count)

    def get_percentile_ms(self, percentile: float) -> float:
        """Return the latency at *percentile* (0-100) in ms, 0.0 if empty."""
        if self._histogram.total_count == 0:
            return 0.0
        return float(self._histogram.get_value_at_percentile(percentile)) / 1000.0

    def get_max_ms(self) -> float:
        """Return the maximum recorded latency in ms, 0.0 if empty."""
        if self._histogram.total_count == 0:
            return 0.0
        return float(self._histogram.get_max_value()) / 1000.0

    @classmethod
    def merge(cls, histograms: Iterable[LatencyHistogram]) -> LatencyHistogram:
        """Return a new histogram holding the values of all *histograms*.

        The inputs are not modified.
        """
        merged = cls()
        for hist in histograms:
            merged._histogram.add(hist._histogram)
        return merged
