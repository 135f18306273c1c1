"""Bounded CPU history for the chart.

Samples are kept in a fixed-capacity ring; the oldest sample is evicted
when a push would exceed capacity.
"""

from collections import deque

from systop.models import HistorySample

DEFAULT_CAPACITY = 300


class HistoryBuffer:
    """Ring buffer of aggregate CPU samples."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._samples: deque[HistorySample] = deque(maxlen=capacity)
        self._next_tick = 0

    def __len__(self) -> int:
        """Return number of samples in buffer."""
        return len(self._samples)

    @property
    def capacity(self) -> int:
        """Return maximum number of samples the buffer can hold."""
        return self._samples.maxlen or 0

    @property
    def samples(self) -> list[HistorySample]:
        """Read-only access to samples (returns a copy), oldest first."""
        return list(self._samples)

    @property
    def latest(self) -> HistorySample | None:
        """Most recent sample, or None if nothing was pushed yet."""
        return self._samples[-1] if self._samples else None

    def push(self, value: float, tick_index: int | None = None) -> HistorySample:
        """
        Append a sample, evicting the oldest one when full.

        Args:
            value: CPU percentage; clamped into [0, 100].
            tick_index: Tick to tag the sample with. Defaults to one past the
                previous sample's tick.

        Returns:
            The stored sample.
        """
        if tick_index is None:
            tick_index = self._next_tick
        elif self._samples and tick_index <= self._samples[-1].tick_index:
            raise ValueError(
                f"tick_index {tick_index} is not after {self._samples[-1].tick_index}"
            )
        sample = HistorySample(tick_index=tick_index, value=min(max(value, 0.0), 100.0))
        self._samples.append(sample)
        self._next_tick = tick_index + 1
        return sample

    def as_series(self) -> list[tuple[float, float]]:
        """Return (x, y) chart points, x strictly increasing."""
        return [(float(s.tick_index), s.value) for s in self._samples]

    def values(self) -> list[float]:
        """Return sample values only, oldest first."""
        return [s.value for s in self._samples]

    def clear(self) -> None:
        """Empty the buffer. Tick numbering continues."""
        self._samples.clear()
