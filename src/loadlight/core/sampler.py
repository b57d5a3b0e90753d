"""Moving-average smoothing of CPU/GPU utilization samples."""

from collections import deque
from enum import Enum


class Metric(str, Enum):
    """Utilization metrics that drive the lights."""

    CPU = "cpu"
    GPU = "gpu"


def next_power_of_two(value: int) -> int:
    """Smallest power of two greater than or equal to ``value`` (1 for 0)."""
    if value <= 1:
        return 1
    return 1 << (value - 1).bit_length()


def buffer_capacity(window_seconds: float, interval_ms: int) -> int:
    """
    Number of samples kept per metric.

    ``window_seconds * (1 + 1 / interval_ms)`` truncated, rounded up to a
    power of two. This keeps a few more samples than the window strictly
    holds, which only lengthens the smoothing a little.
    """
    return next_power_of_two(int(window_seconds * (1 + 1 / interval_ms)))


class SmoothedSampler:
    """
    Fixed-capacity circular history of utilization samples per metric.

    One instance lives for one connected session; the control loop builds a
    fresh one after every reconnect so no stale history leaks across outages.
    Not thread-safe: only the control loop thread touches it.
    """

    def __init__(self, capacity: int):
        """
        Initialize the sampler.

        Args:
            capacity: Maximum samples kept per metric (>= 1)
        """
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")

        self._capacity = capacity
        self._samples: dict[Metric, deque[float]] = {
            metric: deque(maxlen=capacity) for metric in Metric
        }

    @property
    def capacity(self) -> int:
        return self._capacity

    def push(self, metric: Metric, sample: float) -> None:
        """Append a raw reading, evicting the oldest once at capacity."""
        self._samples[metric].append(sample)

    def read(self, metric: Metric) -> float:
        """Arithmetic mean of the held samples, or 0.0 before the first push."""
        samples = self._samples[metric]
        if not samples:
            return 0.0
        return sum(samples) / len(samples)

    def count(self, metric: Metric) -> int:
        """Number of samples currently held for ``metric``."""
        return len(self._samples[metric])
