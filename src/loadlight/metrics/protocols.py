"""Protocols for hardware utilization providers."""

from typing import Callable, Protocol


class CpuProvider(Protocol):
    """Measures CPU busy fraction over a window."""

    def open(self) -> None:
        ...

    def close(self) -> None:
        ...

    def sample_cpu_busy_fraction(self, window: float, wait: Callable[[float], None]) -> float:
        """
        Measure how busy the CPU was over ``window`` seconds.

        Args:
            window: Measurement window in seconds
            wait: Called once with ``window`` to let the time pass; may raise
                  to abort the measurement (e.g. on shutdown)

        Returns:
            Busy fraction in [0, 1]

        Raises:
            MetricsProviderError: If the counters cannot be read
        """
        ...


class GpuProvider(Protocol):
    """Reads the instantaneous GPU busy fraction."""

    def open(self) -> None:
        ...

    def close(self) -> None:
        ...

    def sample_gpu_busy_fraction(self) -> float:
        """
        Returns:
            Busy fraction in [0, 1]

        Raises:
            MetricsProviderError: If the GPU cannot be queried
        """
        ...
