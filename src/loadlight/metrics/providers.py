"""psutil and NVML utilization providers."""

import logging
from typing import Any, Callable, Optional

import psutil
import pynvml

from loadlight.colors import clamp_unit
from loadlight.exceptions import ErrorContext, MetricsProviderError

from .protocols import CpuProvider, GpuProvider

logger = logging.getLogger(__name__)


def _busy_and_total(times: Any) -> tuple[float, float]:
    """Split a psutil cpu_times() snapshot into (busy, total) seconds."""
    total = sum(times)
    # Guest time is already counted in user/nice on Linux
    total -= getattr(times, "guest", 0.0) + getattr(times, "guest_nice", 0.0)
    idle = times.idle + getattr(times, "iowait", 0.0)
    return total - idle, total


def busy_fraction(start: Any, end: Any) -> float:
    """Busy fraction between two cpu_times() snapshots, clamped to [0, 1]."""
    start_busy, start_total = _busy_and_total(start)
    end_busy, end_total = _busy_and_total(end)

    total_delta = end_total - start_total
    if total_delta <= 0:
        return 0.0
    return clamp_unit((end_busy - start_busy) / total_delta)


class PsutilCpuProvider:
    """CPU utilization from the delta of system CPU times across a wait."""

    def open(self) -> None:
        pass

    def close(self) -> None:
        pass

    def sample_cpu_busy_fraction(self, window: float, wait: Callable[[float], None]) -> float:
        try:
            start = psutil.cpu_times()
        except (psutil.Error, OSError) as e:
            raise MetricsProviderError("cpu", str(e)) from e

        wait(window)

        try:
            end = psutil.cpu_times()
        except (psutil.Error, OSError) as e:
            raise MetricsProviderError("cpu", str(e)) from e

        return busy_fraction(start, end)


class NvmlGpuProvider:
    """GPU utilization from NVIDIA's management library.

    The device handle is acquired once in ``open()`` and reused every cycle.
    """

    def __init__(self, gpu_index: int = 0):
        """
        Args:
            gpu_index: NVML index of the GPU to monitor
        """
        self._gpu_index = gpu_index
        self._handle: Optional[Any] = None

    def open(self) -> None:
        """
        Initialize NVML and look up the GPU.

        Raises:
            MetricsProviderError: If NVML is unavailable or the GPU doesn't exist
        """
        try:
            pynvml.nvmlInit()
        except pynvml.NVMLError as e:
            raise MetricsProviderError("gpu", f"GPU {self._gpu_index}: {e}") from e

        try:
            handle = pynvml.nvmlDeviceGetHandleByIndex(self._gpu_index)
            name = pynvml.nvmlDeviceGetName(handle)
        except pynvml.NVMLError as e:
            try:
                pynvml.nvmlShutdown()
            except pynvml.NVMLError as shutdown_error:
                logger.debug(f"NVML shutdown failed: {shutdown_error}")
            raise MetricsProviderError("gpu", f"GPU {self._gpu_index}: {e}") from e

        self._handle = handle

        if isinstance(name, bytes):
            name = name.decode("utf-8", "ignore")
        logger.info(f"Monitoring GPU {self._gpu_index}: {name}")

    def close(self) -> None:
        if self._handle is None:
            return
        self._handle = None
        try:
            pynvml.nvmlShutdown()
        except pynvml.NVMLError as e:
            logger.debug(f"NVML shutdown failed: {e}")

    def sample_gpu_busy_fraction(self) -> float:
        if self._handle is None:
            raise MetricsProviderError("gpu", "NVML not initialized")

        try:
            utilization = pynvml.nvmlDeviceGetUtilizationRates(self._handle)
        except pynvml.NVMLError as e:
            raise MetricsProviderError("gpu", str(e)) from e

        return clamp_unit(utilization.gpu / 100.0)


class MetricsSource:
    """The CPU and GPU providers used by one control-loop session."""

    def __init__(self, cpu: CpuProvider, gpu: GpuProvider):
        self.cpu = cpu
        self.gpu = gpu

    @classmethod
    def system(cls, gpu_index: int = 0) -> "MetricsSource":
        """psutil for the CPU, NVML for the GPU."""
        return cls(PsutilCpuProvider(), NvmlGpuProvider(gpu_index))

    def open(self) -> None:
        """
        Open both providers.

        Raises:
            MetricsProviderError: If either provider cannot start
        """
        with ErrorContext("open metrics providers", logger_instance=logger):
            self.cpu.open()
            try:
                self.gpu.open()
            except MetricsProviderError:
                self.cpu.close()
                raise

    def close(self) -> None:
        self.gpu.close()
        self.cpu.close()
