"""Hardware utilization providers (psutil for CPU, NVML for GPU)."""

from .protocols import CpuProvider, GpuProvider
from .providers import MetricsSource, NvmlGpuProvider, PsutilCpuProvider, busy_fraction

__all__ = [
    "CpuProvider",
    "GpuProvider",
    "MetricsSource",
    "NvmlGpuProvider",
    "PsutilCpuProvider",
    "busy_fraction",
]
