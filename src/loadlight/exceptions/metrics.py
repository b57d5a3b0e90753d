"""Metrics-provider exceptions."""

from typing import Optional

from .base import LoadLightError


class MetricsProviderError(LoadLightError):
    """A hardware-metrics read or provider initialization failed."""

    def __init__(self, metric: str, original_error: Optional[str] = None):
        """
        Initialize metrics provider error.

        Args:
            metric: Which metric failed ("cpu" or "gpu")
            original_error: The original error message from psutil/NVML
        """
        user_msg = f"Failed to read {metric.upper()} utilization."
        tech_msg = user_msg
        if original_error:
            tech_msg += f" Original error: {original_error}"

        recovery = None
        if metric == "gpu":
            recovery = (
                "Check that an NVIDIA driver is installed and 'nvidia-smi' works. "
                "Set 'gpu_index' in your configuration to pick another GPU "
                "('loadlight config path' shows where it lives)."
            )

        super().__init__(
            user_message=user_msg,
            technical_message=tech_msg,
            recoverable=True,
            recovery_hint=recovery,
        )
        self.metric = metric
