"""Control loop, smoothing buffers and service lifecycle."""

from .control_loop import BackoffStrategy, ControlLoop, FixedBackoff, LoopState
from .lifecycle import (
    EXIT_OK,
    EXIT_RESTART,
    EXIT_UNRESPONSIVE,
    LifecycleCoordinator,
)
from .sampler import Metric, SmoothedSampler, buffer_capacity, next_power_of_two
from .shutdown import ShutdownRequested, ShutdownState, ShutdownToken

__all__ = [
    "BackoffStrategy",
    "ControlLoop",
    "EXIT_OK",
    "EXIT_RESTART",
    "EXIT_UNRESPONSIVE",
    "FixedBackoff",
    "LifecycleCoordinator",
    "LoopState",
    "Metric",
    "ShutdownRequested",
    "ShutdownState",
    "ShutdownToken",
    "SmoothedSampler",
    "buffer_capacity",
    "next_power_of_two",
]
