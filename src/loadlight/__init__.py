"""loadlight: RGB lighting driven by CPU and GPU load through OpenRGB."""

__version__ = "0.1.0"

from .core import ControlLoop, LifecycleCoordinator, ShutdownToken
from .models import LoadLightConfig

__all__ = [
    "ControlLoop",
    "LifecycleCoordinator",
    "LoadLightConfig",
    "ShutdownToken",
]
