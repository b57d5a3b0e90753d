"""Data models for loadlight."""

from .color import Color, ColorEndpoints
from .config import DEFAULT_CONFIG_PATH, LoadLightConfig
from .topology import ControllerTopology, Zone

__all__ = [
    "Color",
    "ColorEndpoints",
    "ControllerTopology",
    "DEFAULT_CONFIG_PATH",
    "LoadLightConfig",
    "Zone",
]
