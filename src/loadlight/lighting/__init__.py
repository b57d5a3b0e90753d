"""Lighting-controller connection (OpenRGB SDK)."""

from .openrgb import OpenRGBConnection, OpenRGBConnector, to_rgb_color
from .protocols import LightingConnection, LightingConnector

__all__ = [
    "LightingConnection",
    "LightingConnector",
    "OpenRGBConnection",
    "OpenRGBConnector",
    "to_rgb_color",
]
