"""CLI commands for loadlight."""

from .config import config
from .devices import devices
from .service import service

__all__ = ["config", "devices", "service"]
