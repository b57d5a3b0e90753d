"""Protocols for the lighting-controller connection."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from loadlight.models import Color, ControllerTopology


class LightingConnection(Protocol):
    """An open session with the lighting controller server.

    Every method may raise ControllerConnectionError once the link is gone.
    """

    def controller_count(self) -> int:
        """Refresh the controller list and return how many controllers exist."""
        ...

    def get_topology(self, controller_id: int) -> ControllerTopology:
        """Return the current name and zones of one controller."""
        ...

    def write_leds(self, controller_id: int, colors: Sequence[Color]) -> None:
        """Set every LED of a controller, in LED index order.

        Raises LedCountMismatchError if the controller rejects the number of
        colors; the connection stays usable.
        """
        ...

    def close(self) -> None:
        """Release the connection. Must not raise."""
        ...


class LightingConnector(Protocol):
    """Factory for LightingConnection sessions."""

    @property
    def address(self) -> str:
        """Human-readable server address for logs."""
        ...

    def connect(self) -> LightingConnection:
        """
        Perform the handshake with the server.

        Raises:
            ControllerConnectionError: If the server is unreachable
        """
        ...
