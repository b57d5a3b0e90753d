"""Lighting-controller exceptions.

This module defines exceptions raised while talking to the OpenRGB server
or mapping its controllers onto lighting rules:
- LightingError: Base class for lighting errors
- ControllerConnectionError: Server unreachable, handshake failed or link dropped
- TopologyMismatchError: A zone has no rule on a controller that defines zone rules
- LedCountMismatchError: A controller rejected a write for the wrong number of colors
"""

from typing import Optional

from .base import LoadLightError


class LightingError(LoadLightError):
    """Lighting controller operation failed."""
    pass


class ControllerConnectionError(LightingError):
    """The OpenRGB SDK server is unreachable or the connection dropped."""

    def __init__(
        self,
        address: str,
        original_error: Optional[str] = None,
        operation: str = "connect",
    ):
        """
        Initialize controller connection error.

        Args:
            address: host:port of the OpenRGB SDK server
            original_error: The original error message from the client library
            operation: What was being attempted ("connect", "write LEDs", ...)
        """
        user_msg = f"Lost connection to OpenRGB at {address}."
        if operation == "connect":
            user_msg = f"Could not connect to OpenRGB at {address}."

        tech_msg = f"OpenRGB {operation} failed for {address}"
        if original_error:
            tech_msg += f": {original_error}"

        super().__init__(
            user_message=user_msg,
            technical_message=tech_msg,
            recoverable=True,
            recovery_hint=(
                "Make sure OpenRGB is running with the SDK server enabled "
                "(Settings > SDK Server > Start Server)."
            ),
        )
        self.address = address
        self.operation = operation


class TopologyMismatchError(LightingError):
    """A controller zone matches none of the zone rules defined for that controller."""

    def __init__(self, controller_name: str, zone_name: str, known_zones: list[str]):
        """
        Initialize topology mismatch error.

        Args:
            controller_name: Name reported by the controller
            zone_name: The zone that has no rule
            known_zones: Zone names the rule table does cover for this controller
        """
        user_msg = f"No lighting rule for zone '{zone_name}' on '{controller_name}'."
        recovery = (
            f"Add a rule for '{zone_name}' to your rules file. "
            f"Zones with rules: {', '.join(known_zones) or 'none'}. "
            "Run 'loadlight devices' to see the zones OpenRGB reports."
        )

        super().__init__(
            user_message=user_msg,
            technical_message=f"Zone '{zone_name}' of '{controller_name}' not in {known_zones}",
            recoverable=True,
            recovery_hint=recovery,
        )
        self.controller_name = controller_name
        self.zone_name = zone_name
        self.known_zones = known_zones


class LedCountMismatchError(LightingError):
    """A controller refused the colors written to it.

    OpenRGB reports this when the number of colors doesn't match the LEDs it
    knows for the device, usually because the device was resized between
    reading its topology and writing to it. The link itself is fine.
    """

    def __init__(self, controller_name: str, color_count: int, original_error: Optional[str] = None):
        """
        Initialize LED count mismatch error.

        Args:
            controller_name: Name reported by the controller
            color_count: Number of colors that were sent
            original_error: The original error message from the client library
        """
        tech_msg = f"'{controller_name}' rejected {color_count} colors"
        if original_error:
            tech_msg += f": {original_error}"

        super().__init__(
            user_message=f"'{controller_name}' has a different number of LEDs than expected.",
            technical_message=tech_msg,
            recoverable=True,
            recovery_hint="Check the LED counts of its zones in OpenRGB (Resize Zone).",
        )
        self.controller_name = controller_name
        self.color_count = color_count
