"""OpenRGB SDK client adapter.

Wraps ``openrgb-python``'s OpenRGBClient behind the LightingConnection
protocol. Library and socket errors leave this module as
ControllerConnectionError so the control loop can treat them as
"reconnect". The one exception is a device rejecting a write for the wrong
number of colors: that is LedCountMismatchError and only skips the device.
"""

import logging
from collections.abc import Sequence

from openrgb import OpenRGBClient
from openrgb.utils import RGBColor

from loadlight.exceptions import LedCountMismatchError, wrap_controller_error
from loadlight.models import Color, ControllerTopology, LoadLightConfig, Zone

logger = logging.getLogger(__name__)


def to_rgb_color(color: Color) -> RGBColor:
    """Convert an app Color to the client's RGBColor."""
    return RGBColor(*color.to_rgb_tuple())


class OpenRGBConnection:
    """A connected OpenRGB SDK session."""

    def __init__(self, client: OpenRGBClient, address: str):
        """
        Initialize the connection wrapper.

        Args:
            client: Connected OpenRGBClient
            address: host:port, for error messages
        """
        self._client = client
        self._address = address

    def controller_count(self) -> int:
        """Re-fetch every controller from the server and count them."""
        try:
            self._client.update()
            return len(self._client.devices)
        except OSError as e:
            raise wrap_controller_error(e, self._address, "enumerate controllers") from e

    def get_topology(self, controller_id: int) -> ControllerTopology:
        """Snapshot one controller from the data fetched by controller_count()."""
        try:
            device = self._client.devices[controller_id]
        except IndexError as e:
            raise wrap_controller_error(
                e, self._address, f"read controller {controller_id}"
            ) from e

        return ControllerTopology(
            controller_id=controller_id,
            name=device.name,
            zones=tuple(Zone(name=zone.name, led_count=len(zone.leds)) for zone in device.zones),
        )

    def write_leds(self, controller_id: int, colors: Sequence[Color]) -> None:
        """
        Send one color per LED to a controller.

        Raises:
            LedCountMismatchError: If the device rejects the number of colors
            ControllerConnectionError: If the controller is gone or the link dropped
        """
        if not colors:
            return

        operation = f"write LEDs of controller {controller_id}"
        try:
            device = self._client.devices[controller_id]
        except IndexError as e:
            raise wrap_controller_error(e, self._address, operation) from e

        try:
            device.set_colors([to_rgb_color(color) for color in colors])
        except IndexError as e:
            raise LedCountMismatchError(device.name, len(colors), str(e)) from e
        except OSError as e:
            raise wrap_controller_error(e, self._address, operation) from e

    def close(self) -> None:
        """Disconnect from the server, ignoring errors on an already broken link."""
        try:
            self._client.disconnect()
        except OSError as e:
            logger.debug(f"Error while disconnecting from OpenRGB: {e}")


class OpenRGBConnector:
    """Opens OpenRGBConnection sessions to a configured SDK server."""

    def __init__(self, host: str = "127.0.0.1", port: int = 6742, client_name: str = "loadlight"):
        """
        Initialize the connector.

        Args:
            host: OpenRGB SDK server host
            port: OpenRGB SDK server port
            client_name: Name shown in OpenRGB's client list
        """
        self._host = host
        self._port = port
        self._client_name = client_name

    @classmethod
    def from_config(cls, config: LoadLightConfig) -> "OpenRGBConnector":
        return cls(
            host=config.openrgb_host,
            port=config.openrgb_port,
            client_name=config.client_name,
        )

    @property
    def address(self) -> str:
        return f"{self._host}:{self._port}"

    def connect(self) -> OpenRGBConnection:
        """
        Connect and perform the SDK handshake.

        Raises:
            ControllerConnectionError: If the server is unreachable
        """
        try:
            client = OpenRGBClient(self._host, self._port, self._client_name)
        except OSError as e:
            raise wrap_controller_error(e, self.address, "connect") from e

        logger.debug(f"OpenRGB handshake with {self.address} complete")
        return OpenRGBConnection(client, self.address)
