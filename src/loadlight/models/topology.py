"""Snapshot of a lighting controller's zones as reported by OpenRGB."""

from pydantic import BaseModel, ConfigDict, Field


class Zone(BaseModel):
    """A named, independently addressable run of LEDs on a controller."""

    model_config = ConfigDict(frozen=True)

    name: str
    led_count: int = Field(ge=0)


class ControllerTopology(BaseModel):
    """Read-only view of one controller, re-read every cycle.

    LED indices of the controller run through the zones in order, so the
    first LED of ``zones[1]`` follows the last LED of ``zones[0]``.
    """

    model_config = ConfigDict(frozen=True)

    controller_id: int = Field(ge=0)
    name: str
    zones: tuple[Zone, ...] = ()

    @property
    def led_count(self) -> int:
        """Total LEDs across all zones."""
        return sum(zone.led_count for zone in self.zones)

    @property
    def zone_names(self) -> list[str]:
        return [zone.name for zone in self.zones]
