"""Color models for LED control."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Color(BaseModel):
    """Standard 8-bit RGB color model.

    Uses standard 8-bit RGB (0-255) as the application's color representation.
    Conversion to the OpenRGB client's RGBColor happens in the lighting adapter.

    The model is frozen so colors can be shared between LEDs and hashed.
    """

    model_config = ConfigDict(frozen=True)

    r: int = Field(ge=0, le=255, description="Red (0-255)")
    g: int = Field(ge=0, le=255, description="Green (0-255)")
    b: int = Field(ge=0, le=255, description="Blue (0-255)")

    @field_validator("r", "g", "b")
    @classmethod
    def validate_rgb(cls, v: int) -> int:
        """Ensure RGB values are in valid range."""
        if not 0 <= v <= 255:
            raise ValueError("RGB values must be between 0 and 255")
        return v

    @classmethod
    def white(cls) -> "Color":
        """Create white color."""
        return cls(r=255, g=255, b=255)

    @classmethod
    def red(cls) -> "Color":
        """Create red color."""
        return cls(r=255, g=0, b=0)

    def to_rgb_tuple(self) -> tuple[int, int, int]:
        """Convert to RGB tuple."""
        return (self.r, self.g, self.b)


class ColorEndpoints(BaseModel):
    """The two colors every load value is interpolated between.

    ``start`` is shown at zero load and ``end`` at full load.
    """

    model_config = ConfigDict(frozen=True)

    start: Color = Field(default_factory=Color.white, description="Color at 0% load")
    end: Color = Field(default_factory=Color.red, description="Color at 100% load")

    def swapped(self) -> "ColorEndpoints":
        """Return the endpoints with start and end exchanged."""
        return ColorEndpoints(start=self.end, end=self.start)
