"""Application configuration model."""

from pathlib import Path

from pydantic import BaseModel, Field, field_serializer

from loadlight.utils.persistence import PydanticPersistence

from .color import Color, ColorEndpoints

DEFAULT_CONFIG_DIR = Path.home() / ".loadlight"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.json"


class LoadLightConfig(BaseModel):
    """Application configuration and settings.

    Read once at startup; the running loop never reloads it.
    """

    # OpenRGB SDK server
    openrgb_host: str = Field(default="127.0.0.1", description="OpenRGB SDK server host")
    openrgb_port: int = Field(default=6742, ge=1, le=65535, description="OpenRGB SDK server port")
    client_name: str = Field(
        default="loadlight", min_length=1, description="Client name shown in OpenRGB"
    )

    # Sampling
    sample_window_seconds: float = Field(
        default=5.0, gt=0, description="Length of the smoothing window (seconds)"
    )
    sample_interval_ms: int = Field(
        default=500, gt=0, description="CPU sampling interval per cycle (milliseconds)"
    )
    gpu_index: int = Field(default=0, ge=0, description="NVML index of the GPU to monitor")

    # Colors
    start_color: Color = Field(
        default_factory=Color.white, description="Color shown at 0% load"
    )
    end_color: Color = Field(default_factory=Color.red, description="Color shown at 100% load")

    # Connection and lifecycle
    retry_interval: float = Field(
        default=1.0, gt=0, description="Delay between OpenRGB connection attempts (seconds)"
    )
    connect_timeout: float | None = Field(
        default=None,
        gt=0,
        description=(
            "Give up on a single OpenRGB connection attempt after this many seconds "
            "(None = wait until the attempt fails or a stop is requested)"
        ),
    )
    shutdown_grace_period: float = Field(
        default=1.0, ge=0, description="Time allowed for the loop to stop when asked (seconds)"
    )

    # Rules
    rules_file: Path | None = Field(
        default=None,
        description="Custom lighting rules JSON (None = built-in rules)",
    )

    @field_serializer("rules_file")
    def serialize_path(self, path: Path | None) -> str | None:
        """Serialize Path to string."""
        return str(path) if path is not None else None

    @property
    def endpoints(self) -> ColorEndpoints:
        """Start/end colors used for every interpolation."""
        return ColorEndpoints(start=self.start_color, end=self.end_color)

    @property
    def openrgb_address(self) -> str:
        return f"{self.openrgb_host}:{self.openrgb_port}"

    @classmethod
    def load_or_default(cls, path: Path | None = None) -> "LoadLightConfig":
        """
        Load config from file or return default.

        Args:
            path: Path to config file. If None, uses default location
                  (~/.loadlight/config.json).

        Raises:
            ConfigFileInvalidError: If config file has invalid JSON syntax
            ConfigValidationError: If config values fail validation
        """
        if path is None:
            path = DEFAULT_CONFIG_PATH

        return PydanticPersistence.load_json_or_default(path, cls)

    def save(self, path: Path | None = None) -> None:
        """Save config to file."""
        if path is None:
            path = DEFAULT_CONFIG_PATH

        PydanticPersistence.save_json(self, path)
