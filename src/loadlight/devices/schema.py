"""Pydantic models for the lighting rules schema.

This module defines the structure of rules.json using Pydantic v2 for type
safety and validation. A rule table maps controller names (exactly as
OpenRGB reports them) to the spans of LEDs that show CPU or GPU load.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Policy(str, Enum):
    """How a span spreads one load value over its LEDs."""

    BLOCK = "block"
    GRADIENT = "gradient"


class LoadSource(str, Enum):
    """Which smoothed signal drives a span."""

    CPU = "cpu"
    GPU = "gpu"


class LedSpan(BaseModel):
    """A run of consecutive LEDs driven by one policy and one load signal."""

    model_config = ConfigDict(frozen=True)

    policy: Policy = Field(default=Policy.BLOCK, description="block or gradient")
    source: LoadSource = Field(default=LoadSource.CPU, description="cpu or gpu")
    invert: bool = Field(default=False, description="Use 1 - load instead of load")
    swap_colors: bool = Field(
        default=False, description="Interpolate from end color to start color"
    )
    leds: int | None = Field(
        default=None, ge=0, description="LEDs covered by this span (null = all remaining)"
    )


def _validate_span_list(spans: list[LedSpan]) -> list[LedSpan]:
    if spans and spans[-1].leds is not None:
        raise ValueError("the last span must cover the remaining LEDs (leds: null)")
    return spans


class ZoneRule(BaseModel):
    """Spans for one named zone of a controller."""

    zone: str = Field(min_length=1, description="Zone name as reported by OpenRGB")
    spans: list[LedSpan] = Field(min_length=1, description="Spans in LED order")

    @field_validator("spans")
    @classmethod
    def validate_spans(cls, v: list[LedSpan]) -> list[LedSpan]:
        return _validate_span_list(v)


class DeviceRule(BaseModel):
    """Lighting rule for one controller.

    Either ``spans`` covers the whole controller, or ``zones`` lists every
    zone the controller is expected to have.
    """

    name: str = Field(min_length=1, description="Controller name as reported by OpenRGB")
    description: str | None = Field(default=None, description="Free-form note")
    spans: list[LedSpan] = Field(
        default_factory=list, description="Whole-controller spans in LED order"
    )
    zones: list[ZoneRule] = Field(default_factory=list, description="Per-zone rules")

    @field_validator("spans")
    @classmethod
    def validate_spans(cls, v: list[LedSpan]) -> list[LedSpan]:
        return _validate_span_list(v)

    @model_validator(mode="after")
    def check_spans_or_zones(self) -> "DeviceRule":
        """Exactly one of spans/zones must be given."""
        if bool(self.spans) == bool(self.zones):
            raise ValueError(f"rule '{self.name}' needs either 'spans' or 'zones', not both")

        zone_names = [zone.zone for zone in self.zones]
        duplicates = {name for name in zone_names if zone_names.count(name) > 1}
        if duplicates:
            raise ValueError(f"rule '{self.name}' lists zones more than once: {sorted(duplicates)}")
        return self

    def find_zone(self, zone_name: str) -> ZoneRule | None:
        for zone in self.zones:
            if zone.zone == zone_name:
                return zone
        return None


class RuleTableSchema(BaseModel):
    """Root schema for rules.json."""

    rules: list[DeviceRule] = Field(default_factory=list, description="Per-controller rules")
    fallback: LedSpan = Field(
        default_factory=LedSpan,
        description="Applied to every LED of controllers without a rule",
    )

    @field_validator("fallback")
    @classmethod
    def validate_fallback(cls, v: LedSpan) -> LedSpan:
        if v.leds is not None:
            raise ValueError("the fallback span must cover all LEDs (leds: null)")
        return v

    @field_validator("rules")
    @classmethod
    def validate_unique_names(cls, v: list[DeviceRule]) -> list[DeviceRule]:
        names = [rule.name for rule in v]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ValueError(f"controllers listed more than once: {sorted(duplicates)}")
        return v
