"""Tests for load-to-color interpolation."""

import pytest

from loadlight.colors import block_colors, clamp_unit, gradient_colors, lerp_color
from loadlight.models import Color

WHITE = Color.white()
RED = Color.red()
TEAL = Color(r=0, g=128, b=128)
ORANGE = Color(r=255, g=165, b=7)


def _closeness(color: Color, start: Color, end: Color) -> float:
    """How far along start -> end a color is, on the widest-moving channel."""
    channels = [(color.r, start.r, end.r), (color.g, start.g, end.g), (color.b, start.b, end.b)]
    value, s, e = max(channels, key=lambda c: abs(c[2] - c[1]))
    if e == s:
        return 0.0
    return (value - s) / (e - s)


@pytest.mark.unit
class TestLerpColor:
    """Test per-channel interpolation."""

    def test_endpoints_are_exact(self):
        """t=0 gives start and t=1 gives end."""
        for start, end in [(WHITE, RED), (TEAL, ORANGE), (ORANGE, TEAL), (RED, RED)]:
            assert lerp_color(0.0, start, end) == start
            assert lerp_color(1.0, start, end) == end

    def test_midpoint_truncates(self):
        """Channels are truncated, not rounded."""
        color = lerp_color(0.5, Color(r=0, g=0, b=0), Color(r=255, g=3, b=1))
        assert color == Color(r=127, g=1, b=0)

    def test_channels_stay_between_endpoints(self):
        """No channel ever leaves the [start, end] range."""
        for step in range(101):
            t = step / 100
            for start, end in [(WHITE, RED), (TEAL, ORANGE), (ORANGE, TEAL)]:
                color = lerp_color(t, start, end)
                for value, s, e in zip(color.to_rgb_tuple(), start.to_rgb_tuple(), end.to_rgb_tuple()):
                    assert min(s, e) <= value <= max(s, e)

    def test_white_to_red(self):
        """Default endpoints only fade green and blue."""
        color = lerp_color(0.25, WHITE, RED)
        assert color.r == 255
        assert color.g == color.b == int(255 - 0.25 * 255)


@pytest.mark.unit
class TestBlockColors:
    """Test the uniform block policy."""

    @pytest.mark.parametrize("n", [0, 1, 7])
    def test_length_and_uniformity(self, n):
        """n copies of the interpolated color."""
        colors = block_colors(0.3, WHITE, RED, n)
        assert len(colors) == n
        assert all(color == lerp_color(0.3, WHITE, RED) for color in colors)

    def test_clamps_out_of_range_load(self):
        """Loads slightly outside [0, 1] are clamped, not extrapolated."""
        assert block_colors(1.2, WHITE, RED, 2) == [RED, RED]
        assert block_colors(-0.1, WHITE, RED, 2) == [WHITE, WHITE]


@pytest.mark.unit
class TestGradientColors:
    """Test the fill-bar gradient policy."""

    def test_empty(self):
        """A zone with no LEDs yields nothing."""
        assert gradient_colors(0.5, WHITE, RED, 0) == []

    @pytest.mark.parametrize("n", [1, 4, 12])
    def test_zero_and_full(self, n):
        """No load is all start, full load is all end."""
        assert gradient_colors(0.0, WHITE, RED, n) == [WHITE] * n
        assert gradient_colors(1.0, WHITE, RED, n) == [RED] * n

    def test_fill_with_boundary_blend(self):
        """Fills from index 0 with a one-LED transition band."""
        colors = gradient_colors(0.6, WHITE, RED, 4)
        assert colors[0] == RED
        assert colors[1] == RED
        assert colors[2] == lerp_color(0.6 * 4 - 2, WHITE, RED)
        assert colors[3] == WHITE

    def test_exact_half(self):
        """Half load on four LEDs lights exactly two."""
        assert gradient_colors(0.5, WHITE, RED, 4) == [RED, RED, WHITE, WHITE]

    @pytest.mark.parametrize("t", [0.0, 0.1, 0.37, 0.5, 0.81, 1.0])
    def test_closeness_to_end_never_increases_along_the_strip(self, t):
        """The filled part always leads: later LEDs are never closer to end."""
        colors = gradient_colors(t, TEAL, ORANGE, 9)
        closeness = [_closeness(color, TEAL, ORANGE) for color in colors]
        assert closeness == sorted(closeness, reverse=True)


@pytest.mark.unit
def test_clamp_unit():
    assert clamp_unit(-3.0) == 0.0
    assert clamp_unit(0.42) == 0.42
    assert clamp_unit(7.0) == 1.0
