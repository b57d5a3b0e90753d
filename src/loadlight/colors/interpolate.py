"""Load-to-color interpolation.

Two distribution policies turn a load value ``t`` in [0, 1] into the colors
of ``n`` LEDs:

Block
    Every LED shows the same color, ``t`` of the way from ``start`` to ``end``.

Gradient
    The strip fills up like a progress bar. ``t * n`` LEDs (counted from
    index 0) show ``end``, the rest show ``start``, and the single LED
    straddling the boundary is blended::

        t = 0.5, n = 4      [end] [end] [start] [start]
        t = 0.6, n = 4      [end] [end] [40% end] [start]
"""

from loadlight.models import Color


def clamp_unit(value: float) -> float:
    """Clamp ``value`` into [0, 1]."""
    return min(max(value, 0.0), 1.0)


def lerp(t: float, start: float, end: float) -> float:
    """Linear interpolation between two channel values."""
    # Same as (1 - t) * start + t * end, but exact at t == 1 and when start == end,
    # so truncation can never step outside the [start, end] range.
    return start + t * (end - start)


def lerp_color(t: float, start: Color, end: Color) -> Color:
    """Interpolate each channel and truncate to an integer.

    ``t`` must already be in [0, 1]; this function does not clamp.
    """
    return Color(
        r=int(lerp(t, start.r, end.r)),
        g=int(lerp(t, start.g, end.g)),
        b=int(lerp(t, start.b, end.b)),
    )


def block_colors(t: float, start: Color, end: Color, n: int) -> list[Color]:
    """``n`` identical LEDs at ``t`` between ``start`` and ``end``."""
    color = lerp_color(clamp_unit(t), start, end)
    return [color] * n


def gradient_colors(t: float, start: Color, end: Color, n: int) -> list[Color]:
    """``n`` LEDs filled from index 0 in proportion to ``t``."""
    filled = clamp_unit(t) * n
    return [lerp_color(clamp_unit(filled - index), start, end) for index in range(n)]
