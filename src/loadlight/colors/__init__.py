"""Color interpolation for load-driven LEDs.

All colors are standard 8-bit RGB ``Color`` models (0-255 per channel).
Interpolation never extrapolates, so every produced channel lies between
the corresponding channels of the two endpoint colors.

Example:
    ```python
    from loadlight.colors import block_colors, gradient_colors
    from loadlight.models import Color

    white, red = Color.white(), Color.red()
    block_colors(0.5, white, red, 3)      # three Color(r=255, g=127, b=127)
    gradient_colors(0.5, white, red, 4)   # [red, red, white, white]
    ```
"""

from .interpolate import block_colors, clamp_unit, gradient_colors, lerp, lerp_color

__all__ = ["block_colors", "clamp_unit", "gradient_colors", "lerp", "lerp_color"]
