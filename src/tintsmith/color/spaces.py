"""RGB <-> HSL conversions.

All functions operate on (..., 3) float arrays with components in [0, 1].
Hue is expressed as a fraction of a full turn, so [0, 1) rather than degrees.
"""

from __future__ import annotations

import numpy as np

from tintsmith.core.types import Color


def rgb_to_hsl(rgb: np.ndarray) -> np.ndarray:
    """Convert (..., 3) RGB to (..., 3) HSL."""
    rgb = np.asarray(rgb, dtype=np.float64)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]

    mx = np.max(rgb, axis=-1)
    mn = np.min(rgb, axis=-1)
    delta = mx - mn
    lightness = (mx + mn) / 2.0

    chromatic = delta > 0.0
    safe_delta = np.where(chromatic, delta, 1.0)

    denom = 1.0 - np.abs(2.0 * lightness - 1.0)
    saturation = np.where(chromatic & (denom > 0.0), delta / np.where(denom > 0.0, denom, 1.0), 0.0)

    hue = np.select(
        [mx == r, mx == g],
        [((g - b) / safe_delta) % 6.0, (b - r) / safe_delta + 2.0],
        default=(r - g) / safe_delta + 4.0,
    )
    hue = np.where(chromatic, hue / 6.0, 0.0)

    return np.stack([hue, saturation, lightness], axis=-1)


def hsl_to_rgb(hsl: np.ndarray) -> np.ndarray:
    """Convert (..., 3) HSL to (..., 3) RGB.

    At fixed hue and saturation every output channel is a non-decreasing
    function of lightness.
    """
    hsl = np.asarray(hsl, dtype=np.float64)
    h, s, l = hsl[..., 0], hsl[..., 1], hsl[..., 2]

    chroma = (1.0 - np.abs(2.0 * l - 1.0)) * s
    h6 = (h % 1.0) * 6.0
    x = chroma * (1.0 - np.abs(h6 % 2.0 - 1.0))
    m = l - chroma / 2.0
    zero = np.zeros_like(chroma)

    sector = np.floor(h6).astype(np.int64) % 6
    conditions = [sector == i for i in range(6)]
    r = np.select(conditions, [chroma, x, zero, zero, x, chroma])
    g = np.select(conditions, [x, chroma, chroma, x, zero, zero])
    b = np.select(conditions, [zero, zero, x, chroma, chroma, x])

    return np.clip(np.stack([r + m, g + m, b + m], axis=-1), 0.0, 1.0)


def color_to_unit_rgb(color: Color) -> np.ndarray:
    """(3,) float RGB in [0, 1] for a Color."""
    return np.array(color.rgb, dtype=np.float64) / 255.0


def quantize_rgb(rgb: np.ndarray) -> np.ndarray:
    """(..., 3) float RGB in [0, 1] to 8-bit integer channels."""
    return np.clip(np.rint(np.asarray(rgb) * 255.0), 0, 255).astype(np.int64)


def lightness(colors) -> np.ndarray:
    """HSL lightness of one Color or a sequence of Colors."""
    if isinstance(colors, Color):
        return rgb_to_hsl(color_to_unit_rgb(colors))[..., 2]
    rgb = np.array([c.rgb for c in colors], dtype=np.float64) / 255.0
    return rgb_to_hsl(rgb)[..., 2]
