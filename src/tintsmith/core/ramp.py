"""Ramp generation: one base color -> nine tints/shades (steps 100..900).

Curve:
    Work in HSL and hold hue and saturation fixed.  Let L be the base
    lightness.  Step 100 sits at ``light`` and step 900 at ``dark``:

        light = max(lightness_max, L + (1 - L) * extreme_ratio)
        dark  = min(lightness_min, L * (1 - extreme_ratio))

    Steps lighter than the base are spaced linearly from ``light`` down
    to L, steps darker than the base linearly from L down to ``dark``.
    The base step is the input color itself, so the anchor is exact.

    Because ``light > L > dark`` whenever 0 < L < 1 the targets are
    strictly decreasing; only pure white/black bases collapse a side.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from tintsmith.color.spaces import (
    color_to_unit_rgb,
    hsl_to_rgb,
    lightness,
    quantize_rgb,
    rgb_to_hsl,
)
from tintsmith.config import DEFAULT_BASE_STEP, STEPS
from tintsmith.core.types import Color, Ramp, RampConfig
from tintsmith.errors import InvalidStepError

DEFAULT_RAMP_CONFIG = RampConfig()


def validate_step(step, *, name=None) -> int:
    """Return ``step`` if it is one of the nine canonical steps.

    Raises:
        InvalidStepError: For anything else, including bools and floats.
    """
    if isinstance(step, bool) or not isinstance(step, (int, np.integer)) or int(step) not in STEPS:
        label = f" for {name!r}" if name else ""
        raise InvalidStepError(
            f"Invalid step{label}: {step!r}. Must be one of {', '.join(map(str, STEPS))}",
            name=name, value=step,
        )
    return int(step)


def lightness_curve(
    base_lightness: float,
    base_step: int = DEFAULT_BASE_STEP,
    config: Optional[RampConfig] = None,
) -> np.ndarray:
    """Target HSL lightness for each of the nine steps.

    Args:
        base_lightness: Lightness of the base color in [0, 1].
        base_step: Step the base color is anchored at.
        config: Curve parameters.

    Returns:
        (9,) float64 array, index 0 = step 100. ``result[STEPS.index(base_step)]``
        equals ``base_lightness`` exactly.
    """
    config = config or DEFAULT_RAMP_CONFIG
    base_step = validate_step(base_step)
    L = float(np.clip(base_lightness, 0.0, 1.0))
    idx = STEPS.index(base_step)

    light = max(config.lightness_max, L + (1.0 - L) * config.extreme_ratio)
    dark = min(config.lightness_min, L * (1.0 - config.extreme_ratio))

    curve = np.empty(len(STEPS), dtype=np.float64)
    curve[:idx] = np.linspace(light, L, idx + 1)[:-1]
    curve[idx] = L
    curve[idx + 1:] = np.linspace(L, dark, len(STEPS) - idx)[1:]
    return curve


def generate_ramp(
    base: Color,
    base_step: int = DEFAULT_BASE_STEP,
    config: Optional[RampConfig] = None,
) -> Ramp:
    """Generate the nine-step ramp through ``base`` at ``base_step``.

    Pure and deterministic: identical inputs give identical ramps, and
    it is safe to call from several threads at once.

    Raises:
        InvalidStepError: If ``base_step`` is not a canonical step.
    """
    base_step = validate_step(base_step)
    hue, saturation, L = rgb_to_hsl(color_to_unit_rgb(base))

    targets = lightness_curve(L, base_step, config)
    hsl = np.stack(
        [np.full_like(targets, hue), np.full_like(targets, saturation), targets],
        axis=-1,
    )
    channels = quantize_rgb(hsl_to_rgb(hsl))

    colors = [Color(int(r), int(g), int(b), base.a) for r, g, b in channels]
    colors[STEPS.index(base_step)] = base
    return Ramp(base_step=base_step, colors=tuple(colors))


def ramp_lightness(ramp: Ramp) -> np.ndarray:
    """(9,) HSL lightness of each step of ``ramp``, lightest first."""
    return lightness(ramp.colors)
