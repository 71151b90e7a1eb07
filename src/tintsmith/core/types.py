"""Core data types and enums for TintSmith.

CRITICAL CONVENTION:
    Ramps are ordered lightest first: index 0 is step 100, index 8 is step 900.
    Index <-> step mapping is ``STEPS.index(step)`` / ``STEPS[index]``.
    This convention MUST be used consistently in ALL modules.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, Optional

from tintsmith.config import (
    CHANNEL_MAX,
    DEFAULT_EXTREME_RATIO,
    DEFAULT_LIGHTNESS_MAX,
    DEFAULT_LIGHTNESS_MIN,
    OPAQUE,
    STEPS,
)


def _clamp_channel(value: int) -> int:
    return max(0, min(CHANNEL_MAX, int(value)))


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class DuplicatePolicy(str, Enum):
    """How a name repeated within one request batch is handled."""
    LAST_WINS = "last_wins"
    STRICT = "strict"


class TargetKind(str, Enum):
    """Kind of palette document an update run reads and writes."""
    LUNACY = "lunacy"
    JSON = "json"


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Color:
    """An 8-bit RGBA color. Channels are clamped to [0, 255]."""
    r: int
    g: int
    b: int
    a: int = OPAQUE

    def __post_init__(self):
        for channel in ("r", "g", "b", "a"):
            object.__setattr__(self, channel, _clamp_channel(getattr(self, channel)))

    @classmethod
    def from_hex(cls, value: str) -> "Color":
        """Parse a hex or rgb() string. See :func:`tintsmith.color.parsing.parse_color`."""
        from tintsmith.color.parsing import parse_color
        return parse_color(value)

    @property
    def rgb(self) -> tuple[int, int, int]:
        return self.r, self.g, self.b

    @property
    def opaque(self) -> bool:
        return self.a == OPAQUE

    @property
    def hex(self) -> str:
        """Uppercase ``#RRGGBB``, or ``#RRGGBBAA`` when not fully opaque."""
        text = f"#{self.r:02X}{self.g:02X}{self.b:02X}"
        if not self.opaque:
            text += f"{self.a:02X}"
        return text

    def __str__(self) -> str:
        return self.hex


@dataclass(frozen=True)
class Ramp:
    """Nine colors for steps 100..900, lightest first, anchored at ``base_step``."""
    base_step: int
    colors: tuple[Color, ...]

    def __post_init__(self):
        if self.base_step not in STEPS:
            raise ValueError(f"Ramp base step {self.base_step!r} is not one of {STEPS}")
        if len(self.colors) != len(STEPS):
            raise ValueError(f"Ramp has {len(self.colors)} colors != expected {len(STEPS)}")

    def __getitem__(self, step: int) -> Color:
        try:
            return self.colors[STEPS.index(step)]
        except ValueError:
            raise KeyError(step) from None

    def __iter__(self) -> Iterator[int]:
        return iter(STEPS)

    def __len__(self) -> int:
        return len(STEPS)

    def items(self) -> Iterator[tuple[int, Color]]:
        return zip(STEPS, self.colors)

    @property
    def base_color(self) -> Color:
        return self[self.base_step]

    def as_hex(self) -> dict[int, str]:
        """Step -> hex string mapping."""
        return {step: color.hex for step, color in self.items()}


@dataclass(frozen=True)
class RampConfig:
    """Lightness curve parameters for ramp generation."""
    lightness_max: float = DEFAULT_LIGHTNESS_MAX  # step 100 target
    lightness_min: float = DEFAULT_LIGHTNESS_MIN  # step 900 target
    extreme_ratio: float = DEFAULT_EXTREME_RATIO

    def __post_init__(self):
        if not 0.0 <= self.lightness_min < self.lightness_max <= 1.0:
            raise ValueError(
                f"Lightness bounds must satisfy 0 <= min < max <= 1, "
                f"got min={self.lightness_min}, max={self.lightness_max}"
            )
        if not 0.0 < self.extreme_ratio <= 1.0:
            raise ValueError(f"extreme_ratio must be in (0, 1], got {self.extreme_ratio}")


@dataclass(frozen=True)
class ColorRequest:
    """One named color to insert or regenerate, as supplied by an input collaborator."""
    name: str
    value: str
    step: Optional[int] = None


@dataclass
class PaletteEntry:
    """A named ramp held by a palette.

    The entry object and its ``id`` are its identity: updates mutate
    ``ramp`` and ``version`` in place and never replace the entry.
    """
    name: str
    ramp: Ramp
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    version: int = 1

    @property
    def base_step(self) -> int:
        return self.ramp.base_step

    @property
    def base_color(self) -> Color:
        return self.ramp.base_color


@dataclass
class UpdateSummary:
    """Outcome of applying a batch of requests to a palette."""
    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)

    @property
    def changed(self) -> list[str]:
        return self.created + self.updated


# ---------------------------------------------------------------------------
# Progress callback type
# ---------------------------------------------------------------------------

ProgressCallback = Callable[[str, float, str], None]
"""Callback signature: (stage_name, fraction_complete, message)."""
