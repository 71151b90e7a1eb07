"""Color string parsing and formatting.

Accepted input forms (case-insensitive, surrounding whitespace ignored):
    #RRGGBB, RRGGBB, #RGB, RGB, #RRGGBBAA, RRGGBBAA
    rgb(r, g, b), rgba(r, g, b, a)   -- r/g/b in 0-255, a in 0-1

Output is always uppercase hex (see :attr:`Color.hex`).
"""

from __future__ import annotations

import re

from tintsmith.config import CHANNEL_MAX
from tintsmith.core.types import Color
from tintsmith.errors import InvalidColorError

_HEX_RE = re.compile(r"^#?(?P<digits>[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_FUNC_RE = re.compile(
    r"^rgba?\(\s*(?P<r>\d{1,3})\s*,\s*(?P<g>\d{1,3})\s*,\s*(?P<b>\d{1,3})"
    r"\s*(?:,\s*(?P<a>\d*\.?\d+)\s*)?\)$",
    re.IGNORECASE,
)


def _parse_hex(digits: str) -> Color:
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    channels = [int(digits[i:i + 2], 16) for i in range(0, len(digits), 2)]
    return Color(*channels)


def _parse_func(match: re.Match, value: str, name) -> Color:
    channels = [int(match.group(c)) for c in ("r", "g", "b")]
    if any(c > CHANNEL_MAX for c in channels):
        raise InvalidColorError(
            f"RGB channel out of range 0-{CHANNEL_MAX}: {value!r}", name=name, value=value
        )
    alpha = CHANNEL_MAX
    if match.group("a") is not None:
        a = float(match.group("a"))
        if a > 1.0:
            raise InvalidColorError(
                f"Alpha out of range 0-1: {value!r}", name=name, value=value
            )
        alpha = round(a * CHANNEL_MAX)
    return Color(*channels, a=alpha)


def parse_color(value, *, name=None) -> Color:
    """Parse a color string into a :class:`Color`.

    Args:
        value: Hex or rgb()/rgba() string.
        name: Palette name the value belongs to, reported on failure.

    Raises:
        InvalidColorError: If ``value`` is not a string or not a recognised form.
    """
    if isinstance(value, Color):
        return value
    if not isinstance(value, str):
        raise InvalidColorError(
            f"Color value must be a string, got {type(value).__name__}: {value!r}",
            name=name, value=value,
        )

    text = value.strip()
    match = _HEX_RE.match(text)
    if match:
        return _parse_hex(match.group("digits"))

    match = _FUNC_RE.match(text)
    if match:
        return _parse_func(match, value, name)

    label = f" for {name!r}" if name else ""
    raise InvalidColorError(f"Invalid color{label}: {value!r}", name=name, value=value)


def format_hex(color: Color, *, prefix: str = "#") -> str:
    """Format ``color`` as uppercase hex with the given prefix (``""`` for Lunacy)."""
    return prefix + color.hex[1:]
