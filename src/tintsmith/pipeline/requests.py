"""Build color requests from ``--color`` flag values.

Flag grammar (one flag may carry several items)::

    --color "pink:#C92ABB:300;dark:#121212"
    --color "accent:rgb(12, 80, 200)"

Items are separated by ``;`` or ``,`` (commas inside ``rgb(...)`` do not
split).  Each item is ``name:value`` or ``name:value:step``.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from tintsmith.core.types import ColorRequest
from tintsmith.errors import EmptyNameError, InvalidColorError, InvalidStepError

_ITEM_SPLIT_RE = re.compile(r"[;,](?![^()]*\))")


def parse_color_item(item: str) -> ColorRequest:
    """Parse one ``name:value[:step]`` item.

    Only the flag syntax is checked here; color and step values are
    validated by the palette store.
    """
    parts = [p.strip() for p in item.split(":")]
    if len(parts) < 2 or len(parts) > 3:
        raise InvalidColorError(
            f"Invalid color item {item!r}: expected name:value[:step]", value=item
        )

    name, value = parts[0], parts[1]
    if not name:
        raise EmptyNameError(f"Missing color name in {item!r}", value=item)
    if not value:
        raise InvalidColorError(f"Missing color value for {name!r}", name=name, value=item)

    step: Optional[int] = None
    if len(parts) == 3:
        try:
            step = int(parts[2])
        except ValueError:
            raise InvalidStepError(
                f"Invalid step for {name!r}: {parts[2]!r}", name=name, value=parts[2]
            ) from None

    return ColorRequest(name=name, value=value, step=step)


def parse_color_spec(spec: str) -> list[ColorRequest]:
    """Parse one ``--color`` flag value into requests, in order."""
    items = [item for item in _ITEM_SPLIT_RE.split(spec) if item.strip()]
    return [parse_color_item(item) for item in items]


class RequestBuilder:
    """Accumulates requests from flags and files, preserving order."""

    def __init__(self):
        self._requests: list[ColorRequest] = []

    def add(self, name: str, value: str, step: Optional[int] = None) -> "RequestBuilder":
        self._requests.append(ColorRequest(name=name, value=value, step=step))
        return self

    def add_spec(self, spec: str) -> "RequestBuilder":
        self._requests.extend(parse_color_spec(spec))
        return self

    def add_specs(self, specs: Iterable[str]) -> "RequestBuilder":
        for spec in specs:
            self.add_spec(spec)
        return self

    def extend(self, requests: Iterable[ColorRequest]) -> "RequestBuilder":
        self._requests.extend(requests)
        return self

    def build(self) -> list[ColorRequest]:
        return list(self._requests)

    def __len__(self) -> int:
        return len(self._requests)


def prefix_requests(requests: Iterable[ColorRequest], prefix: str) -> list[ColorRequest]:
    """Prepend ``prefix`` to every request name.

    Names are stripped first so ``"brand-"`` and ``" pink"`` give
    ``"brand-pink"``.  Non-string names pass through for validation.
    """
    if not prefix:
        return list(requests)
    return [
        ColorRequest(name=f"{prefix}{r.name.strip()}", value=r.value, step=r.step)
        if isinstance(r.name, str) else r
        for r in requests
    ]
