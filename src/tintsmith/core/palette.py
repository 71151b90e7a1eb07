"""Named palette store: merge batches of color requests into named ramps.

An update runs in three phases so that nothing is mutated until every
request in the batch has been validated:

    1. resolve_updates  -- validate names/colors/steps, collapse duplicates,
                           pick the base step for each job
    2. generate_ramp    -- pure, may run in parallel (see pipeline.runner)
    3. merge_ramps      -- insert new entries or update existing ones in place

``apply_updates`` runs all three sequentially.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence

from tintsmith.color.parsing import parse_color
from tintsmith.config import DEFAULT_BASE_STEP
from tintsmith.core.ramp import generate_ramp, validate_step
from tintsmith.core.types import (
    Color,
    ColorRequest,
    DuplicatePolicy,
    PaletteEntry,
    Ramp,
    RampConfig,
    UpdateSummary,
)
from tintsmith.errors import DuplicateNameError, EmptyNameError, InvalidNameError

logger = logging.getLogger(__name__)

RESERVED_NAME_CHARS = frozenset("/")


class NamedPalette:
    """Ordered mapping of unique palette name -> :class:`PaletteEntry`."""

    def __init__(self, entries: Iterable[PaletteEntry] = ()):
        self._entries: dict[str, PaletteEntry] = {}
        for entry in entries:
            self.add(entry)

    def add(self, entry: PaletteEntry) -> PaletteEntry:
        if entry.name in self._entries:
            raise DuplicateNameError(
                f"Palette already contains {entry.name!r}", name=entry.name
            )
        self._entries[entry.name] = entry
        return entry

    def get(self, name: str) -> Optional[PaletteEntry]:
        return self._entries.get(name)

    def names(self) -> list[str]:
        return list(self._entries)

    def __getitem__(self, name: str) -> PaletteEntry:
        return self._entries[name]

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[PaletteEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"NamedPalette({self.names()!r})"


@dataclass(frozen=True)
class RampJob:
    """A validated request with its base step resolved."""
    name: str
    color: Color
    step: int


def validate_name(name) -> str:
    """Strip and validate a palette name.

    Raises:
        EmptyNameError: If the name is missing or blank.
        InvalidNameError: If the name contains a reserved character.
    """
    if not isinstance(name, str) or not name.strip():
        raise EmptyNameError(f"Palette name must be a non-empty string, got {name!r}", name=name)
    name = name.strip()
    bad = RESERVED_NAME_CHARS.intersection(name)
    if bad:
        raise InvalidNameError(
            f"Palette name {name!r} contains reserved character(s): {''.join(sorted(bad))}",
            name=name,
        )
    return name


def normalize_requests(
    requests: Sequence[ColorRequest],
    policy: DuplicatePolicy = DuplicatePolicy.LAST_WINS,
) -> list[tuple[str, Color, Optional[int]]]:
    """Validate every request and collapse repeated names.

    Under ``LAST_WINS`` the last request for a name is kept, at the
    position of the name's first occurrence.  Under ``STRICT`` a repeat
    with a different color or step raises :class:`DuplicateNameError`.

    Returns:
        List of (name, color, step or None) in application order.
    """
    policy = DuplicatePolicy(policy)
    collapsed: dict[str, tuple[str, Color, Optional[int]]] = {}

    for request in requests:
        name = validate_name(request.name)
        color = parse_color(request.value, name=name)
        step = None if request.step is None else validate_step(request.step, name=name)
        current = (name, color, step)

        previous = collapsed.get(name)
        if previous is not None and previous != current:
            if policy is DuplicatePolicy.STRICT:
                raise DuplicateNameError(
                    f"Conflicting requests for {name!r}: "
                    f"{previous[1].hex}@{previous[2]} vs {color.hex}@{step}",
                    name=name, value=request.value,
                )
            logger.debug("Request for %r overrides earlier one in batch", name)
        collapsed[name] = current

    return list(collapsed.values())


def resolve_updates(
    palette: NamedPalette,
    requests: Sequence[ColorRequest],
    policy: DuplicatePolicy = DuplicatePolicy.LAST_WINS,
) -> list[RampJob]:
    """Turn requests into ramp jobs against ``palette`` without mutating it.

    A request without a step keeps the existing entry's base step, or
    uses the default step for a new name.
    """
    jobs = []
    for name, color, step in normalize_requests(requests, policy):
        if step is None:
            existing = palette.get(name)
            step = existing.base_step if existing is not None else DEFAULT_BASE_STEP
        jobs.append(RampJob(name=name, color=color, step=step))
    return jobs


def merge_ramps(
    palette: NamedPalette,
    jobs: Sequence[RampJob],
    ramps: Sequence[Ramp],
) -> UpdateSummary:
    """Merge computed ramps into ``palette`` in job order.

    Existing entries are updated in place (same object, same id) and
    their version is bumped only if the ramp changed.  Entries not named
    in ``jobs`` are left untouched.
    """
    if len(jobs) != len(ramps):
        raise ValueError(f"Got {len(ramps)} ramps for {len(jobs)} jobs")

    summary = UpdateSummary()
    for job, ramp in zip(jobs, ramps):
        entry = palette.get(job.name)
        if entry is None:
            palette.add(PaletteEntry(name=job.name, ramp=ramp))
            summary.created.append(job.name)
            logger.debug("Created palette %r at step %d", job.name, ramp.base_step)
        elif entry.ramp == ramp:
            summary.unchanged.append(job.name)
        else:
            entry.ramp = ramp
            entry.version += 1
            summary.updated.append(job.name)
            logger.debug("Updated palette %r (version %d)", job.name, entry.version)
    return summary


def apply_updates(
    palette: NamedPalette,
    requests: Sequence[ColorRequest],
    config: Optional[RampConfig] = None,
    policy: DuplicatePolicy = DuplicatePolicy.LAST_WINS,
) -> UpdateSummary:
    """Apply a batch of requests to ``palette`` in place.

    Either the whole batch applies or, on a validation error, the
    palette is left exactly as it was.

    Raises:
        InvalidColorError, InvalidStepError, EmptyNameError,
        InvalidNameError, DuplicateNameError
    """
    jobs = resolve_updates(palette, requests, policy)
    ramps = [generate_ramp(job.color, job.step, config) for job in jobs]
    return merge_ramps(palette, jobs, ramps)
