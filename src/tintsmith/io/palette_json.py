"""Standalone JSON color-definition files.

Input shape::

    {"dark": {"value": "#121212"}, "pink": {"value": "#C92ABB", "step": 300}}

``{"dark": "#121212"}`` is accepted as shorthand for ``{"value": ...}``.
On output each entry gains its ramp as ``"100"`` .. ``"900"`` keys;
key order and any other fields already in the file are preserved.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, Optional

from tintsmith.color.parsing import parse_color
from tintsmith.config import DEFAULT_BASE_STEP, JSON_EXTENSIONS, STEPS
from tintsmith.core.palette import NamedPalette, validate_name
from tintsmith.core.ramp import validate_step
from tintsmith.core.types import ColorRequest, PaletteEntry, Ramp
from tintsmith.errors import DocumentFormatError, InvalidColorError, ValidationError

logger = logging.getLogger(__name__)


def read_palette_file(filepath: str | Path) -> dict:
    """Load a JSON definition file as a dict.

    Raises:
        FileNotFoundError: If the file does not exist.
        DocumentFormatError: If it is not a ``.json`` file holding an object.
    """
    path = Path(filepath)
    if path.suffix.lower() not in JSON_EXTENSIONS:
        raise DocumentFormatError(f"Unsupported palette file format: {path.suffix}")
    if not path.exists():
        raise FileNotFoundError(f"Palette file not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DocumentFormatError(f"Invalid JSON in {path.name}: {exc}") from exc

    if not isinstance(data, dict):
        raise DocumentFormatError(f"{path.name} must contain a JSON object of named colors")
    return data


def requests_from_mapping(data: dict) -> list[ColorRequest]:
    """Color requests from a ``{name: {value, step}}`` mapping, in key order."""
    requests = []
    for name, spec in data.items():
        if isinstance(spec, str):
            requests.append(ColorRequest(name=name, value=spec))
            continue
        if not isinstance(spec, dict) or "value" not in spec:
            raise InvalidColorError(f"Entry {name!r} has no color value", name=name, value=spec)
        requests.append(ColorRequest(name=name, value=spec["value"], step=spec.get("step")))
    return requests


def load_requests(filepath: str | Path) -> list[ColorRequest]:
    """Read color requests from a JSON definition file."""
    requests = requests_from_mapping(read_palette_file(filepath))
    logger.debug("Loaded %d color request(s) from %s", len(requests), filepath)
    return requests


def palette_from_mapping(data: dict) -> NamedPalette:
    """Entries whose stored ramp is complete (all of ``"100"`` .. ``"900"``).

    Entries without a stored ramp have not been generated yet and are
    left out; they come back in as requests.  Keys are stripped the same
    way request names are, so a padded key names the same entry.
    """
    palette = NamedPalette()
    for name, spec in data.items():
        if not isinstance(spec, dict) or not all(str(s) in spec for s in STEPS):
            continue
        name = validate_name(name)
        step = validate_step(spec.get("step", DEFAULT_BASE_STEP), name=name)
        try:
            ramp = Ramp(
                base_step=step,
                colors=tuple(parse_color(spec[str(s)], name=name) for s in STEPS),
            )
        except (ValidationError, ValueError) as exc:
            raise DocumentFormatError(f"Stored ramp for {name!r} is invalid: {exc}") from exc
        palette.add(PaletteEntry(name=name, ramp=ramp))
    return palette


def entry_to_mapping(entry: PaletteEntry, existing: Optional[dict] = None) -> dict:
    """``{"value", "step", "100".."900"}`` for one entry, over ``existing`` fields."""
    out = dict(existing) if isinstance(existing, dict) else {}
    out["value"] = entry.base_color.hex
    out["step"] = entry.base_step
    for step, color in entry.ramp.items():
        out[str(step)] = color.hex
    return out


def palette_to_mapping(
    palette: NamedPalette,
    existing: Optional[dict] = None,
    names: Optional[Iterable[str]] = None,
) -> dict:
    """Whole-file mapping: existing keys first in their order, then new names.

    Existing entries not listed in ``names`` (default: all) are copied
    through verbatim.  Existing keys are kept as written and are
    matched by their stripped name.
    """
    existing = existing or {}
    selected = None if names is None else set(names)
    out = {}
    written = set()
    for key, spec in existing.items():
        name = key.strip() if isinstance(key, str) else key
        entry = palette.get(name)
        if entry is None or (selected is not None and name not in selected):
            out[key] = spec
        else:
            out[key] = entry_to_mapping(entry, spec)
        written.add(name)
    for entry in palette:
        if entry.name not in written:
            out[entry.name] = entry_to_mapping(entry)
    return out


def save_palette(
    palette: NamedPalette,
    filepath: str | Path,
    existing: Optional[dict] = None,
    names: Optional[Iterable[str]] = None,
) -> Path:
    """Write ``palette`` as JSON, atomically replacing ``filepath``.

    See :func:`palette_to_mapping` for ``existing`` and ``names``.
    """
    path = Path(filepath).resolve()
    if not path.parent.exists():
        raise FileNotFoundError(f"Output directory does not exist: {path.parent}")

    text = json.dumps(palette_to_mapping(palette, existing, names), indent=2, ensure_ascii=False) + "\n"

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as fh:
            fh.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.info("Wrote %s", path)
    return path
