"""Lunacy ``.free`` document I/O.

A ``.free`` file is a zip archive.  Its ``document.json`` member holds a
top-level ``"colors"`` array of named color objects::

    {"id": "<base64url uuid>", "version": 1,
     "name": "Palette / pink / pink.500", "value": "C92ABB"}

Only the ramp color objects are interpreted; every other member and
field is carried through unchanged.  Ramp objects are matched by name so
existing ids (which pages bind to) survive an update.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
import re
import tempfile
import uuid
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from tintsmith.color.parsing import format_hex, parse_color
from tintsmith.config import (
    BASE_STEP_KEY,
    DEFAULT_BASE_STEP,
    DOCUMENT_ENTRY,
    DOCUMENT_EXTENSIONS,
    MAX_ARCHIVE_MEMBERS,
    MAX_DOCUMENT_BYTES,
    NAME_SEPARATOR,
    PALETTE_GROUP,
    STEPS,
)
from tintsmith.core.palette import NamedPalette
from tintsmith.core.ramp import generate_ramp
from tintsmith.core.types import Color, PaletteEntry, Ramp, RampConfig
from tintsmith.errors import DocumentFormatError, ValidationError

logger = logging.getLogger(__name__)

_OBJECT_NAME_RE = re.compile(
    rf"^{re.escape(PALETTE_GROUP)}{re.escape(NAME_SEPARATOR)}(?P<name>[^/]+?)"
    rf"{re.escape(NAME_SEPARATOR)}(?P=name)\.(?P<step>\d00)$"
)


@dataclass
class LunacyDocument:
    """In-memory ``.free`` archive."""
    document: dict
    members: dict[str, bytes] = field(default_factory=dict)  # every member except document.json
    order: list[str] = field(default_factory=list)  # original member order, document.json included
    source_path: Optional[Path] = None

    @property
    def colors(self) -> list:
        return self.document.setdefault("colors", [])


# ---------------------------------------------------------------------------
# Ids and names
# ---------------------------------------------------------------------------

def encode_id(value: uuid.UUID) -> str:
    """UUID -> Lunacy id (URL-safe base64 of the 16 bytes, unpadded)."""
    return base64.urlsafe_b64encode(value.bytes).rstrip(b"=").decode("ascii")


def decode_id(text: str) -> uuid.UUID:
    """Lunacy id -> UUID.

    Raises:
        DocumentFormatError: If ``text`` is not a valid encoded UUID.
    """
    try:
        raw = base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))
        return uuid.UUID(bytes=raw)
    except (binascii.Error, ValueError, TypeError) as exc:
        raise DocumentFormatError(f"Invalid Lunacy id: {text!r}") from exc


def color_object_name(name: str, step: int) -> str:
    """``Palette / {name} / {name}.{step}``."""
    return NAME_SEPARATOR.join([PALETTE_GROUP, name, f"{name}.{step}"])


def parse_color_object_name(text: str) -> Optional[tuple[str, int]]:
    """Inverse of :func:`color_object_name`; None for non-ramp names."""
    match = _OBJECT_NAME_RE.match(text) if isinstance(text, str) else None
    if match is None:
        return None
    step = int(match.group("step"))
    if step not in STEPS:
        return None
    return match.group("name"), step


def new_color_object(name: str, step: int, color: Color, *, base_step: Optional[int] = None) -> dict:
    """Fresh Lunacy color object (new id, version 1)."""
    obj = {
        "id": encode_id(uuid.uuid4()),
        "version": 1,
        "name": color_object_name(name, step),
        "value": format_hex(color, prefix=""),
    }
    if base_step == step:
        obj[BASE_STEP_KEY] = {"base": step}
    return obj


def ramp_color_objects(name: str, ramp: Ramp) -> list[dict]:
    """The nine Lunacy color objects for ``ramp``, each with a fresh id."""
    return [
        new_color_object(name, step, color, base_step=ramp.base_step)
        for step, color in ramp.items()
    ]


# ---------------------------------------------------------------------------
# Archive read / write
# ---------------------------------------------------------------------------

def validate_document_path(filepath: str | Path) -> Path:
    """Validate an input ``.free`` path.

    Raises:
        FileNotFoundError: If the file does not exist.
        DocumentFormatError: If it is not a regular ``.free`` file.
    """
    path = Path(filepath).resolve()

    if not path.exists():
        raise FileNotFoundError(f"Document not found: {path}")
    if not path.is_file():
        raise DocumentFormatError(f"Not a regular file: {path}")
    if path.suffix.lower() not in DOCUMENT_EXTENSIONS:
        raise DocumentFormatError(
            f"Unsupported document format: {path.suffix}. "
            f"Supported: {', '.join(sorted(DOCUMENT_EXTENSIONS))}"
        )
    return path


def _open_archive(path: Path) -> zipfile.ZipFile:
    if not zipfile.is_zipfile(path):
        raise DocumentFormatError(f"Not a Lunacy document (not a zip archive): {path}")

    archive = zipfile.ZipFile(path)
    infos = archive.infolist()
    total = sum(info.file_size for info in infos)
    if len(infos) > MAX_ARCHIVE_MEMBERS or total > MAX_DOCUMENT_BYTES:
        archive.close()
        raise DocumentFormatError(
            f"Document too large: {len(infos):,} members, {total:,} bytes uncompressed "
            f"(limits {MAX_ARCHIVE_MEMBERS:,} / {MAX_DOCUMENT_BYTES:,})"
        )
    return archive


def read_document(filepath: str | Path) -> LunacyDocument:
    """Load a ``.free`` archive into memory.

    Raises:
        DocumentFormatError: Missing/corrupt ``document.json`` or bad ``colors``.
    """
    path = validate_document_path(filepath)

    try:
        with _open_archive(path) as archive:
            order = archive.namelist()
            if DOCUMENT_ENTRY not in order:
                raise DocumentFormatError(f"{path.name} has no {DOCUMENT_ENTRY}")
            raw = archive.read(DOCUMENT_ENTRY)
            members = {n: archive.read(n) for n in order if n != DOCUMENT_ENTRY}
    except zipfile.BadZipFile as exc:
        raise DocumentFormatError(f"Corrupt archive {path.name}: {exc}") from exc

    try:
        document = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DocumentFormatError(f"Corrupt {DOCUMENT_ENTRY} in {path.name}: {exc}") from exc

    if not isinstance(document, dict):
        raise DocumentFormatError(f"{DOCUMENT_ENTRY} must be a JSON object")
    if not isinstance(document.get("colors", []), list):
        raise DocumentFormatError(f"{DOCUMENT_ENTRY} 'colors' must be an array")

    logger.debug("Read %s: %d members, %d colors", path.name, len(order), len(document.get("colors", [])))
    return LunacyDocument(document=document, members=members, order=order, source_path=path)


def write_document(doc: LunacyDocument, filepath: str | Path) -> Path:
    """Write ``doc`` as a ``.free`` archive, atomically replacing ``filepath``."""
    path = Path(filepath).resolve()
    if not path.parent.exists():
        raise FileNotFoundError(f"Output directory does not exist: {path.parent}")

    order = list(doc.order) or [DOCUMENT_ENTRY]
    if DOCUMENT_ENTRY not in order:
        order.insert(0, DOCUMENT_ENTRY)
    payload = json.dumps(doc.document, ensure_ascii=False, separators=(",", ":")).encode("utf-8")

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as fh, zipfile.ZipFile(fh, "w", zipfile.ZIP_DEFLATED) as archive:
            for name in order:
                archive.writestr(name, payload if name == DOCUMENT_ENTRY else doc.members[name])
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.info("Wrote %s", path)
    return path


def extract_document(filepath: str | Path, destination: str | Path) -> Path:
    """Extract a ``.free`` archive into ``destination`` for inspection.

    Raises:
        DocumentFormatError: If a member would land outside ``destination``.
    """
    path = validate_document_path(filepath)
    dest = Path(destination).resolve()
    dest.mkdir(parents=True, exist_ok=True)

    with _open_archive(path) as archive:
        for name in archive.namelist():
            target = (dest / name).resolve()
            if target != dest and dest not in target.parents:
                raise DocumentFormatError(f"Unsafe member path in {path.name}: {name!r}")
        archive.extractall(dest)

    logger.info("Extracted %s to %s", path.name, dest)
    return dest


# ---------------------------------------------------------------------------
# Palette <-> document binding
# ---------------------------------------------------------------------------

def _group_ramp_objects(doc: LunacyDocument) -> dict[str, dict[int, dict]]:
    groups: dict[str, dict[int, dict]] = {}
    for obj in doc.colors:
        if not isinstance(obj, dict):
            continue
        parsed = parse_color_object_name(obj.get("name"))
        if parsed is None:
            continue
        name, step = parsed
        groups.setdefault(name, {})[step] = obj
    return groups


def _base_step_of(objects: dict[int, dict]) -> int:
    for step, obj in objects.items():
        marker = obj.get(BASE_STEP_KEY)
        if isinstance(marker, dict) and marker.get("base") == step:
            return step
    return DEFAULT_BASE_STEP


def _entry_id(obj: dict) -> uuid.UUID:
    raw = obj.get("id")
    if not isinstance(raw, str):
        return uuid.uuid4()
    try:
        return decode_id(raw)
    except DocumentFormatError:
        logger.debug("Non-UUID color id %r; deriving a stable one", raw)
        return uuid.uuid5(uuid.NAMESPACE_URL, raw)


def palette_from_document(doc: LunacyDocument, config: Optional[RampConfig] = None) -> NamedPalette:
    """Build a :class:`NamedPalette` from the ramp color objects in ``doc``.

    A complete ramp is taken as stored.  An incomplete one is regenerated
    from its base color; one with no base color is skipped.
    """
    palette = NamedPalette()
    for name, objects in _group_ramp_objects(doc).items():
        base_step = _base_step_of(objects)
        base_obj = objects.get(base_step)
        if base_obj is None:
            logger.warning("Skipping palette %r: no %d step in document", name, base_step)
            continue

        try:
            if len(objects) == len(STEPS):
                ramp = Ramp(
                    base_step=base_step,
                    colors=tuple(parse_color(objects[s].get("value"), name=name) for s in STEPS),
                )
            else:
                logger.warning("Palette %r has %d/%d steps; regenerating", name, len(objects), len(STEPS))
                ramp = generate_ramp(parse_color(base_obj.get("value"), name=name), base_step, config)
        except ValidationError as exc:
            raise DocumentFormatError(f"Palette {name!r} in document: {exc}") from exc

        version = base_obj.get("version", 1)
        palette.add(PaletteEntry(
            name=name,
            ramp=ramp,
            id=_entry_id(base_obj),
            version=version if isinstance(version, int) else 1,
        ))
    return palette


def apply_palette_to_document(
    doc: LunacyDocument,
    palette: NamedPalette,
    names: Optional[Iterable[str]] = None,
) -> int:
    """Write ramps from ``palette`` into ``doc``, matching objects by name.

    Existing objects keep their id; their value is replaced and version
    bumped only if the value differs.  Missing steps are inserted after
    the palette's last existing object, or appended.  Only ``names``
    (default: every entry) are touched.

    Returns:
        Number of color objects created or modified.
    """
    selected = palette.names() if names is None else list(names)
    colors = doc.colors
    touched = 0

    for name in selected:
        entry = palette[name]
        index = {obj.get("name"): i for i, obj in enumerate(colors) if isinstance(obj, dict)}
        insert_at = None
        pending = []

        for step, color in entry.ramp.items():
            object_name = color_object_name(name, step)
            value = format_hex(color, prefix="")
            i = index.get(object_name)
            if i is None:
                pending.append(new_color_object(name, step, color, base_step=entry.base_step))
                touched += 1
                continue

            obj = colors[i]
            insert_at = i + 1 if insert_at is None else max(insert_at, i + 1)
            changed = False
            if str(obj.get("value", "")).upper() != value:
                obj["value"] = value
                changed = True
            if step == entry.base_step and obj.get(BASE_STEP_KEY) != {"base": step}:
                obj[BASE_STEP_KEY] = {"base": step}
                changed = True
            elif step != entry.base_step and BASE_STEP_KEY in obj:
                del obj[BASE_STEP_KEY]
                changed = True
            if changed:
                version = obj.get("version")
                obj["version"] = version + 1 if isinstance(version, int) else 1
                touched += 1

        if pending:
            if insert_at is None:
                colors.extend(pending)
            else:
                colors[insert_at:insert_at] = pending

    logger.debug("Applied %d palette(s) to document: %d color objects touched", len(selected), touched)
    return touched

