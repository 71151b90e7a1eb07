"""Shared fixtures for TintSmith tests."""

from __future__ import annotations

import json
import uuid
import zipfile

import numpy as np
import pytest

from tintsmith.core.types import Color, RampConfig


@pytest.fixture
def ramp_config():
    """Default ramp curve parameters."""
    return RampConfig()


@pytest.fixture
def pink():
    return Color.from_hex("#C92ABB")


@pytest.fixture
def dark():
    return Color.from_hex("#121212")


@pytest.fixture
def random_colors():
    """200 random opaque colors."""
    rng = np.random.default_rng(42)
    channels = rng.integers(0, 256, size=(200, 3))
    return [Color(int(r), int(g), int(b)) for r, g, b in channels]


@pytest.fixture
def edge_colors():
    """Black, white, greys and fully saturated primaries."""
    return [
        Color(0, 0, 0),
        Color(255, 255, 255),
        Color(1, 1, 1),
        Color(254, 254, 254),
        Color(128, 128, 128),
        Color(255, 0, 0),
        Color(0, 255, 0),
        Color(0, 0, 255),
        Color(255, 0, 255),
    ]


def _lunacy_id() -> str:
    from tintsmith.io.lunacy import encode_id
    return encode_id(uuid.uuid4())


@pytest.fixture
def make_document(tmp_path):
    """Factory writing a minimal .free archive.

    Returns a callable (colors, name="doc.free") -> Path.  The archive
    also holds an unrelated page member and top-level document fields.
    """

    def _make(colors, name="doc.free"):
        path = tmp_path / name
        document = {
            "version": 7,
            "name": "Design System",
            "colors": colors,
            "pages": ["page-1"],
        }
        with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as archive:
            archive.writestr("document.json", json.dumps(document))
            archive.writestr("pages/page-1.json", b'{"fills":[{"color":"ref"}]}')
            archive.writestr("images/logo.png", b"\x89PNG\r\n\x1a\nfake")
        return path

    return _make


@pytest.fixture
def pink_document(make_document, pink):
    """Document with a full 'pink' ramp at step 500 and an unrelated color."""
    from tintsmith.core.ramp import generate_ramp
    from tintsmith.io.lunacy import ramp_color_objects

    ramp = generate_ramp(pink, 500)
    colors = ramp_color_objects("pink", ramp)
    colors.insert(0, {"id": _lunacy_id(), "version": 3, "name": "Brand / Logo", "value": "0A0B0C"})
    return make_document(colors)


@pytest.fixture
def definitions_file(tmp_path):
    """JSON definition file with two colors and no generated ramps."""
    path = tmp_path / "colors.json"
    path.write_text(
        json.dumps({
            "dark": {"value": "#121212"},
            "pink": {"value": "#c92abb", "step": 500, "note": "brand"},
        }, indent=2),
        encoding="utf-8",
    )
    return path
