"""Tests for Lunacy .free document I/O and palette binding."""

from __future__ import annotations

import json
import uuid
import zipfile

import pytest

from tintsmith.config import STEPS
from tintsmith.core.palette import apply_updates
from tintsmith.core.ramp import generate_ramp
from tintsmith.core.types import ColorRequest
from tintsmith.errors import DocumentFormatError
from tintsmith.io.lunacy import (
    apply_palette_to_document,
    color_object_name,
    decode_id,
    encode_id,
    extract_document,
    palette_from_document,
    parse_color_object_name,
    ramp_color_objects,
    read_document,
    write_document,
)


class TestIds:

    def test_zero_uuid(self):
        assert encode_id(uuid.UUID(int=0)) == "A" * 22

    def test_roundtrip(self):
        value = uuid.uuid4()
        encoded = encode_id(value)
        assert "=" not in encoded and len(encoded) == 22
        assert decode_id(encoded) == value

    @pytest.mark.parametrize("text", ["***", "AAAA"])
    def test_invalid(self, text):
        with pytest.raises(DocumentFormatError):
            decode_id(text)


class TestNames:

    def test_object_name(self):
        assert color_object_name("pink", 300) == "Palette / pink / pink.300"

    def test_parse_object_name(self):
        assert parse_color_object_name("Palette / dark grey / dark grey.900") == ("dark grey", 900)

    @pytest.mark.parametrize(
        "text",
        ["Brand / Logo", "Palette / pink / pink.450", "Palette / pink / teal.500", None, "Palette / pink"],
    )
    def test_non_ramp_names(self, text):
        assert parse_color_object_name(text) is None


class TestEmit:

    def test_ramp_color_objects(self, pink):
        objects = ramp_color_objects("pink", generate_ramp(pink))
        assert [o["name"] for o in objects] == [f"Palette / pink / pink.{s}" for s in STEPS]
        assert objects[4]["value"] == "C92ABB"
        assert all(o["version"] == 1 for o in objects)
        assert len({o["id"] for o in objects}) == 9
        assert objects[4]["tintsmith"] == {"base": 500}
        assert "tintsmith" not in objects[0]


class TestReadWrite:

    def test_read(self, pink_document):
        doc = read_document(pink_document)
        assert doc.document["name"] == "Design System"
        assert len(doc.colors) == 10
        assert set(doc.members) == {"pages/page-1.json", "images/logo.png"}

    def test_write_preserves_other_members(self, pink_document, tmp_path):
        doc = read_document(pink_document)
        out = write_document(doc, tmp_path / "out.free")
        with zipfile.ZipFile(out) as archive:
            assert archive.namelist() == ["document.json", "pages/page-1.json", "images/logo.png"]
            assert archive.read("images/logo.png") == b"\x89PNG\r\n\x1a\nfake"
            document = json.loads(archive.read("document.json"))
        assert document["pages"] == ["page-1"]
        assert document["colors"] == doc.colors

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_document(tmp_path / "missing.free")

    def test_wrong_extension(self, tmp_path):
        p = tmp_path / "doc.sketch"
        p.write_bytes(b"")
        with pytest.raises(DocumentFormatError):
            read_document(p)

    def test_not_a_zip(self, tmp_path):
        p = tmp_path / "doc.free"
        p.write_text("plain text")
        with pytest.raises(DocumentFormatError):
            read_document(p)

    def test_missing_document_json(self, tmp_path):
        p = tmp_path / "doc.free"
        with zipfile.ZipFile(p, "w") as archive:
            archive.writestr("other.json", "{}")
        with pytest.raises(DocumentFormatError):
            read_document(p)

    def test_corrupt_document_json(self, tmp_path):
        p = tmp_path / "doc.free"
        with zipfile.ZipFile(p, "w") as archive:
            archive.writestr("document.json", "{not json")
        with pytest.raises(DocumentFormatError):
            read_document(p)

    def test_extract(self, pink_document, tmp_path):
        dest = extract_document(pink_document, tmp_path / "extracted")
        assert (dest / "document.json").exists()
        assert (dest / "pages" / "page-1.json").exists()

    def test_extract_rejects_traversal(self, tmp_path):
        p = tmp_path / "evil.free"
        with zipfile.ZipFile(p, "w") as archive:
            archive.writestr("document.json", "{}")
            archive.writestr("../escape.txt", "x")
        with pytest.raises(DocumentFormatError):
            extract_document(p, tmp_path / "out")
        assert not (tmp_path / "escape.txt").exists()


class TestPaletteBinding:

    def test_palette_from_document(self, pink_document, pink):
        doc = read_document(pink_document)
        palette = palette_from_document(doc)
        assert palette.names() == ["pink"]
        entry = palette["pink"]
        assert entry.base_step == 500
        assert entry.ramp == generate_ramp(pink, 500)
        assert entry.id == decode_id(doc.colors[5]["id"])

    def test_incomplete_ramp_regenerated(self, make_document, pink):
        objects = ramp_color_objects("pink", generate_ramp(pink))
        del objects[0]
        doc = read_document(make_document(objects))
        palette = palette_from_document(doc)
        assert palette["pink"].ramp == generate_ramp(pink)

    def test_missing_base_skipped(self, make_document, pink):
        objects = ramp_color_objects("pink", generate_ramp(pink))
        del objects[4]
        palette = palette_from_document(read_document(make_document(objects)))
        assert "pink" not in palette

    def test_bad_value_reported(self, make_document, pink):
        objects = ramp_color_objects("pink", generate_ramp(pink))
        objects[2]["value"] = "zzz"
        with pytest.raises(DocumentFormatError):
            palette_from_document(read_document(make_document(objects)))

    def test_update_keeps_ids_and_unrelated_objects(self, pink_document):
        doc = read_document(pink_document)
        original = json.loads(json.dumps(doc.colors))
        palette = palette_from_document(doc)

        summary = apply_updates(palette, [ColorRequest("pink", "#FF00FF", 300)])
        touched = apply_palette_to_document(doc, palette, summary.changed)

        assert touched > 0
        assert len(doc.colors) == 10
        assert doc.colors[0] == original[0]
        assert [o["id"] for o in doc.colors] == [o["id"] for o in original]
        by_name = {o["name"]: o for o in doc.colors}
        assert by_name["Palette / pink / pink.300"]["value"] == "FF00FF"
        assert by_name["Palette / pink / pink.300"]["tintsmith"] == {"base": 300}
        assert "tintsmith" not in by_name["Palette / pink / pink.500"]
        assert by_name["Palette / pink / pink.300"]["version"] == 2

    def test_base_step_survives_roundtrip(self, pink_document, tmp_path):
        doc = read_document(pink_document)
        palette = palette_from_document(doc)
        summary = apply_updates(palette, [ColorRequest("pink", "#FF00FF", 300)])
        apply_palette_to_document(doc, palette, summary.changed)
        out = write_document(doc, tmp_path / "out.free")

        reloaded = palette_from_document(read_document(out))
        assert reloaded["pink"].base_step == 300
        assert reloaded["pink"].ramp == palette["pink"].ramp

    def test_new_palette_appended(self, pink_document, dark):
        doc = read_document(pink_document)
        palette = palette_from_document(doc)
        summary = apply_updates(palette, [ColorRequest("dark", "#121212")])
        apply_palette_to_document(doc, palette, summary.changed)

        assert len(doc.colors) == 19
        assert [o["name"] for o in doc.colors[-9:]] == [f"Palette / dark / dark.{s}" for s in STEPS]
        assert doc.colors[-5]["value"] == "121212"

    def test_missing_steps_inserted_next_to_palette(self, make_document, pink):
        objects = ramp_color_objects("pink", generate_ramp(pink))
        tail = {"id": encode_id(uuid.uuid4()), "version": 1, "name": "Other", "value": "FFFFFF"}
        doc = read_document(make_document(objects[:5] + [tail]))
        palette = palette_from_document(doc)
        apply_palette_to_document(doc, palette)

        names = [o["name"] for o in doc.colors]
        assert names[-1] == "Other"
        assert names[:9] == [f"Palette / pink / pink.{s}" for s in STEPS]

    def test_unchanged_palette_untouched(self, pink_document):
        doc = read_document(pink_document)
        original = json.loads(json.dumps(doc.colors))
        palette = palette_from_document(doc)
        assert apply_palette_to_document(doc, palette) == 0
        assert doc.colors == original
