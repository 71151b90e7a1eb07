"""Tests for the command-line interface."""

from __future__ import annotations

import json

from typer.testing import CliRunner

from tintsmith import __version__
from tintsmith.cli.app import app
from tintsmith.io.lunacy import palette_from_document, read_document

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_generate_json():
    result = runner.invoke(app, ["generate", "dark", "#121212", "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["dark"]["500"] == "#121212"
    assert data["dark"]["step"] == 500


def test_generate_table():
    result = runner.invoke(app, ["generate", "pink", "#FF00FF", "--step", "300"])
    assert result.exit_code == 0, result.output
    assert "#FF00FF" in result.output


def test_generate_invalid_step():
    result = runner.invoke(app, ["generate", "pink", "#FF00FF", "--step", "450"])
    assert result.exit_code == 1
    assert "Invalid step" in result.output


def test_generate_invalid_color():
    result = runner.invoke(app, ["generate", "pink", "not-a-color"])
    assert result.exit_code == 1


def test_emit():
    result = runner.invoke(app, ["emit", "dark", "1D2023"])
    assert result.exit_code == 0, result.output
    objects = json.loads(result.output)
    assert len(objects) == 9
    assert objects[4]["name"] == "Palette / dark / dark.500"
    assert objects[4]["value"] == "1D2023"


def test_update_json(definitions_file):
    result = runner.invoke(app, ["update", str(definitions_file), "--color", "teal:#119988:700"])
    assert result.exit_code == 0, result.output
    saved = json.loads(definitions_file.read_text(encoding="utf-8"))
    assert list(saved) == ["dark", "pink", "teal"]
    assert saved["teal"]["700"] == "#119988"


def test_update_document_from_json(pink_document, tmp_path):
    defs = tmp_path / "defs.json"
    defs.write_text(json.dumps({"pink": {"value": "#FF00FF", "step": 300}}))
    result = runner.invoke(app, ["update", str(pink_document), "--from-json", str(defs)])
    assert result.exit_code == 0, result.output
    palette = palette_from_document(read_document(pink_document))
    assert palette["pink"].ramp[300].hex == "#FF00FF"


def test_update_error_exit_code(pink_document):
    original = pink_document.read_bytes()
    result = runner.invoke(app, ["update", str(pink_document), "-c", "x:not-a-color"])
    assert result.exit_code == 1
    assert pink_document.read_bytes() == original


def test_update_bad_policy(pink_document):
    result = runner.invoke(app, ["update", str(pink_document), "-c", "x:#000000", "--policy", "first"])
    assert result.exit_code != 0


def test_show(pink_document):
    result = runner.invoke(app, ["show", str(pink_document)])
    assert result.exit_code == 0, result.output
    assert "pink" in result.output


def test_show_missing_name(pink_document):
    result = runner.invoke(app, ["show", str(pink_document), "--name", "teal"])
    assert result.exit_code == 1


def test_update_with_prefix(definitions_file):
    result = runner.invoke(
        app, ["update", str(definitions_file), "-c", "teal:#119988", "--prefix", "brand-"],
    )
    assert result.exit_code == 0, result.output
    saved = json.loads(definitions_file.read_text(encoding="utf-8"))
    assert list(saved) == ["dark", "pink", "brand-teal"]


def test_extract(pink_document):
    result = runner.invoke(app, ["extract", str(pink_document)])
    assert result.exit_code == 0, result.output
    out = pink_document.with_name("doc_extracted")
    doc = json.loads((out / "document.json").read_text(encoding="utf-8"))
    assert len(doc["colors"]) == 10


def test_extract_custom_destination(pink_document, tmp_path):
    dest = tmp_path / "inspect"
    result = runner.invoke(app, ["extract", str(pink_document), "--dest", str(dest)])
    assert result.exit_code == 0, result.output
    assert (dest / "pages" / "page-1.json").exists()


def test_extract_not_a_document(definitions_file):
    result = runner.invoke(app, ["extract", str(definitions_file)])
    assert result.exit_code == 1
