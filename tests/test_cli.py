"""Tests for CLI module."""

import json
from unittest.mock import patch

import pytest

from page_narrator.cli import main
from page_narrator.constants import AUDIO_BLOCKS_ENABLED_KEY


# --- Helpers ---

def _write_doc(tmp_path, tree, name="page.json"):
    path = tmp_path / name
    path.write_text(json.dumps(tree))
    return str(path)


def _run(*argv):
    with patch("sys.argv", ["page-narrator", *argv]):
        main()


@pytest.fixture
def settings_dir(tmp_path, monkeypatch):
    """Point the CLI at a throwaway settings directory."""
    path = str(tmp_path / "settings")
    monkeypatch.setattr("page_narrator.cli.SETTINGS_DIR", path)
    return path


def _enable(settings_dir):
    _run("set", AUDIO_BLOCKS_ENABLED_KEY, "on")


# --- Basics ---

def test_no_command_prints_help(capsys):
    _run()
    assert "usage: page-narrator" in capsys.readouterr().out


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        _run("--version")
    assert exc.value.code == 0
    assert "0.1.0" in capsys.readouterr().out


def test_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        _run("blocks", str(tmp_path / "nope.json"))
    assert exc.value.code == 1
    assert "File not found" in capsys.readouterr().err


def test_invalid_json(tmp_path, capsys):
    path = tmp_path / "bad.json"
    path.write_text("{oops")
    with pytest.raises(SystemExit):
        _run("blocks", str(path))
    assert "Invalid JSON" in capsys.readouterr().err


def test_not_a_tree(tmp_path, capsys):
    with pytest.raises(SystemExit):
        _run("blocks", _write_doc(tmp_path, [1, 2]))
    assert "Not a document tree" in capsys.readouterr().err


# --- blocks ---

def test_blocks(tmp_path, sample_doc, capsys):
    _run("blocks", _write_doc(tmp_path, sample_doc))
    out = capsys.readouterr().out
    assert "heading(1)" in out
    assert "Chapter One" in out
    assert "6 blocks" in out


def test_blocks_empty(tmp_path, capsys):
    _run("blocks", _write_doc(tmp_path, {"type": "doc", "content": []}))
    assert "No narratable blocks." in capsys.readouterr().out


# --- ssml ---

def test_ssml_document(tmp_path, sample_doc, settings_dir, capsys):
    _run("ssml", _write_doc(tmp_path, sample_doc))
    out = capsys.readouterr().out.strip()
    assert out.startswith("<speak>")
    assert out.endswith("</speak>")
    assert out.count("<speak>") == 1


def test_ssml_single_block(tmp_path, sample_doc, settings_dir, capsys):
    _run("ssml", _write_doc(tmp_path, sample_doc), "--block", "2")
    assert capsys.readouterr().out.strip() == '<break time="0.15s"/>Apples<break time="0.3s"/>'


def test_ssml_missing_block(tmp_path, sample_doc, settings_dir, capsys):
    with pytest.raises(SystemExit) as exc:
        _run("ssml", _write_doc(tmp_path, sample_doc), "--block", "42")
    assert exc.value.code == 1
    assert "Block 42 not found" in capsys.readouterr().err


def test_ssml_escape_setting(tmp_path, settings_dir, capsys):
    doc = {"type": "doc", "content": [{"type": "paragraph", "content": [{"type": "text", "text": "A & B"}]}]}
    path = _write_doc(tmp_path, doc)
    _run("ssml", path)
    assert "A &amp; B" in capsys.readouterr().out

    _run("set", "escape_markup", "off")
    capsys.readouterr()
    _run("ssml", path)
    assert "A & B" in capsys.readouterr().out


# --- annotate ---

def test_annotate_disabled_warns(tmp_path, sample_doc, settings_dir, capsys):
    _run("annotate", _write_doc(tmp_path, sample_doc))
    captured = capsys.readouterr()
    assert "audio blocks are disabled" in captured.err
    assert json.loads(captured.out) == sample_doc


def test_annotate_to_file(tmp_path, sample_doc, settings_dir, capsys):
    _enable(settings_dir)
    out_path = tmp_path / "annotated.json"
    _run("annotate", _write_doc(tmp_path, sample_doc), "-o", str(out_path))

    assert "Annotated 8 node(s)" in capsys.readouterr().out
    annotated = json.loads(out_path.read_text())
    assert annotated["content"][0]["attrs"] == {"level": 1, "audioBlock": 0}


# --- render ---

def test_render(tmp_path, sample_doc, settings_dir, capsys):
    _enable(settings_dir)
    capsys.readouterr()
    _run("render", _write_doc(tmp_path, sample_doc))
    out = capsys.readouterr().out
    assert '<h1 data-audio-block="0">Chapter One</h1>' in out


def test_render_disabled_has_no_targets(tmp_path, sample_doc, settings_dir, capsys):
    _run("render", _write_doc(tmp_path, sample_doc))
    assert "data-audio-block" not in capsys.readouterr().out


# --- manifest ---

def test_manifest_reports_changes(tmp_path, sample_doc, capsys):
    project_dir = str(tmp_path / "project")
    doc_path = _write_doc(tmp_path, sample_doc)

    _run("manifest", doc_path, project_dir)
    assert "Created manifest with 6 blocks" in capsys.readouterr().out

    _run("manifest", doc_path, project_dir)
    assert "All 6 blocks up to date" in capsys.readouterr().out

    sample_doc["content"][1]["content"][2]["text"] = " morning."
    _run("manifest", _write_doc(tmp_path, sample_doc), project_dir)
    assert "1 of 6 blocks changed: 1" in capsys.readouterr().out


# --- timeline ---

def test_timeline(tmp_path, sample_doc, capsys):
    _run("timeline", _write_doc(tmp_path, sample_doc))
    out = capsys.readouterr().out
    assert "Chapter One" in out
    # 17 words at 150 wpm
    assert "Total: 6.8s" in out


# --- set ---

def test_set_persists(settings_dir, capsys):
    _run("set", "auto_scroll", "off")
    assert "Updated: auto_scroll → False" in capsys.readouterr().out
    with open(f"{settings_dir}/settings.json") as f:
        assert json.load(f) == {"auto_scroll": False}


def test_set_invalid_key(settings_dir, capsys):
    with pytest.raises(SystemExit) as exc:
        _run("set", "volume", "11")
    assert exc.value.code == 1
    assert "Invalid setting key" in capsys.readouterr().err


def test_set_invalid_value(settings_dir, capsys):
    with pytest.raises(SystemExit):
        _run("set", "match_by", "fuzzy")
    assert "Invalid value for match_by" in capsys.readouterr().err
