"""Shared fixtures for page narrator tests."""

import pytest
from pydub import AudioSegment

from page_narrator.config import NarrationConfig


def _text(value, marks=None):
    node = {"type": "text", "text": value}
    if marks:
        node["marks"] = [{"type": m} for m in marks]
    return node


@pytest.fixture
def enabled_config():
    return NarrationConfig(audio_blocks_enabled=True)


@pytest.fixture
def disabled_config():
    return NarrationConfig(audio_blocks_enabled=False)


@pytest.fixture
def sample_doc():
    """A small page: heading, formatted paragraph, list, quote and code."""
    return {
        "type": "doc",
        "content": [
            {"type": "heading", "attrs": {"level": 1}, "content": [_text("Chapter One")]},
            {"type": "paragraph", "content": [
                _text("It was a "),
                _text("dark", marks=["bold"]),
                _text(" night."),
            ]},
            {"type": "bulletList", "content": [
                {"type": "listItem", "content": [{"type": "paragraph", "content": [_text("Apples")]}]},
                {"type": "listItem", "content": [{"type": "paragraph", "content": [_text("Bananas")]}]},
            ]},
            {"type": "blockquote", "content": [
                {"type": "paragraph", "content": [_text("To be or not to be.")]},
            ]},
            {"type": "codeBlock", "content": [_text("print('hi')")]},
        ],
    }


@pytest.fixture
def tiny_wav(tmp_path):
    """Generate a 250ms silent WAV for testing."""
    path = tmp_path / "clip.wav"
    AudioSegment.silent(duration=250).export(str(path), format="wav")
    return path
