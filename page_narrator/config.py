"""Narration settings, persisted as a small JSON key-value file."""

import json
import logging
from dataclasses import dataclass, fields

from page_narrator.artifacts import load_artifact, write_artifact
from page_narrator.constants import SETTINGS_FILENAME

logger = logging.getLogger(__name__)

MATCH_MODES = ("text", "path")
BOOL_SETTINGS = ("audio_blocks_enabled", "auto_scroll", "escape_markup")


@dataclass
class NarrationConfig:
    audio_blocks_enabled: bool = False   # gates annotation and data-audio-block rendering
    auto_scroll: bool = True             # scroll the highlighted block into view
    match_by: str = "text"               # "text" or "path" (structural, text fallback)
    escape_markup: bool = True           # escape &, <, > in SSML output

    def __post_init__(self):
        # Only real booleans; a stored "false" string is truthy
        for name in BOOL_SETTINGS:
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise ValueError(f"{name} must be true or false, got {value!r}")
        if self.match_by not in MATCH_MODES:
            raise ValueError(f"match_by must be one of {MATCH_MODES}, got {self.match_by!r}")


_BOOL_WORDS = {"true": True, "on": True, "1": True, "yes": True,
               "false": False, "off": False, "0": False, "no": False}


def parse_setting(key: str, value: str):
    """Convert a command-line string to the type of the named setting."""
    known = {f.name: f for f in fields(NarrationConfig)}
    if key not in known:
        raise KeyError(key)
    if key == "match_by":
        if value not in MATCH_MODES:
            raise ValueError(f"Invalid value for {key}: {value}")
        return value
    lowered = value.strip().lower()
    if lowered not in _BOOL_WORDS:
        raise ValueError(f"Invalid value for {key}: {value}")
    return _BOOL_WORDS[lowered]


def load_config(settings_dir: str) -> NarrationConfig:
    """Read settings.json into a NarrationConfig.

    Missing file → defaults. Malformed file or values → defaults, with a warning.
    """
    try:
        data = load_artifact(settings_dir, SETTINGS_FILENAME)
    except json.JSONDecodeError:
        logger.warning("Malformed settings file in %s — using defaults", settings_dir)
        return NarrationConfig()
    if not isinstance(data, dict):
        return NarrationConfig()

    known = {f.name for f in fields(NarrationConfig)}
    values = {k: v for k, v in data.items() if k in known}
    try:
        return NarrationConfig(**values)
    except (TypeError, ValueError) as e:
        logger.warning("Invalid settings in %s (%s) — using defaults", settings_dir, e)
        return NarrationConfig()


def save_setting(settings_dir: str, key: str, value) -> str:
    """Persist one setting, keeping the others. Returns the settings file path."""
    try:
        data = load_artifact(settings_dir, SETTINGS_FILENAME) or {}
    except json.JSONDecodeError:
        logger.warning("Overwriting malformed settings file in %s", settings_dir)
        data = {}
    data[key] = value
    return write_artifact(settings_dir, SETTINGS_FILENAME, data)
