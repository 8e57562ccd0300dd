"""Render blocks as SSML with pacing and emphasis for narration."""

import html
import re

from page_narrator.models import Block
from page_narrator.constants import (
    HEADING_1_PAUSE,
    HEADING_2_PAUSE,
    HEADING_PAUSE,
    BLOCKQUOTE_PAUSE,
    BLOCKQUOTE_PITCH,
    LIST_ITEM_LEAD_PAUSE,
    LIST_ITEM_PAUSE,
    PARAGRAPH_PAUSE,
    CODE_BLOCK_PAUSE,
    CODE_BLOCK_TEXT,
    OTHER_LONG_PAUSE,
    OTHER_SHORT_PAUSE,
    LONG_TEXT_CHARS,
    SENTENCE_BREAK,
    CLAUSE_BREAK,
    DASH_BREAK,
    ELLIPSIS_BREAK,
)

_SENTENCE_END_RE = re.compile(r"([.!?])\s+")
# The semicolon closing an escaped entity is not a clause break
_CLAUSE_RE = re.compile(r"(?<!&amp)(?<!&lt)(?<!&gt)([,;:])\s+")
_DASH_RE = re.compile(r"\s*—\s*")
_ELLIPSIS_RE = re.compile(r"\.\.\.\s*")


def break_tag(time: str) -> str:
    return f'<break time="{time}"/>'


def escape_xml(text: str) -> str:
    """Escape &, < and > so narrated text cannot open or close tags."""
    return html.escape(text, quote=False)


def add_sentence_breaks(text: str) -> str:
    """Insert pauses after sentence ends, clause punctuation, dashes and ellipses."""
    text = _SENTENCE_END_RE.sub(lambda m: m.group(1) + break_tag(SENTENCE_BREAK) + " ", text)
    text = _CLAUSE_RE.sub(lambda m: m.group(1) + break_tag(CLAUSE_BREAK) + " ", text)
    text = _DASH_RE.sub(" " + break_tag(DASH_BREAK) + " ", text)
    text = _ELLIPSIS_RE.sub("..." + break_tag(ELLIPSIS_BREAK) + " ", text)
    return text


def _heading_ssml(text: str, level: int | None) -> str:
    if level == 1 or level is None:
        emphasis, pause = "strong", HEADING_1_PAUSE
    elif level == 2:
        emphasis, pause = "moderate", HEADING_2_PAUSE
    else:
        emphasis, pause = "moderate", HEADING_PAUSE
    return f'<emphasis level="{emphasis}">{text}</emphasis>{break_tag(pause)}'


def block_to_ssml(block: Block, escape: bool = True) -> str:
    """Convert one block to SSML.

    Pause lengths and emphasis depend only on block type (and heading level).
    With escape=False the text is embedded as-is and must already be safe.
    """
    text = escape_xml(block.text) if escape else block.text

    if block.type == "heading":
        return _heading_ssml(text, block.level)

    if block.type == "blockquote":
        return (
            f"{break_tag(BLOCKQUOTE_PAUSE)}"
            f'<prosody pitch="{BLOCKQUOTE_PITCH}">{text}</prosody>'
            f"{break_tag(BLOCKQUOTE_PAUSE)}"
        )

    if block.type == "listItem":
        return break_tag(LIST_ITEM_LEAD_PAUSE) + add_sentence_breaks(text) + break_tag(LIST_ITEM_PAUSE)

    if block.type == "paragraph":
        return add_sentence_breaks(text) + break_tag(PARAGRAPH_PAUSE)

    if block.type == "codeBlock":
        return break_tag(CODE_BLOCK_PAUSE) + CODE_BLOCK_TEXT + break_tag(CODE_BLOCK_PAUSE)

    # Length is judged on the source text, not the escaped form
    if len(block.text) > LONG_TEXT_CHARS:
        return add_sentence_breaks(text) + break_tag(OTHER_LONG_PAUSE)
    return text + break_tag(OTHER_SHORT_PAUSE)


def blocks_to_ssml(blocks: list[Block], escape: bool = True) -> str:
    """Concatenate per-block SSML in block order."""
    return "".join(block_to_ssml(block, escape=escape) for block in blocks)


def wrap_in_speak_tag(ssml: str) -> str:
    return f"<speak>{ssml}</speak>"


def compose_document(blocks: list[Block], escape: bool = True) -> str:
    """Full-document SSML: every block's markup, wrapped once in <speak>."""
    return wrap_in_speak_tag(blocks_to_ssml(blocks, escape=escape))
