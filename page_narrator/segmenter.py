"""Split a rich-text document tree into narratable blocks."""

import re
from collections.abc import Mapping

from page_narrator.models import Block
from page_narrator.constants import (
    MAX_PARAGRAPH_WORDS,
    MIN_OTHER_TEXT_CHARS,
    CODE_BLOCK_TEXT,
)

# A run of non-terminators followed by one or more terminators.
# Text after the last terminator is not a sentence and is not narrated.
_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+")

_LIST_TYPES = ("bulletList", "orderedList")


def _children(node) -> list:
    """Return a node's child list, or [] when absent or malformed."""
    if not isinstance(node, Mapping):
        return []
    content = node.get("content")
    if isinstance(content, list):
        return content
    return []


def extract_text(node) -> str:
    """Concatenate the literal text of every text leaf under node.

    Marks and other formatting are ignored; only text feeds narration.
    """
    if not isinstance(node, Mapping):
        return ""
    if node.get("type") == "text":
        text = node.get("text")
        return text if isinstance(text, str) else ""
    return "".join(extract_text(child) for child in _children(node))


def has_text_content(node) -> bool:
    return bool(extract_text(node).strip())


def word_count(text: str) -> int:
    return len(text.split())


def split_sentences(text: str) -> list[str]:
    """Split text at sentence terminators. Falls back to [text].

    Sentences keep their leading whitespace, so stored chunk text (and its
    content hash) matches what the web editor produces for the same page.
    """
    return _SENTENCE_RE.findall(text) or [text]


def _split_large_paragraph(
    text: str,
    start_index: int,
    path: tuple[int, ...],
    max_words: int = MAX_PARAGRAPH_WORDS,
) -> list[Block]:
    """Group sentences into chunks of at most max_words words.

    A single sentence longer than max_words is kept whole. Only the ends of
    a chunk are trimmed; the space before each sentence is kept inside it.
    """
    blocks = []
    current = ""
    index = start_index

    for sentence in split_sentences(text):
        candidate = (current + " " + sentence).strip()
        if current and word_count(candidate) > max_words:
            blocks.append(Block(index=index, type="paragraph", text=current.strip(), path=path))
            index += 1
            current = sentence
        else:
            current = candidate

    if current.strip():
        blocks.append(Block(index=index, type="paragraph", text=current.strip(), path=path))

    return blocks


def _process_list_items(
    list_node,
    start_index: int,
    path: tuple[int, ...],
) -> list[Block]:
    """Flatten a list into one block per non-empty item.

    An item's text includes the text of any list nested inside it.
    """
    blocks = []
    index = start_index
    for i, item in enumerate(_children(list_node)):
        if not isinstance(item, Mapping) or item.get("type") != "listItem":
            continue
        text = extract_text(item).strip()
        if text:
            blocks.append(Block(index=index, type="listItem", text=text, path=path + (i,)))
            index += 1
    return blocks


def _heading_level(node) -> int:
    attrs = node.get("attrs")
    if isinstance(attrs, Mapping):
        level = attrs.get("level")
        if isinstance(level, int) and not isinstance(level, bool) and level > 0:
            return level
    return 1


def segment(tree) -> list[Block]:
    """Convert a document tree into an ordered list of Blocks.

    Top-level nodes are visited in order. Indices run 0..N-1 across the
    whole pass, counting every paragraph chunk and list item. Malformed or
    empty trees give [].
    """
    blocks: list[Block] = []

    for i, node in enumerate(_children(tree)):
        if not isinstance(node, Mapping):
            continue
        text = extract_text(node).strip()
        if not text:
            continue

        node_type = node.get("type")
        index = len(blocks)
        path = (i,)

        if node_type == "heading":
            blocks.append(Block(
                index=index, type="heading", text=text,
                level=_heading_level(node), path=path,
            ))

        elif node_type == "paragraph":
            if word_count(text) > MAX_PARAGRAPH_WORDS:
                blocks.extend(_split_large_paragraph(text, index, path))
            else:
                blocks.append(Block(index=index, type="paragraph", text=text, path=path))

        elif node_type == "blockquote":
            blocks.append(Block(index=index, type="blockquote", text=text, path=path))

        elif node_type in _LIST_TYPES:
            blocks.extend(_process_list_items(node, index, path))

        elif node_type == "codeBlock":
            blocks.append(Block(index=index, type="codeBlock", text=CODE_BLOCK_TEXT, path=path))

        elif len(text) > MIN_OTHER_TEXT_CHARS:
            blocks.append(Block(
                index=index, type=node_type if isinstance(node_type, str) and node_type else "unknown",
                text=text, path=path,
            ))

    return blocks
