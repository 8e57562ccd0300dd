"""Convert legacy HTML page content into SSML-enhanced narration text."""

import re

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from page_narrator.ssml import break_tag, escape_xml

# heading tag → (emphasis level, trailing pause)
HEADING_MARKUP = {
    "h1": ("strong", "0.5s"),
    "h2": ("strong", "0.5s"),
    "h3": ("moderate", "0.4s"),
    "h4": ("moderate", "0.4s"),
    "h5": ("moderate", "0.3s"),
    "h6": ("moderate", "0.3s"),
}
BLOCK_END_PAUSE = "0.3s"
PAUSE_AFTER = ("p", "li", "blockquote")
SKIPPED_TAGS = ("script", "style")
INLINE_TAGS = ("a", "b", "strong", "i", "em", "u", "s", "code", "span", "mark", "sub", "sup", "small")


def _walk(node: Tag, out: list[str]) -> None:
    for child in node.children:
        # Comments, doctypes and other declarations are never spoken
        if isinstance(child, PreformattedString):
            continue
        if isinstance(child, NavigableString):
            out.append(escape_xml(str(child)))
            continue
        if not isinstance(child, Tag) or child.name in SKIPPED_TAGS:
            continue

        name = child.name
        if name in HEADING_MARKUP:
            level, pause = HEADING_MARKUP[name]
            inner = escape_xml(" ".join(child.get_text(" ").split()))
            out.append(f'<emphasis level="{level}">{inner}</emphasis>{break_tag(pause)}')
        elif name == "br":
            out.append(break_tag(BLOCK_END_PAUSE))
        elif name in INLINE_TAGS:
            _walk(child, out)
        else:
            out.append(" ")
            _walk(child, out)
            out.append(break_tag(BLOCK_END_PAUSE) if name in PAUSE_AFTER else " ")


def html_to_tts_text(html: str) -> str:
    """Turn page HTML into SSML text for pages without structured content.

    Headings become emphasis with a pause; paragraphs, list items, quotes
    and line breaks end with a short pause; every other tag is dropped.
    Entities are decoded and then re-escaped for SSML. Whitespace is
    collapsed to single spaces.
    """
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    out: list[str] = []
    _walk(soup, out)
    return re.sub(r"\s+", " ", "".join(out)).strip()
