"""Render a document to HTML and route click events through the rendered tree."""

import logging
from collections.abc import Callable

from bs4 import BeautifulSoup, NavigableString, Tag

from page_narrator.config import NarrationConfig
from page_narrator.constants import (
    ANNOTATED_NODE_TYPES,
    AUDIO_BLOCK_ATTR,
    AUDIO_BLOCK_DATA_ATTR,
)
from page_narrator.document import Document, DocumentNode

logger = logging.getLogger(__name__)

# Document node type → HTML tag
NODE_TAGS = {
    "paragraph": "p",
    "blockquote": "blockquote",
    "bulletList": "ul",
    "orderedList": "ol",
    "listItem": "li",
    "hardBreak": "br",
    "horizontalRule": "hr",
}

# Mark type → HTML tag
MARK_TAGS = {
    "bold": "strong",
    "italic": "em",
    "code": "code",
    "strike": "s",
    "underline": "u",
    "link": "a",
}


def get_classes(element: Tag) -> list[str]:
    classes = element.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    return list(classes)


def add_class(element: Tag, name: str) -> None:
    classes = get_classes(element)
    if name not in classes:
        element["class"] = classes + [name]


def remove_class(element: Tag, name: str) -> None:
    classes = [c for c in get_classes(element) if c != name]
    if classes:
        element["class"] = classes
    elif element.has_attr("class"):
        del element["class"]


def _render_text(soup: BeautifulSoup, node: DocumentNode):
    """Text leaf wrapped in one tag per mark, first mark outermost."""
    rendered = NavigableString(node.text or "")
    for mark in reversed(node.marks):
        tag_name = MARK_TAGS.get(mark.get("type"))
        if not tag_name:
            continue
        wrapper = soup.new_tag(tag_name)
        if tag_name == "a":
            href = (mark.get("attrs") or {}).get("href")
            if href:
                wrapper["href"] = href
        wrapper.append(rendered)
        rendered = wrapper
    return rendered


def _render_node(soup: BeautifulSoup, node: DocumentNode, config: NarrationConfig):
    if node.type == "text":
        return _render_text(soup, node)

    if node.type == "heading":
        level = node.attrs.get("level")
        level = level if isinstance(level, int) and 1 <= level <= 6 else 1
        element = soup.new_tag(f"h{level}")
    elif node.type == "codeBlock":
        element = soup.new_tag("pre")
        code = soup.new_tag("code")
        code.string = node.text_content
        element.append(code)
    else:
        element = soup.new_tag(NODE_TAGS.get(node.type, "div"))

    block_index = node.attrs.get(AUDIO_BLOCK_ATTR)
    if config.audio_blocks_enabled and node.type in ANNOTATED_NODE_TYPES and block_index is not None:
        element[AUDIO_BLOCK_DATA_ATTR] = str(block_index)

    if node.type != "codeBlock":
        for child in node.content:
            element.append(_render_node(soup, child, config))
    return element


def render_document(document: Document | None, config: NarrationConfig | None = None) -> BeautifulSoup:
    """Render the document into a container <div>.

    data-audio-block is emitted only while audio blocks are enabled and
    only on annotated nodes.
    """
    config = config or NarrationConfig()
    soup = BeautifulSoup("<div></div>", "html.parser")
    container = soup.div
    if document is not None:
        for child in document.root.content:
            container.append(_render_node(soup, child, config))
    return soup


class ClickEvent:
    def __init__(self, target: Tag):
        self.target = target
        self.current_target: Tag | None = None
        self.propagation_stopped = False

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


ClickHandler = Callable[[ClickEvent], None]


class ViewEvents:
    """Click listeners on rendered elements, bubbling from target to root."""

    def __init__(self):
        self._handlers: list[tuple[Tag, ClickHandler]] = []

    def add_listener(self, element: Tag, handler: ClickHandler) -> Callable[[], None]:
        """Listen for clicks on element. Returns a callable that removes the listener."""
        entry = (element, handler)
        self._handlers.append(entry)

        def remove():
            for i, existing in enumerate(self._handlers):
                if existing is entry:
                    del self._handlers[i]
                    break
        return remove

    def listener_count(self) -> int:
        return len(self._handlers)

    def clear(self) -> None:
        self._handlers.clear()

    def dispatch_click(self, target: Tag) -> ClickEvent:
        """Deliver a click to target, then to each ancestor until stopped."""
        event = ClickEvent(target)
        element = target
        while isinstance(element, Tag):
            event.current_target = element
            for el, handler in list(self._handlers):
                if el is element:
                    handler(event)
            if event.propagation_stopped:
                break
            element = element.parent
        return event


class Viewport:
    """Scrolling boundary of the host surface. The default only logs."""

    def scroll_into_view(self, element: Tag, behavior: str = "smooth", block: str = "center") -> None:
        logger.debug("scroll_into_view(%s, behavior=%s, block=%s)", element.name, behavior, block)


class PageView:
    """The rendered page: re-renders on every document change."""

    def __init__(self, config: NarrationConfig | None = None):
        self.config = config or NarrationConfig()
        self.soup = render_document(None, self.config)
        self.events = ViewEvents()
        self._render_listeners: list[Callable[["PageView"], None]] = []

    def render(self, document: Document) -> BeautifulSoup:
        self.soup = render_document(document, self.config)
        # Old elements are gone along with their listeners
        self.events.clear()
        for listener in list(self._render_listeners):
            listener(self)
        return self.soup

    def attach(self, document: Document) -> Callable[[], None]:
        """Render now and on every change. Returns an unsubscribe callable."""
        self.render(document)
        return document.subscribe(self.render)

    def on_render(self, listener: Callable[["PageView"], None]) -> Callable[[], None]:
        self._render_listeners.append(listener)

        def unsubscribe():
            if listener in self._render_listeners:
                self._render_listeners.remove(listener)
        return unsubscribe

    def annotated_elements(self) -> list[Tag]:
        return self.soup.find_all(attrs={AUDIO_BLOCK_DATA_ATTR: True})

    def find_block(self, index: int) -> Tag | None:
        return self.soup.find(attrs={AUDIO_BLOCK_DATA_ATTR: str(index)})

    def find_by_class(self, name: str) -> list[Tag]:
        return self.soup.find_all(class_=name)

    def click(self, element: Tag) -> ClickEvent:
        return self.events.dispatch_click(element)

    def to_html(self) -> str:
        return str(self.soup)
