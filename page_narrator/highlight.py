"""Keep the playing block highlighted and turn clicks on blocks into seeks."""

import logging
from collections.abc import Callable

from bs4 import Tag

from page_narrator.constants import AUDIO_BLOCK_DATA_ATTR, HIGHLIGHT_CLASS
from page_narrator.models import PlaybackState
from page_narrator.view import ClickEvent, PageView, Viewport, add_class, remove_class

logger = logging.getLogger(__name__)


def closest_annotated(element) -> Tag | None:
    """Nearest ancestor-or-self carrying a block index."""
    while isinstance(element, Tag):
        if element.has_attr(AUDIO_BLOCK_DATA_ATTR):
            return element
        element = element.parent
    return None


def read_block_index(element: Tag) -> int | None:
    try:
        return int(element[AUDIO_BLOCK_DATA_ATTR])
    except (KeyError, TypeError, ValueError):
        return None


class HighlightSynchronizer:
    """Observer pairing playback state with the rendered page.

    update() moves the highlight; bind_seek() wires clicks to a seek
    callback. Both are silent when nothing matches.
    """

    def __init__(
        self,
        view: PageView,
        viewport: Viewport | None = None,
        auto_scroll: bool | None = None,
    ):
        self.view = view
        self.viewport = viewport or Viewport()
        self.auto_scroll = view.config.auto_scroll if auto_scroll is None else auto_scroll
        self.state = PlaybackState()
        self._on_seek: Callable[[int], None] | None = None
        self._unbind: list[Callable[[], None]] = []
        self._stop_watching = view.on_render(self._rendered)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    # --- Highlight ---

    def clear_highlight(self) -> None:
        for element in self.view.find_by_class(HIGHLIGHT_CLASS):
            remove_class(element, HIGHLIGHT_CLASS)

    def update(self, state: PlaybackState) -> Tag | None:
        """Apply playback state. Returns the highlighted element, if any."""
        return self._apply(state, scroll=self.auto_scroll)

    def _apply(self, state: PlaybackState, scroll: bool) -> Tag | None:
        self.state = state
        self.clear_highlight()

        if not state.is_playing or state.current_block_index is None:
            return None

        element = self.view.find_block(state.current_block_index)
        if element is None:
            logger.debug("No rendered block %s to highlight", state.current_block_index)
            return None

        add_class(element, HIGHLIGHT_CLASS)
        if scroll:
            self.viewport.scroll_into_view(element, behavior="smooth", block="center")
        return element

    # --- Click to seek ---

    def _handle_click(self, event: ClickEvent) -> None:
        # Nested blocks: only the innermost one reacts
        event.stop_propagation()
        element = closest_annotated(event.target)
        if element is None or self._on_seek is None:
            return
        index = read_block_index(element)
        if index is None:
            logger.debug("Unreadable block index on <%s>", element.name)
            return
        self._on_seek(index)

    def _unbind_all(self) -> None:
        for unbind in self._unbind:
            unbind()
        self._unbind = []

    def _bind_all(self) -> None:
        if self._on_seek is None:
            return
        for element in self.view.annotated_elements():
            self._unbind.append(self.view.events.add_listener(element, self._handle_click))

    def bind_seek(self, on_seek: Callable[[int], None] | None) -> None:
        """Route clicks on annotated blocks to on_seek(index), replacing any previous callback."""
        self._unbind_all()
        self._on_seek = on_seek
        self._bind_all()

    def refresh(self) -> None:
        """Re-register click handlers against the current annotated elements."""
        self._unbind_all()
        self._bind_all()

    def _rendered(self, view: PageView) -> None:
        self.refresh()
        # Same block, fresh elements: restore the marker without scrolling again
        self._apply(self.state, scroll=False)

    def close(self) -> None:
        """Remove every handler and stop following re-renders."""
        self._unbind_all()
        self._on_seek = None
        self._stop_watching()
