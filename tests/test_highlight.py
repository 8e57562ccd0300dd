"""Tests for highlight module."""

from unittest.mock import MagicMock

from bs4 import BeautifulSoup

from page_narrator.annotator import Annotator
from page_narrator.document import Document
from page_narrator.highlight import HighlightSynchronizer, closest_annotated, read_block_index
from page_narrator.models import PlaybackState
from page_narrator.view import PageView, Viewport


def _setup(sample_doc, config):
    """Annotated document, a view following it, and a mock viewport."""
    document = Document(sample_doc)
    Annotator(config).attach(document)
    view = PageView(config)
    view.attach(document)
    viewport = MagicMock(spec=Viewport)
    return document, view, viewport


def _highlighted(view):
    return [el.get("data-audio-block") for el in view.find_by_class("audio-highlighted")]


# --- Helpers ---

def test_closest_annotated():
    soup = BeautifulSoup('<div><p data-audio-block="1">a <em>b</em></p></div>', "html.parser")
    assert closest_annotated(soup.em) is soup.p
    assert closest_annotated(soup.div) is None


def test_read_block_index():
    soup = BeautifulSoup('<p data-audio-block="x">a</p><p>b</p>', "html.parser")
    first, second = soup.find_all("p")
    assert read_block_index(first) is None
    assert read_block_index(second) is None


# --- Highlight ---

def test_playing_block_highlighted_and_scrolled(sample_doc, enabled_config):
    _, view, viewport = _setup(sample_doc, enabled_config)
    sync = HighlightSynchronizer(view, viewport)

    element = sync.update(PlaybackState(current_block_index=2, is_playing=True))

    assert element.name == "li"
    # the nested paragraph shares the index; the first match in document order wins
    assert _highlighted(view) == ["2"]
    viewport.scroll_into_view.assert_called_once_with(element, behavior="smooth", block="center")


def test_highlight_moves(sample_doc, enabled_config):
    """At most one element is highlighted at a time."""
    _, view, viewport = _setup(sample_doc, enabled_config)
    sync = HighlightSynchronizer(view, viewport)

    sync.update(PlaybackState(current_block_index=0, is_playing=True))
    sync.update(PlaybackState(current_block_index=1, is_playing=True))
    assert _highlighted(view) == ["1"]


def test_paused_clears_highlight(sample_doc, enabled_config):
    _, view, viewport = _setup(sample_doc, enabled_config)
    sync = HighlightSynchronizer(view, viewport)
    sync.update(PlaybackState(current_block_index=0, is_playing=True))

    assert sync.update(PlaybackState(current_block_index=0, is_playing=False)) is None
    assert _highlighted(view) == []


def test_no_index_clears_highlight(sample_doc, enabled_config):
    _, view, viewport = _setup(sample_doc, enabled_config)
    sync = HighlightSynchronizer(view, viewport)
    sync.update(PlaybackState(current_block_index=0, is_playing=True))

    sync.update(PlaybackState(current_block_index=None, is_playing=True))
    assert _highlighted(view) == []


def test_missing_block_is_silent(sample_doc, enabled_config):
    _, view, viewport = _setup(sample_doc, enabled_config)
    sync = HighlightSynchronizer(view, viewport)

    assert sync.update(PlaybackState(current_block_index=42, is_playing=True)) is None
    assert _highlighted(view) == []
    viewport.scroll_into_view.assert_not_called()


def test_auto_scroll_off(sample_doc, enabled_config):
    _, view, viewport = _setup(sample_doc, enabled_config)
    sync = HighlightSynchronizer(view, viewport, auto_scroll=False)

    sync.update(PlaybackState(current_block_index=0, is_playing=True))
    assert _highlighted(view) == ["0"]
    viewport.scroll_into_view.assert_not_called()


def test_highlight_survives_rerender(sample_doc, enabled_config):
    """A re-render restores the marker on the new elements without scrolling again."""
    document, view, viewport = _setup(sample_doc, enabled_config)
    sync = HighlightSynchronizer(view, viewport)
    sync.update(PlaybackState(current_block_index=1, is_playing=True))

    document.update(sample_doc)

    assert _highlighted(view) == ["1"]
    assert viewport.scroll_into_view.call_count == 1


def test_disabled_feature_renders_no_targets(sample_doc, disabled_config):
    _, view, viewport = _setup(sample_doc, disabled_config)
    sync = HighlightSynchronizer(view, viewport)
    on_seek = MagicMock()
    sync.bind_seek(on_seek)

    assert view.annotated_elements() == []
    assert sync.update(PlaybackState(current_block_index=0, is_playing=True)) is None
    assert view.events.listener_count() == 0


# --- Click to seek ---

def test_click_seeks_to_block(sample_doc, enabled_config):
    _, view, viewport = _setup(sample_doc, enabled_config)
    sync = HighlightSynchronizer(view, viewport)
    on_seek = MagicMock()
    sync.bind_seek(on_seek)

    view.click(view.soup.find("strong"))
    on_seek.assert_called_once_with(1)


def test_nested_click_reports_innermost_once():
    """A click inside nested annotated blocks seeks to the innermost block only."""
    view = PageView()
    view.soup = BeautifulSoup(
        '<div><blockquote data-audio-block="2">'
        '<p data-audio-block="3">Inner <strong>bold</strong></p>'
        "</blockquote></div>",
        "html.parser",
    )
    sync = HighlightSynchronizer(view, MagicMock(spec=Viewport))
    on_seek = MagicMock()
    sync.bind_seek(on_seek)

    event = view.click(view.soup.find("strong"))

    on_seek.assert_called_once_with(3)
    assert event.propagation_stopped


def test_rebind_replaces_callback(sample_doc, enabled_config):
    _, view, viewport = _setup(sample_doc, enabled_config)
    sync = HighlightSynchronizer(view, viewport)
    first, second = MagicMock(), MagicMock()
    sync.bind_seek(first)
    sync.bind_seek(second)

    assert view.events.listener_count() == len(view.annotated_elements())
    view.click(view.find_block(0))
    first.assert_not_called()
    second.assert_called_once_with(0)


def test_rerender_rebinds(sample_doc, enabled_config):
    document, view, viewport = _setup(sample_doc, enabled_config)
    sync = HighlightSynchronizer(view, viewport)
    on_seek = MagicMock()
    sync.bind_seek(on_seek)

    document.update({"type": "doc", "content": [
        {"type": "paragraph", "content": [{"type": "text", "text": "New."}]},
    ]})
    assert view.events.listener_count() == 1
    view.click(view.find_block(0))
    on_seek.assert_called_once_with(0)


def test_close_removes_everything(sample_doc, enabled_config):
    document, view, viewport = _setup(sample_doc, enabled_config)
    on_seek = MagicMock()
    with HighlightSynchronizer(view, viewport) as sync:
        sync.bind_seek(on_seek)
        assert view.events.listener_count() > 0

    assert view.events.listener_count() == 0
    document.update(sample_doc)
    assert view.events.listener_count() == 0
    view.click(view.find_block(0))
    on_seek.assert_not_called()


def test_unbind_with_none(sample_doc, enabled_config):
    _, view, viewport = _setup(sample_doc, enabled_config)
    sync = HighlightSynchronizer(view, viewport)
    sync.bind_seek(MagicMock())
    sync.bind_seek(None)
    assert view.events.listener_count() == 0
