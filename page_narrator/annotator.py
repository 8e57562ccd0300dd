"""Keep per-node audioBlock attributes in step with the current segmentation."""

import copy
import logging
from collections.abc import Callable, Mapping

from page_narrator.config import NarrationConfig
from page_narrator.constants import ANNOTATED_NODE_TYPES, AUDIO_BLOCK_ATTR
from page_narrator.document import AnnotationPatch, Document
from page_narrator.models import Block
from page_narrator.segmenter import extract_text, segment

logger = logging.getLogger(__name__)


def build_text_index(blocks: list[Block]) -> dict[str, int]:
    """Map trimmed block text to block index.

    Identical texts collapse onto one entry; the later block wins.
    """
    index_map = {}
    for block in blocks:
        index_map[block.text.strip()] = block.index
    return index_map


def build_path_index(blocks: list[Block]) -> dict[tuple[int, ...], int]:
    """Map the path of each producing node to its first block index."""
    index_map = {}
    for block in blocks:
        if block.path:
            index_map.setdefault(block.path, block.index)
    return index_map


class Annotator:
    """Reconciliation pass run on every document change.

    Does nothing at all while audio blocks are disabled.
    """

    def __init__(self, config: NarrationConfig | None = None):
        self.config = config or NarrationConfig()

    def compute_patches(self, document: Document) -> list[AnnotationPatch]:
        """Patches for eligible nodes whose stored index differs from the current one."""
        if not self.config.audio_blocks_enabled:
            return []

        blocks = segment(document.to_json())
        text_index = build_text_index(blocks)
        path_index = build_path_index(blocks) if self.config.match_by == "path" else {}

        patches = []
        for path, node in document.descendants():
            if node.type not in ANNOTATED_NODE_TYPES:
                continue
            text = node.text_content.strip()
            # Nodes that no longer match any block lose their stale index
            block_index = None
            if text:
                block_index = path_index.get(path)
                if block_index is None:
                    block_index = text_index.get(text)
            current = node.attrs.get(AUDIO_BLOCK_ATTR)
            if current != block_index:
                patches.append(AnnotationPatch(
                    path=path, key=AUDIO_BLOCK_ATTR, old=current, new=block_index,
                ))
        return patches

    def reconcile(self, document: Document) -> list[AnnotationPatch]:
        """Compute and apply the minimal patch set. Returns the patches applied."""
        patches = self.compute_patches(document)
        if patches:
            logger.debug("Annotating %d node(s)", len(patches))
            document.apply(patches)
        return patches

    def attach(self, document: Document) -> Callable[[], None]:
        """Run as part of the document's update pipeline. Returns a detach callable.

        The current content is reconciled immediately.
        """
        detach = document.add_transaction_hook(self.compute_patches)
        self.reconcile(document)
        return detach


def annotate_content(tree, config: NarrationConfig | None = None):
    """Return a copy of a JSON document tree with audioBlock attrs filled in.

    For read-only rendering without a live Document. The input is never
    mutated; with audio blocks disabled it is returned as-is.
    """
    config = config or NarrationConfig()
    if not config.audio_blocks_enabled or not isinstance(tree, Mapping):
        return tree

    text_index = build_text_index(segment(tree))
    processed = copy.deepcopy(tree)

    def process(node):
        if not isinstance(node, dict):
            return
        if node.get("type") in ANNOTATED_NODE_TYPES:
            block_index = text_index.get(extract_text(node).strip())
            if block_index is not None:
                attrs = node.get("attrs")
                node["attrs"] = {**(attrs if isinstance(attrs, Mapping) else {}),
                                 AUDIO_BLOCK_ATTR: block_index}
        content = node.get("content")
        if isinstance(content, list):
            for child in content:
                process(child)

    process(processed)
    return processed
