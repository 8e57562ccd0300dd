"""JSON artifacts: block manifests and staleness checks against current text."""

import json
import os
from dataclasses import asdict

from page_narrator.hashing import content_hash, prepare_blocks_for_storage
from page_narrator.models import Block

MANIFEST_FILENAME = "blocks.json"


def write_artifact(project_dir: str, filename: str, data: dict) -> str:
    """Write JSON artifact to project_dir/filename.

    Returns path to the written file.
    """
    os.makedirs(project_dir, exist_ok=True)
    path = os.path.join(project_dir, filename)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    return path


def load_artifact(project_dir: str, filename: str) -> dict | None:
    """Read JSON artifact. Returns None if file doesn't exist."""
    path = os.path.join(project_dir, filename)
    if not os.path.exists(path):
        return None
    with open(path) as f:
        return json.load(f)


def build_manifest(blocks: list[Block], source: str = "") -> dict:
    return {
        "source": source,
        "blocks": [asdict(record) for record in prepare_blocks_for_storage(blocks)],
    }


def write_block_manifest(project_dir: str, blocks: list[Block], source: str = "") -> str:
    """Record every block's text and content hash in blocks.json."""
    return write_artifact(project_dir, MANIFEST_FILENAME, build_manifest(blocks, source))


def load_block_manifest(project_dir: str) -> dict | None:
    return load_artifact(project_dir, MANIFEST_FILENAME)


def find_stale_blocks(manifest: dict | None, blocks: list[Block]) -> list[int]:
    """Indices of blocks whose narration needs regenerating.

    A block is stale when the manifest has no entry for its index or the
    recorded hash differs from the hash of its current text. Hash equality
    is treated as "unchanged"; a rare collision goes undetected.
    """
    recorded = {}
    for entry in (manifest or {}).get("blocks", []):
        if "block_index" in entry:
            recorded[entry["block_index"]] = entry.get("content_hash")

    stale = []
    for block in blocks:
        if recorded.get(block.index) != content_hash(block.text):
            stale.append(block.index)
    return stale
