"""CLI interface with subcommand routing."""

import argparse
import json
import os
import sys

from page_narrator.constants import AUDIO_BLOCKS_ENABLED_KEY, SETTINGS_DIR, VERSION
from page_narrator.annotator import Annotator
from page_narrator.artifacts import (
    load_block_manifest,
    write_block_manifest,
    find_stale_blocks,
)
from page_narrator.config import load_config, parse_setting, save_setting
from page_narrator.document import Document
from page_narrator.segmenter import segment
from page_narrator.ssml import block_to_ssml, compose_document
from page_narrator.timeline import build_timeline, total_duration
from page_narrator.view import render_document


def _load_tree(file_path: str) -> dict:
    """Read a JSON document tree, exiting on missing or invalid files."""
    if not os.path.exists(file_path):
        print(f"Error: File not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)
    try:
        with open(file_path) as f:
            tree = json.load(f)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON in {file_path}: {e}", file=sys.stderr)
        raise SystemExit(1)
    if not isinstance(tree, dict):
        print(f"Error: Not a document tree: {file_path}", file=sys.stderr)
        raise SystemExit(1)
    return tree


def _preview(text: str, width: int = 60) -> str:
    return text if len(text) <= width else text[: width - 3] + "..."


def cmd_blocks(args):
    """List the narration blocks of a document."""
    blocks = segment(_load_tree(args.file))
    if not blocks:
        print("No narratable blocks.")
        return
    for block in blocks:
        kind = f"{block.type}({block.level})" if block.level else block.type
        print(f"  [{block.index:>3}] {kind:<14} {_preview(block.text)}")
    print(f"{len(blocks)} blocks")


def cmd_ssml(args):
    """Print SSML for the whole document or one block."""
    config = load_config(SETTINGS_DIR)
    blocks = segment(_load_tree(args.file))

    if args.block is None:
        print(compose_document(blocks, escape=config.escape_markup))
        return

    for block in blocks:
        if block.index == args.block:
            print(block_to_ssml(block, escape=config.escape_markup))
            return
    print(f"Error: Block {args.block} not found ({len(blocks)} blocks).", file=sys.stderr)
    raise SystemExit(1)


def _annotated_document(file_path: str, config) -> tuple[Document, int]:
    document = Document.from_json(_load_tree(file_path))
    patches = Annotator(config).reconcile(document)
    return document, len(patches)


def cmd_annotate(args):
    """Write audioBlock attributes into a document."""
    config = load_config(SETTINGS_DIR)
    if not config.audio_blocks_enabled:
        print("Warning: audio blocks are disabled; document left unchanged.", file=sys.stderr)
        print(f"Enable with 'page-narrator set {AUDIO_BLOCKS_ENABLED_KEY} on'.", file=sys.stderr)

    document, patched = _annotated_document(args.file, config)
    output = json.dumps(document.to_json(), indent=2)

    if args.output:
        with open(args.output, "w") as f:
            f.write(output + "\n")
        print(f"Annotated {patched} node(s) → {args.output}")
    else:
        print(output)


def cmd_render(args):
    """Print the annotated document as HTML."""
    config = load_config(SETTINGS_DIR)
    document, _ = _annotated_document(args.file, config)
    print(str(render_document(document, config)))


def cmd_manifest(args):
    """Record block hashes and report which blocks need new narration."""
    blocks = segment(_load_tree(args.file))
    previous = load_block_manifest(args.dir)
    stale = find_stale_blocks(previous, blocks)

    write_block_manifest(args.dir, blocks, source=os.path.abspath(args.file))

    if previous is None:
        print(f"Created manifest with {len(blocks)} blocks in {args.dir}")
    elif stale:
        print(f"{len(stale)} of {len(blocks)} blocks changed: {', '.join(str(i) for i in stale)}")
    else:
        print(f"All {len(blocks)} blocks up to date")


def cmd_timeline(args):
    """Show estimated start and end times per block."""
    blocks = segment(_load_tree(args.file))
    timeline = build_timeline(blocks)
    for entry in timeline:
        print(
            f"  [{entry.block_index:>3}] {entry.start_time:7.1f}s – {entry.end_time:7.1f}s  "
            f"{_preview(entry.text_content, 40)}"
        )
    print(f"Total: {total_duration(timeline):.1f}s")


def cmd_set(args):
    """Update a persisted setting."""
    try:
        value = parse_setting(args.key, args.value)
    except KeyError:
        print(f"Error: Invalid setting key: {args.key}", file=sys.stderr)
        print("Valid keys: audio_blocks_enabled, auto_scroll, escape_markup, match_by", file=sys.stderr)
        raise SystemExit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)

    save_setting(SETTINGS_DIR, args.key, value)
    print(f"Updated: {args.key} → {value}")


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="page-narrator",
        description="Page Narrator — segment rich-text pages into narration blocks and SSML",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # blocks
    blocks_parser = subparsers.add_parser("blocks", help="List narration blocks")
    blocks_parser.add_argument("file", help="Path to the document JSON")
    blocks_parser.set_defaults(func=cmd_blocks)

    # ssml
    ssml_parser = subparsers.add_parser("ssml", help="Print SSML markup")
    ssml_parser.add_argument("file", help="Path to the document JSON")
    ssml_parser.add_argument("--block", type=int, help="Only this block index")
    ssml_parser.set_defaults(func=cmd_ssml)

    # annotate
    annotate_parser = subparsers.add_parser("annotate", help="Add audioBlock attributes to a document")
    annotate_parser.add_argument("file", help="Path to the document JSON")
    annotate_parser.add_argument("-o", "--output", help="Write to this file instead of stdout")
    annotate_parser.set_defaults(func=cmd_annotate)

    # render
    render_parser = subparsers.add_parser("render", help="Render the document as HTML")
    render_parser.add_argument("file", help="Path to the document JSON")
    render_parser.set_defaults(func=cmd_render)

    # manifest
    manifest_parser = subparsers.add_parser("manifest", help="Write block manifest and report stale blocks")
    manifest_parser.add_argument("file", help="Path to the document JSON")
    manifest_parser.add_argument("dir", help="Directory holding blocks.json")
    manifest_parser.set_defaults(func=cmd_manifest)

    # timeline
    timeline_parser = subparsers.add_parser("timeline", help="Show estimated block timings")
    timeline_parser.add_argument("file", help="Path to the document JSON")
    timeline_parser.set_defaults(func=cmd_timeline)

    # set
    set_parser = subparsers.add_parser("set", help="Update a setting")
    set_parser.add_argument("key", help="Setting key")
    set_parser.add_argument("value", help="Setting value")
    set_parser.set_defaults(func=cmd_set)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    args.func(args)
