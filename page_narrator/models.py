"""Data models for page narration."""

from dataclasses import dataclass, field


@dataclass
class Block:
    index: int
    type: str          # "heading", "paragraph", "blockquote", "listItem", "codeBlock" or source node type
    text: str
    level: int | None = None                        # headings only
    children: list["Block"] = field(default_factory=list)
    path: tuple[int, ...] = ()                      # position of the producing node


@dataclass
class BlockRecord:
    """Storage shape of a block, keyed by content hash for staleness checks."""
    block_index: int
    block_type: str
    text_content: str
    content_hash: str


@dataclass
class TimedBlock:
    block_index: int
    block_type: str
    text_content: str
    duration: float    # seconds
    start_time: float
    end_time: float
    audio_url: str = ""


@dataclass
class PlaybackState:
    current_block_index: int | None = None
    is_playing: bool = False
