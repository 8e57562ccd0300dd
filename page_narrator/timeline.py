"""Map playback time to narration blocks.

Each block is narrated as its own clip, played back to back. The timeline
records where every clip starts and ends on the page-wide clock so a
playback position can be turned into a block index and back.
"""

import numpy as np
from pydub import AudioSegment

from page_narrator.constants import WORDS_PER_MINUTE
from page_narrator.models import Block, TimedBlock


def estimate_duration(text: str, words_per_minute: int = WORDS_PER_MINUTE) -> float:
    """Rough spoken duration in seconds from word count."""
    return len(text.split()) / words_per_minute * 60


def measure_duration(path: str) -> float:
    """Duration of an audio file in seconds."""
    return len(AudioSegment.from_file(path)) / 1000


def build_timeline(
    blocks: list[Block],
    durations: list[float] | None = None,
    audio_urls: list[str] | None = None,
) -> list[TimedBlock]:
    """Lay blocks end to end.

    Without durations, each block's length is estimated from its word count.
    """
    if durations is None:
        durations = [estimate_duration(block.text) for block in blocks]
    if len(durations) != len(blocks):
        raise ValueError(f"Got {len(durations)} durations for {len(blocks)} blocks")

    ends = np.cumsum(np.asarray(durations, dtype=float))
    timeline = []
    start = 0.0
    for i, block in enumerate(blocks):
        end = float(ends[i])
        timeline.append(TimedBlock(
            block_index=block.index,
            block_type=block.type,
            text_content=block.text,
            duration=float(durations[i]),
            start_time=start,
            end_time=end,
            audio_url=audio_urls[i] if audio_urls else "",
        ))
        start = end
    return timeline


def total_duration(timeline: list[TimedBlock]) -> float:
    return timeline[-1].end_time if timeline else 0.0


def _position(timeline: list[TimedBlock], seconds: float) -> int | None:
    """Position in timeline of the block playing at `seconds`."""
    if not timeline or seconds < 0:
        return None
    ends = np.array([t.end_time for t in timeline])
    pos = int(np.searchsorted(ends, seconds, side="right"))
    if pos >= len(timeline):
        return None
    return pos


def block_at(timeline: list[TimedBlock], seconds: float) -> int | None:
    """Index of the block playing at `seconds`, or None outside the timeline.

    Start times are inclusive, end times exclusive.
    """
    pos = _position(timeline, seconds)
    if pos is None:
        return None
    return timeline[pos].block_index


def block_offset(timeline: list[TimedBlock], seconds: float) -> tuple[int, float] | None:
    """(block index, seconds into that block's clip) for a seek target."""
    pos = _position(timeline, seconds)
    if pos is None:
        return None
    entry = timeline[pos]
    return entry.block_index, seconds - entry.start_time


def start_of(timeline: list[TimedBlock], block_index: int) -> float | None:
    """Page-clock start time of a block, for click-to-seek."""
    for entry in timeline:
        if entry.block_index == block_index:
            return entry.start_time
    return None
