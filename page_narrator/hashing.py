"""Content fingerprints for detecting stale narration."""

from page_narrator.models import Block, BlockRecord

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_signed_32(value: int) -> int:
    value &= 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_DIGITS[rem])
    return sign + "".join(reversed(digits))


def _utf16_units(text: str):
    """Yield UTF-16 code units, so astral characters count as surrogate pairs."""
    data = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def content_hash(text: str) -> str:
    """Return a stable base-36 fingerprint of text.

    32-bit signed polynomial hash (h * 31 + unit) over UTF-16 code units.
    Equal text always hashes equal; different text can collide, so a
    matching hash is not proof of matching text.
    """
    h = 0
    for unit in _utf16_units(text):
        h = _to_signed_32((h << 5) - h + unit)
    return _to_base36(h)


def prepare_blocks_for_storage(blocks: list[Block]) -> list[BlockRecord]:
    """Convert blocks to their storage shape, fingerprinting each text."""
    return [
        BlockRecord(
            block_index=block.index,
            block_type=block.type,
            text_content=block.text,
            content_hash=content_hash(block.text),
        )
        for block in blocks
    ]
