"""Splitting of relayed text into PRIVMSG-sized payloads."""

from __future__ import annotations

from ..constants import (
    LINE_ENCODING,
    MAX_LINE_BYTES,
    OVERSIZE_CHAR_PLACEHOLDER,
    RELAY_PREFIX_RESERVE_BYTES,
)


def max_payload_bytes(
    channel: str,
    line_limit: int = MAX_LINE_BYTES,
    prefix_reserve: int = RELAY_PREFIX_RESERVE_BYTES,
) -> int:
    """Bytes of text that fit in one ``PRIVMSG <channel> :<text>`` line.

    The server prepends ``:nick!user@host `` when relaying the message to
    other members, so ``prefix_reserve`` bytes are kept free for it.
    """
    overhead = len(f"PRIVMSG {channel} :".encode(LINE_ENCODING)) + prefix_reserve
    budget = line_limit - overhead
    if budget < 1:
        raise ValueError(f"channel name {channel!r} leaves no room for a payload")
    return budget


def split_payload(text: str, limit: int) -> list[str]:
    """Split ``text`` into the fewest chunks of at most ``limit`` encoded bytes.

    Splits only between characters. A character whose encoding alone is
    larger than ``limit`` is replaced by a placeholder.
    """
    if limit < 1:
        raise ValueError("limit must be positive")
    if len(text.encode(LINE_ENCODING, errors="replace")) <= limit:
        return [text]

    chunks: list[str] = []
    current: list[str] = []
    used = 0
    for ch in text:
        size = len(ch.encode(LINE_ENCODING, errors="replace"))
        if size > limit:
            ch = OVERSIZE_CHAR_PLACEHOLDER
            size = len(ch.encode(LINE_ENCODING))
        if used + size > limit:
            chunks.append("".join(current))
            current, used = [], 0
        current.append(ch)
        used += size
    if current:
        chunks.append("".join(current))
    return chunks
