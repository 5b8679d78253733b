from __future__ import annotations

from typing import Iterator

from .constants import ENCODING, LINK_FRAME_BUDGET, MAX_SEQ, TERMINATOR
from .packet import Frame, max_payload_len


def _take(message: str, offset: int, capacity: int, encoding: str) -> int:
    """Return the end index of the longest slice from offset fitting in capacity bytes."""
    end = offset
    used = 0
    while end < len(message):
        size = len(message[end].encode(encoding))
        if used + size > capacity and end > offset:
            break
        used += size
        end += 1
    return end


def segment(
    message: str,
    frame_budget: int = LINK_FRAME_BUDGET,
    terminator_bytes: int = len(TERMINATOR),
    max_seq: int = MAX_SEQ,
    encoding: str = ENCODING,
) -> Iterator[Frame]:
    offset = 0
    seq = 0
    while offset < len(message):
        capacity = max_payload_len(seq, frame_budget, terminator_bytes)
        end = _take(message, offset, capacity, encoding)
        yield Frame(seq=seq, payload=message[offset:end])
        offset = end
        seq = (seq + 1) % (max_seq + 1)
