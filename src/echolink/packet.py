from __future__ import annotations

from dataclasses import dataclass

from .constants import ACK_PREFIX, ENCODING, LINK_FRAME_BUDGET, SEPARATOR, TERMINATOR
from .errors import OversizeFrame


def max_payload_len(
    seq: int,
    frame_budget: int = LINK_FRAME_BUDGET,
    terminator_bytes: int = len(TERMINATOR),
) -> int:
    # seq digits plus the separator byte
    header_len = len(str(seq)) + len(SEPARATOR)
    return max(1, frame_budget - terminator_bytes - header_len)


def encode(
    seq: int,
    payload: str,
    frame_budget: int = LINK_FRAME_BUDGET,
    terminator: str = TERMINATOR,
    encoding: str = ENCODING,
) -> bytes:
    raw = f"{seq}{SEPARATOR}{payload}{terminator}".encode(encoding)
    if len(raw) > frame_budget:
        raise OversizeFrame(len(raw), frame_budget)
    return raw


def decode_ack(line: str, prefix: str = ACK_PREFIX) -> str | None:
    """Return the echoed text of an acknowledgment line, or None.

    Both ``"ECHO: x"`` and ``"ECHO:x"`` are accepted; peers differ on the space.
    """
    if not line.startswith(prefix):
        return None
    rest = line[len(prefix) :]
    if rest.startswith(" "):
        rest = rest[1:]
    return rest


@dataclass(frozen=True, slots=True)
class Frame:
    seq: int
    payload: str

    @property
    def line(self) -> str:
        """Wire form without the terminator; this is what the peer echoes."""
        return f"{self.seq}{SEPARATOR}{self.payload}"

    def to_bytes(
        self,
        frame_budget: int = LINK_FRAME_BUDGET,
        terminator: str = TERMINATOR,
        encoding: str = ENCODING,
    ) -> bytes:
        return encode(self.seq, self.payload, frame_budget, terminator, encoding)
