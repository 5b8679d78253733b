from __future__ import annotations

from dataclasses import dataclass, field

from .constants import CONNECTED_BANNER, ENCODING, LINK_FRAME_BUDGET


@dataclass(slots=True)
class EchoPeer:
    """Simulated far end: reads newline-terminated lines, trims them and
    writes each one back behind an echo prefix.

    Outbound text is cut into notifications no larger than the frame budget,
    the way the device's UART service delivers it.
    """

    frame_budget: int = LINK_FRAME_BUDGET
    prefix: str = "ECHO: "
    line_ending: str = "\r\n"
    encoding: str = ENCODING
    lines_received: int = 0
    bytes_received: int = 0
    _buffer: bytearray = field(default_factory=bytearray)

    def reset(self) -> None:
        self._buffer.clear()

    def connected(self) -> list[bytes]:
        return self._notify(CONNECTED_BANNER)

    def feed(self, data: bytes) -> list[bytes]:
        self.bytes_received += len(data)
        self._buffer.extend(data)
        out: list[bytes] = []

        while True:
            end = self._buffer.find(b"\n")
            if end < 0:
                break
            line = bytes(self._buffer[:end]).decode(self.encoding, errors="replace").strip()
            del self._buffer[: end + 1]
            self.lines_received += 1
            out.extend(self._notify(self.prefix + line))

        return out

    def _notify(self, text: str) -> list[bytes]:
        raw = (text + self.line_ending).encode(self.encoding)
        return [raw[i : i + self.frame_budget] for i in range(0, len(raw), self.frame_budget)]
