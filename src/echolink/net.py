from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Protocol

from .constants import ENCODING, LINK_FRAME_BUDGET
from .errors import LinkWriteError
from .peer import EchoPeer

logger = logging.getLogger(__name__)


class Link(Protocol):
    """Outbound half of a connection: one atomic write of at most the frame budget."""

    async def write(self, data: bytes) -> None: ...


class LinkListener(Protocol):
    """Inbound half: what a link pushes into whoever owns the transport."""

    def connection_made(self, link: Link) -> None: ...

    def data_received(self, data: bytes) -> None: ...

    def connection_lost(self, reason: str) -> None: ...


class LineBuffer:
    """Accumulates inbound chunks and splits off complete, trimmed lines."""

    def __init__(self, encoding: str = ENCODING) -> None:
        self._encoding = encoding
        self._buffer = bytearray()

    def feed(self, data: bytes) -> list[str]:
        self._buffer.extend(data)
        lines = []

        while True:
            end = self._buffer.find(b"\n")
            if end < 0:
                break
            raw = bytes(self._buffer[:end]).replace(b"\r", b"")
            del self._buffer[: end + 1]
            text = raw.decode(self._encoding, errors="replace").strip()
            if text:
                lines.append(text)

        return lines

    def clear(self) -> None:
        self._buffer.clear()

    def __len__(self) -> int:
        return len(self._buffer)


@dataclass(frozen=True, slots=True)
class Impairment:
    loss_rate: float = 0.0
    delay_ms: int = 0

    def should_drop(self) -> bool:
        return random.random() < self.loss_rate

    @property
    def delay_s(self) -> float:
        return max(0, self.delay_ms) / 1000.0


class LoopbackLink:
    """In-process link to a simulated :class:`EchoPeer`.

    Writes that survive the impairment are handed to the peer; its echo comes
    back through the event loop, never synchronously from ``write``.
    """

    def __init__(
        self,
        peer: EchoPeer | None = None,
        impairment: Impairment | None = None,
        frame_budget: int = LINK_FRAME_BUDGET,
    ) -> None:
        self.peer = peer or EchoPeer(frame_budget=frame_budget)
        self.impairment = impairment or Impairment()
        self.frame_budget = frame_budget
        self.writes: list[bytes] = []
        self._listener: LinkListener | None = None

    @property
    def connected(self) -> bool:
        return self._listener is not None

    def open(self, listener: LinkListener) -> None:
        self._listener = listener
        self.peer.reset()
        listener.connection_made(self)
        self._deliver(self.peer.connected())

    def close(self, reason: str = "disconnected") -> None:
        listener = self._listener
        self._listener = None
        if listener is not None:
            listener.connection_lost(reason)

    async def write(self, data: bytes) -> None:
        if self._listener is None:
            raise LinkWriteError("link is closed")
        if len(data) > self.frame_budget:
            raise LinkWriteError(f"write of {len(data)} bytes exceeds budget of {self.frame_budget}")
        self.writes.append(data)
        if self.impairment.should_drop():
            logger.debug("DROPPED outbound %d bytes", len(data))
            return
        self._deliver(self.peer.feed(data))

    def _deliver(self, chunks: list[bytes]) -> None:
        loop = asyncio.get_running_loop()
        for chunk in chunks:
            loop.call_later(self.impairment.delay_s, self._receive, chunk)

    def _receive(self, chunk: bytes) -> None:
        if self._listener is not None:
            self._listener.data_received(chunk)
