"""Single-flight, stop-and-wait message transport over an echoing link."""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass

from .ack import AckCorrelator
from .config import TransportConfig
from .constants import SEPARATOR
from .errors import Aborted, InvalidMessage, LinkWriteError, NotConnected, SendBusy, TransportError
from .net import LineBuffer, Link
from .packet import decode_ack
from .segment import segment

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    IDLE = "idle"
    SENDING = "sending"
    FAILED = "failed"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class SendResult:
    success: bool
    bytes_sent: int = 0
    elapsed_ms: float = 0.0
    frame_count: int = 0
    error: TransportError | None = None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


def _failure(error: TransportError) -> SendResult:
    return SendResult(success=False, error=error)


class TransportSession:
    """Owns the link handle, the inbound line buffer and the ack slot.

    Short messages go out as one raw line. Longer ones are segmented into
    ``seq|payload`` frames and each frame must be echoed back before the next
    one is written. At most one :meth:`send` is active at a time; a second
    caller gets :class:`SendBusy` instead of being queued.

    Only the segmented path leaves IDLE. A short send holds no state while its
    write is awaited, so on a link whose writes suspend (a serial port) two
    short sends may overlap; serialize them externally if that matters.
    """

    def __init__(self, config: TransportConfig | None = None) -> None:
        self.config = config or TransportConfig()
        self.correlator = AckCorrelator()
        self._lines = LineBuffer(self.config.encoding)
        self._link: Link | None = None
        self._state = SessionState.IDLE
        self._send_id = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._link is not None

    # -- link events -------------------------------------------------------

    def connection_made(self, link: Link) -> None:
        # a send still waiting on the previous link cannot complete on this one
        self.correlator.abort("reconnected")
        self._send_id += 1
        self._link = link
        self._lines.clear()
        self._set_state(SessionState.IDLE)
        logger.info("link connected")

    def connection_lost(self, reason: str = "disconnected") -> None:
        self._link = None
        self._lines.clear()
        self.correlator.abort(reason)
        self._send_id += 1
        self._set_state(SessionState.IDLE)
        logger.info("link lost: %s", reason)

    def data_received(self, data: bytes) -> None:
        for line in self._lines.feed(data):
            logger.debug("rx %s", line)
            echoed = decode_ack(line, self.config.ack_prefix)
            if echoed is None:
                logger.debug("ignoring non-ack line %r", line)
                continue
            if not self.correlator.on_line(echoed):
                logger.debug("unmatched echo %r", echoed)

    # -- sending -----------------------------------------------------------

    async def send(self, message: str) -> SendResult:
        link = self._link
        if link is None:
            return _failure(NotConnected())
        if self._state is not SessionState.IDLE:
            return _failure(SendBusy())
        if not message:
            return _failure(InvalidMessage("message is empty"))

        cfg = self.config
        data = message.encode(cfg.encoding)
        if len(data) + cfg.terminator_bytes <= cfg.frame_budget:
            return await self._send_short(link, message, data)

        if any(ch.isspace() for ch in message):
            return _failure(InvalidMessage("message requiring segmentation contains whitespace"))
        if SEPARATOR in message:
            return _failure(InvalidMessage(f"message requiring segmentation contains {SEPARATOR!r}"))
        return await self._send_segmented(link, message, len(data))

    async def _send_short(self, link: Link, message: str, data: bytes) -> SendResult:
        start = time.monotonic()
        try:
            await link.write(data + self.config.terminator.encode(self.config.encoding))
        except LinkWriteError as e:
            logger.warning("short send failed: %s", e)
            return _failure(e)
        logger.debug("tx %s", message)
        return SendResult(
            success=True,
            bytes_sent=len(data),
            elapsed_ms=(time.monotonic() - start) * 1000,
            frame_count=0,
        )

    async def _send_segmented(self, link: Link, message: str, total_bytes: int) -> SendResult:
        cfg = self.config
        self._send_id += 1
        send_id = self._send_id
        self._set_state(SessionState.SENDING)

        start = time.monotonic()
        resolved = 0
        acked_bytes = 0
        frames = segment(message, cfg.frame_budget, cfg.terminator_bytes, cfg.max_seq, cfg.encoding)
        logger.info("segmented send start; size=%d bytes", total_bytes)

        try:
            for frame in frames:
                if self._send_id != send_id:
                    raise Aborted("disconnected")
                wire = frame.to_bytes(cfg.frame_budget, cfg.terminator, cfg.encoding)
                # slot claimed before the write so an echo arriving mid-write is still
                # matched; the deadline only starts once the write has returned
                waiter = self.correlator.arm(frame.line, cfg.ack_timeout_ms, start_timer=False)
                try:
                    await link.write(wire)
                except LinkWriteError:
                    if not waiter.done():
                        self.correlator.discard()
                        raise
                    # a disconnect already settled the slot; report that instead
                    await waiter
                logger.debug("tx %s", frame.line)
                self.correlator.start_timer()
                await waiter
                resolved += 1
                acked_bytes += len(frame.payload.encode(cfg.encoding))
        except TransportError as e:
            elapsed_ms = (time.monotonic() - start) * 1000
            logger.warning("segmented send failed after %d frames: %s", resolved, e)
            if self._send_id == send_id:
                self._set_state(SessionState.FAILED)
                self._set_state(SessionState.IDLE)
            return SendResult(
                success=False,
                bytes_sent=acked_bytes,
                elapsed_ms=elapsed_ms,
                frame_count=resolved,
                error=e,
            )

        elapsed_ms = (time.monotonic() - start) * 1000
        if self._send_id == send_id:
            self._set_state(SessionState.COMPLETED)
            self._set_state(SessionState.IDLE)
        logger.info("segmented send done; frames=%d bytes=%d elapsed=%.1f ms", resolved, total_bytes, elapsed_ms)
        return SendResult(
            success=True,
            bytes_sent=total_bytes,
            elapsed_ms=elapsed_ms,
            frame_count=resolved,
        )

    def _set_state(self, state: SessionState) -> None:
        if state is not self._state:
            logger.debug("state %s -> %s", self._state.value, state.value)
        self._state = state
