from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass

from .errors import AckTimeout, Aborted, TransportError

logger = logging.getLogger(__name__)


class AckState(enum.Enum):
    IDLE = "idle"
    AWAITING = "awaiting"
    RESOLVED = "resolved"
    TIMED_OUT = "timed_out"
    ABORTED = "aborted"


@dataclass(slots=True)
class PendingAck:
    expected: str
    timeout_ms: int
    deadline: float
    future: asyncio.Future[None]
    timer: asyncio.TimerHandle | None = None


class AckCorrelator:
    """Single-slot tracker for the one frame awaiting its echo.

    The waiter returned by :meth:`arm` completes on whichever happens first:
    a matching echo (result), the timer (:class:`AckTimeout`) or
    :meth:`abort` (:class:`Aborted`). The slot is empty again before the
    waiter observes the outcome, so the next frame can be armed right away.

    ``arm(..., start_timer=False)`` claims the slot without starting the
    clock; :meth:`start_timer` then starts it, so the deadline can be counted
    from the end of the write rather than from its start.
    """

    def __init__(self) -> None:
        self._pending: PendingAck | None = None
        self.last_outcome: AckState | None = None

    @property
    def state(self) -> AckState:
        return AckState.AWAITING if self._pending is not None else AckState.IDLE

    @property
    def pending(self) -> PendingAck | None:
        return self._pending

    def arm(self, expected: str, timeout_ms: int, *, start_timer: bool = True) -> asyncio.Future[None]:
        if self._pending is not None:
            raise RuntimeError(f"ack for {self._pending.expected!r} still pending")
        loop = asyncio.get_running_loop()
        self._pending = PendingAck(
            expected=expected,
            timeout_ms=timeout_ms,
            deadline=loop.time() + timeout_ms / 1000.0,
            future=loop.create_future(),
        )
        if start_timer:
            self.start_timer()
        return self._pending.future

    def start_timer(self) -> None:
        pending = self._pending
        if pending is None or pending.timer is not None:
            return
        loop = asyncio.get_running_loop()
        delay = pending.timeout_ms / 1000.0
        pending.deadline = loop.time() + delay
        pending.timer = loop.call_later(delay, self._expire)

    def on_line(self, payload: str) -> bool:
        pending = self._pending
        if pending is None or payload != pending.expected:
            return False
        self._settle(AckState.RESOLVED, None)
        return True

    def abort(self, reason: str) -> None:
        if self._pending is None:
            return
        logger.debug("abort pending ack %r: %s", self._pending.expected, reason)
        self._settle(AckState.ABORTED, Aborted(reason))

    def discard(self) -> None:
        """Drop the pending slot without an outcome, e.g. when the write itself failed."""
        pending = self._pending
        if pending is None:
            return
        self._pending = None
        if pending.timer is not None:
            pending.timer.cancel()
        pending.future.cancel()

    def _expire(self) -> None:
        pending = self._pending
        if pending is None:
            return
        logger.debug("ack timeout; expected=%r", pending.expected)
        self._settle(AckState.TIMED_OUT, AckTimeout(pending.expected, pending.timeout_ms))

    def _settle(self, outcome: AckState, exc: TransportError | None) -> None:
        pending = self._pending
        assert pending is not None
        self._pending = None
        if pending.timer is not None:
            pending.timer.cancel()
        self.last_outcome = outcome
        if pending.future.done():
            return
        if exc is None:
            pending.future.set_result(None)
        else:
            pending.future.set_exception(exc)
