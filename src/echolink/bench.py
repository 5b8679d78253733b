from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from .config import TransportConfig
from .constants import MAX_SEQ
from .errors import TransportError
from .net import Impairment, LoopbackLink
from .session import TransportSession

logger = logging.getLogger(__name__)


def build_test_payload(max_seq: int = MAX_SEQ) -> str:
    return "".join(str(i) for i in range(max_seq + 1))


@dataclass(frozen=True, slots=True)
class ThroughputResult:
    bytes_sent: int
    elapsed_ms: float
    frame_count: int
    success: bool
    error: TransportError | None = None

    @property
    def bytes_per_second(self) -> float | None:
        if not self.success:
            return None
        return self.bytes_sent / max(0.001, self.elapsed_ms / 1000.0)

    @property
    def kib_per_second(self) -> float | None:
        bps = self.bytes_per_second
        return None if bps is None else bps / 1024

    def as_dict(self) -> dict[str, object]:
        return {
            "bytes": self.bytes_sent,
            "elapsed_ms": self.elapsed_ms,
            "frames": self.frame_count,
            "success": self.success,
            "bytes_per_second": self.bytes_per_second,
            "kib_per_second": self.kib_per_second,
            "error": str(self.error) if self.error else None,
        }


class ThroughputProbe:
    def __init__(self, session: TransportSession) -> None:
        self.session = session
        self.payload = build_test_payload(session.config.max_seq)

    async def run(self) -> ThroughputResult:
        start = time.monotonic()
        outcome = await self.session.send(self.payload)
        elapsed_ms = (time.monotonic() - start) * 1000

        if not outcome.success:
            logger.warning("probe failed after %d frames: %s", outcome.frame_count, outcome.error)
            return ThroughputResult(
                bytes_sent=outcome.bytes_sent,
                elapsed_ms=elapsed_ms,
                frame_count=outcome.frame_count,
                success=False,
                error=outcome.error,
            )

        result = ThroughputResult(
            bytes_sent=outcome.bytes_sent,
            elapsed_ms=elapsed_ms,
            frame_count=outcome.frame_count,
            success=True,
        )
        logger.info(
            "probe done; bytes=%d frames=%d throughput=%.1f B/s (%.2f KiB/s)",
            result.bytes_sent,
            result.frame_count,
            result.bytes_per_second,
            result.kib_per_second,
        )
        return result


async def run_benchmark(
    config: TransportConfig | None = None,
    *,
    loss_rate: float = 0.0,
    delay_ms: int = 0,
) -> ThroughputResult:
    config = config or TransportConfig()
    link = LoopbackLink(
        impairment=Impairment(loss_rate=loss_rate, delay_ms=delay_ms),
        frame_budget=config.frame_budget,
    )
    session = TransportSession(config)
    link.open(session)
    try:
        return await ThroughputProbe(session).run()
    finally:
        link.close()
