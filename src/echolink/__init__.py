"""echolink: reliable, ordered messages over a lossy link whose peer echoes every line.

Layers, leaf first:
- frame codec and segmenter (pure functions, no I/O)
- a single-slot acknowledgment correlator driven by the event loop
- a stop-and-wait session that keeps exactly one send in flight
- a throughput probe for measuring goodput through the session
"""

from .ack import AckCorrelator, AckState
from .bench import ThroughputProbe, ThroughputResult, build_test_payload, run_benchmark
from .config import Config, SerialConfig, TransportConfig, load_config
from .errors import (
    Aborted,
    AckTimeout,
    InvalidMessage,
    LinkWriteError,
    NotConnected,
    OversizeFrame,
    SendBusy,
    TransportError,
)
from .net import Impairment, LineBuffer, Link, LoopbackLink
from .packet import Frame, decode_ack, encode, max_payload_len
from .peer import EchoPeer
from .segment import segment
from .session import SendResult, SessionState, TransportSession

__all__ = [
    "Aborted",
    "AckCorrelator",
    "AckState",
    "AckTimeout",
    "Config",
    "EchoPeer",
    "Frame",
    "Impairment",
    "InvalidMessage",
    "LineBuffer",
    "Link",
    "LinkWriteError",
    "LoopbackLink",
    "NotConnected",
    "OversizeFrame",
    "SendBusy",
    "SendResult",
    "SerialConfig",
    "SessionState",
    "ThroughputProbe",
    "ThroughputResult",
    "TransportConfig",
    "TransportError",
    "TransportSession",
    "build_test_payload",
    "decode_ack",
    "encode",
    "load_config",
    "max_payload_len",
    "run_benchmark",
    "segment",
]
