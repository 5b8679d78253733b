"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .constants import (
    ACK_PREFIX,
    DEFAULT_ACK_TIMEOUT_MS,
    DEFAULT_SERIAL_BAUD,
    ENCODING,
    LINK_FRAME_BUDGET,
    MAX_SEQ,
    TERMINATOR,
)


@dataclass(frozen=True, slots=True)
class TransportConfig:
    frame_budget: int = LINK_FRAME_BUDGET
    terminator: str = TERMINATOR
    max_seq: int = MAX_SEQ
    ack_timeout_ms: int = DEFAULT_ACK_TIMEOUT_MS
    ack_prefix: str = ACK_PREFIX
    encoding: str = ENCODING

    @property
    def terminator_bytes(self) -> int:
        return len(self.terminator.encode(self.encoding))


@dataclass(frozen=True, slots=True)
class SerialConfig:
    port: str
    baud: int = DEFAULT_SERIAL_BAUD


@dataclass(frozen=True, slots=True)
class Config:
    transport: TransportConfig = field(default_factory=TransportConfig)
    serial: SerialConfig | None = None


def load_config(path: Path) -> Config:
    """Load and validate configuration from a YAML file.

    Every section is optional; missing keys fall back to the protocol defaults.
    """
    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    errors = []
    transport_raw = raw.get("transport") or {}
    serial_raw = raw.get("serial")

    budget = transport_raw.get("frame_budget", LINK_FRAME_BUDGET)
    if not isinstance(budget, int) or budget < 4:
        errors.append("transport.frame_budget must be an integer >= 4")
    max_seq = transport_raw.get("max_seq", MAX_SEQ)
    if not isinstance(max_seq, int) or max_seq < 0:
        errors.append("transport.max_seq must be a non-negative integer")
    timeout_ms = transport_raw.get("ack_timeout_ms", DEFAULT_ACK_TIMEOUT_MS)
    if not isinstance(timeout_ms, int) or timeout_ms <= 0:
        errors.append("transport.ack_timeout_ms must be a positive integer")
    terminator = transport_raw.get("terminator", TERMINATOR)
    if not terminator:
        errors.append("transport.terminator must not be empty")

    if serial_raw is not None and "port" not in serial_raw:
        errors.append("serial.port is required")

    if errors:
        raise ValueError(f"configuration validation failed: {'; '.join(errors)}")

    transport = TransportConfig(
        frame_budget=budget,
        terminator=terminator,
        max_seq=max_seq,
        ack_timeout_ms=timeout_ms,
        ack_prefix=transport_raw.get("ack_prefix", ACK_PREFIX),
        encoding=transport_raw.get("encoding", ENCODING),
    )

    serial = None
    if serial_raw is not None:
        serial = SerialConfig(
            port=serial_raw["port"],
            baud=serial_raw.get("baud", DEFAULT_SERIAL_BAUD),
        )

    return Config(transport=transport, serial=serial)
