from __future__ import annotations


class TransportError(Exception):
    """Base class for every failure reported by a send."""


class NotConnected(TransportError):
    def __init__(self) -> None:
        super().__init__("not connected")


class SendBusy(TransportError):
    def __init__(self) -> None:
        super().__init__("another send is in flight")


class InvalidMessage(TransportError):
    pass


class OversizeFrame(TransportError):
    def __init__(self, size: int, budget: int) -> None:
        super().__init__(f"frame of {size} bytes exceeds link budget of {budget}")
        self.size = size
        self.budget = budget


class AckTimeout(TransportError):
    def __init__(self, expected: str, timeout_ms: int) -> None:
        super().__init__(f"no echo of {expected!r} within {timeout_ms} ms")
        self.expected = expected
        self.timeout_ms = timeout_ms


class Aborted(TransportError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"aborted: {reason}")
        self.reason = reason


class LinkWriteError(TransportError):
    pass
