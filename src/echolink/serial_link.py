"""Link over a serial port, for peers attached as a UART."""

from __future__ import annotations

import asyncio
import logging
import threading

import serial

from .config import SerialConfig
from .constants import LINK_FRAME_BUDGET
from .errors import LinkWriteError
from .net import LinkListener

logger = logging.getLogger(__name__)


class SerialLink:
    """Handles serial communication with an echoing peer.

    A reader thread polls the port and hands each chunk to the listener on
    the event loop; writes run in a worker thread under a lock.
    """

    def __init__(self, config: SerialConfig, frame_budget: int = LINK_FRAME_BUDGET) -> None:
        self._config = config
        self._frame_budget = frame_budget
        self._port: serial.SerialBase | None = None
        self._listener: LinkListener | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._reader: threading.Thread | None = None
        self._stop = threading.Event()
        self._write_lock = threading.Lock()

    @property
    def connected(self) -> bool:
        """Return True if serial port is open."""
        return self._port is not None and self._port.is_open

    def open(self, listener: LinkListener) -> None:
        """Open the serial port and start delivering inbound bytes to listener."""
        # accepts device paths and pyserial URLs such as loop://
        self._port = serial.serial_for_url(
            self._config.port,
            baudrate=self._config.baud,
            timeout=0.1,  # 100ms read timeout for polling
        )
        logger.info("Opened serial port %s at %d baud", self._config.port, self._config.baud)
        self._loop = asyncio.get_running_loop()
        self._listener = listener
        self._stop.clear()
        listener.connection_made(self)
        self._reader = threading.Thread(target=self._read_loop, name="serial-reader", daemon=True)
        self._reader.start()

    def close(self, reason: str = "disconnected") -> None:
        """Stop the reader, close the port and notify the listener."""
        self._stop.set()
        if self._reader is not None and self._reader is not threading.current_thread():
            self._reader.join(timeout=1.0)
        self._reader = None
        if self._port and self._port.is_open:
            self._port.close()
            logger.info("Closed serial port")
        self._port = None
        listener = self._listener
        self._listener = None
        if listener is not None:
            listener.connection_lost(reason)

    async def write(self, data: bytes) -> None:
        if not self.connected:
            raise LinkWriteError("serial port not open")
        if len(data) > self._frame_budget:
            raise LinkWriteError(f"write of {len(data)} bytes exceeds budget of {self._frame_budget}")
        await asyncio.to_thread(self._write_blocking, data)

    def _write_blocking(self, data: bytes) -> None:
        port = self._port
        if port is None:
            raise LinkWriteError("serial port not open")
        try:
            with self._write_lock:
                port.write(data)
                port.flush()
        except serial.SerialException as e:
            logger.error("Serial write error: %s", e)
            raise LinkWriteError(str(e)) from e

    def _read_loop(self) -> None:
        while not self._stop.is_set():
            port = self._port
            if port is None:
                return
            try:
                data = port.read(port.in_waiting or 1)
            except serial.SerialException as e:
                logger.error("Serial read error: %s", e)
                self._call_soon(self._lost)
                return
            if data:
                self._call_soon(self._deliver, data)

    def _call_soon(self, callback, *args) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(callback, *args)

    def _deliver(self, data: bytes) -> None:
        if self._listener is not None:
            self._listener.data_received(data)

    def _lost(self) -> None:
        self.close("serial port lost")
