from __future__ import annotations

LINK_FRAME_BUDGET = 20  # bytes per atomic link write
TERMINATOR = "\n"
SEPARATOR = "|"
MAX_SEQ = 1000
ENCODING = "utf-8"

ACK_PREFIX = "ECHO:"
CONNECTED_BANNER = "CONNECTED"

DEFAULT_ACK_TIMEOUT_MS = 2000
DEFAULT_SERIAL_BAUD = 115200
