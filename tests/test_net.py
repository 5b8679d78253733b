from __future__ import annotations

from echolink.net import LineBuffer
from echolink.peer import EchoPeer


def test_line_buffer_keeps_partial_lines():
    buf = LineBuffer()
    assert buf.feed(b"ECHO: 0|ab") == []
    assert len(buf) == 10
    assert buf.feed(b"c\r\nECHO: 1") == ["ECHO: 0|abc"]
    assert buf.feed(b"|def\n") == ["ECHO: 1|def"]
    assert len(buf) == 0


def test_line_buffer_trims_and_skips_blank_lines():
    buf = LineBuffer()
    assert buf.feed(b"  CONNECTED  \r\n\r\n\nECHO:x\n") == ["CONNECTED", "ECHO:x"]


def test_line_buffer_clear():
    buf = LineBuffer()
    buf.feed(b"half")
    buf.clear()
    assert buf.feed(b" line\n") == ["line"]


def test_peer_echoes_trimmed_lines_in_budget_sized_chunks():
    peer = EchoPeer(frame_budget=20)
    chunks = peer.feed(b"12|abcdefghijklmno\n")
    assert all(len(c) <= 20 for c in chunks)
    assert b"".join(chunks) == b"ECHO: 12|abcdefghijklmno\r\n"
    assert peer.lines_received == 1


def test_peer_waits_for_newline():
    peer = EchoPeer()
    assert peer.feed(b"HEL") == []
    assert b"".join(peer.feed(b"LO \n")) == b"ECHO: HELLO\r\n"


def test_peer_announces_connection():
    assert b"".join(EchoPeer().connected()) == b"CONNECTED\r\n"
