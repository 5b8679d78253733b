from __future__ import annotations

import string
import types

from echolink.constants import LINK_FRAME_BUDGET, MAX_SEQ
from echolink.packet import max_payload_len
from echolink.segment import segment


def _payloads(message: str) -> list[str]:
    return [f.payload for f in segment(message)]


def test_concatenation_reproduces_message():
    for message in ["a", "A" * 17, "A" * 18, string.ascii_letters * 40, "".join(str(i) for i in range(500))]:
        assert "".join(_payloads(message)) == message


def test_empty_message_has_no_frames():
    assert list(segment("")) == []


def test_segment_is_lazy():
    assert isinstance(segment("abc"), types.GeneratorType)


def test_greedy_packing_and_sequence_order():
    frames = list(segment("A" * 2000))
    assert [f.seq for f in frames] == list(range(len(frames)))
    assert len(frames) == 126
    for f in frames[:-1]:
        assert len(f.payload) == max_payload_len(f.seq)
    assert all(len(f.to_bytes()) <= LINK_FRAME_BUDGET for f in frames)


def test_sequence_wraps_after_max_seq():
    # 10*17 + 90*16 + 900*15 + 1*14 characters fill seq 0..1000
    message = "z" * (170 + 1440 + 13500 + 14 + 40)
    frames = list(segment(message))
    assert frames[MAX_SEQ].seq == MAX_SEQ
    assert frames[MAX_SEQ + 1].seq == 0
    assert len(frames[MAX_SEQ + 1].payload) == max_payload_len(0)
    assert "".join(f.payload for f in frames) == message


def test_multibyte_characters_stay_within_budget():
    message = "é" * 50 + "€" * 30
    frames = list(segment(message))
    assert "".join(f.payload for f in frames) == message
    assert all(len(f.to_bytes()) <= LINK_FRAME_BUDGET for f in frames)


def test_custom_budget():
    frames = list(segment("abcdefghij", frame_budget=4, terminator_bytes=1, max_seq=3))
    assert [f.seq for f in frames] == [0, 1, 2, 3, 0, 1, 2, 3, 0, 1]
    assert "".join(f.payload for f in frames) == "abcdefghij"
