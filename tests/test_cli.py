from __future__ import annotations

import argparse
import json
from pathlib import Path

from echolink.cli import _load, main


def test_send_short_message(capsys):
    assert main(["send", "HELLO", "--json"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["success"] is True
    assert out["frames"] == 0
    assert out["bytes"] == 5


def test_send_segmented_message(capsys):
    assert main(["send", "Z" * 50, "--json"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["frames"] == 3


def test_send_failure_exit_code(capsys):
    assert main(["send", "two words and more to force segmentation", "--json"]) == 1
    out = json.loads(capsys.readouterr().out)
    assert out["success"] is False
    assert "whitespace" in out["error"]


def test_bench(capsys):
    assert main(["bench", "--json"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["role"] == "bench"
    assert out["success"] is True
    assert out["bytes"] == 2894


def test_bad_config(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text("transport:\n  max_seq: -1\n")
    assert main(["bench", "--config", str(path)]) == 1


def test_missing_config(tmp_path: Path):
    assert main(["bench", "--config", str(tmp_path / "nope.yaml")]) == 1


def _args(**overrides) -> argparse.Namespace:
    values = {"config": None, "timeout_ms": None, "port": None, "baud": None}
    values.update(overrides)
    return argparse.Namespace(**values)


def test_port_flag_keeps_baud_from_config(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text("serial:\n  port: /dev/ttyACM0\n  baud: 9600\n")
    config = _load(_args(config=path, port="/dev/ttyUSB1"))
    assert config.serial.port == "/dev/ttyUSB1"
    assert config.serial.baud == 9600


def test_explicit_baud_overrides_config(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text("serial:\n  port: /dev/ttyACM0\n  baud: 9600\n")
    config = _load(_args(config=path, baud=57600))
    assert config.serial.port == "/dev/ttyACM0"
    assert config.serial.baud == 57600


def test_port_flag_without_config_uses_default_baud():
    config = _load(_args(port="/dev/ttyUSB1"))
    assert config.serial.baud == 115200
    assert config.transport.ack_timeout_ms == 2000
