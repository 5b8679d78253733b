from __future__ import annotations

import argparse
import asyncio
import json
import logging
from dataclasses import replace
from pathlib import Path

from .bench import ThroughputProbe, run_benchmark
from .config import Config, SerialConfig, load_config
from .constants import DEFAULT_SERIAL_BAUD
from .net import Impairment, LoopbackLink
from .serial_link import SerialLink
from .session import TransportSession

logger = logging.getLogger(__name__)


def _load(args: argparse.Namespace) -> Config:
    config = load_config(args.config) if args.config else Config()
    if args.timeout_ms is not None:
        config = replace(config, transport=replace(config.transport, ack_timeout_ms=args.timeout_ms))
    if args.port:
        baud = config.serial.baud if config.serial is not None else DEFAULT_SERIAL_BAUD
        config = replace(config, serial=SerialConfig(port=args.port, baud=baud))
    if args.baud is not None and config.serial is not None:
        config = replace(config, serial=replace(config.serial, baud=args.baud))
    return config


def _open_link(config: Config, args: argparse.Namespace, session: TransportSession) -> LoopbackLink | SerialLink:
    if config.serial is not None:
        link: LoopbackLink | SerialLink = SerialLink(config.serial, frame_budget=config.transport.frame_budget)
    else:
        link = LoopbackLink(
            impairment=Impairment(args.loss_rate, args.delay_ms),
            frame_budget=config.transport.frame_budget,
        )
    link.open(session)
    return link


def _emit(payload: dict[str, object], as_json: bool) -> None:
    print(json.dumps(payload, indent=2) if as_json else payload)


async def _send(args: argparse.Namespace, config: Config) -> int:
    session = TransportSession(config.transport)
    link = _open_link(config, args, session)
    try:
        result = await session.send(args.message)
    finally:
        link.close()

    payload = {
        "role": "sender",
        "success": result.success,
        "bytes": result.bytes_sent,
        "elapsed_ms": result.elapsed_ms,
        "frames": result.frame_count,
        "error": str(result.error) if result.error else None,
    }
    _emit(payload, args.json)
    return 0 if result.success else 1


async def _bench(args: argparse.Namespace, config: Config) -> int:
    if config.serial is None:
        result = await run_benchmark(config.transport, loss_rate=args.loss_rate, delay_ms=args.delay_ms)
    else:
        session = TransportSession(config.transport)
        link = _open_link(config, args, session)
        try:
            result = await ThroughputProbe(session).run()
        finally:
            link.close()

    _emit({"role": "bench", **result.as_dict()}, args.json)
    return 0 if result.success else 1


def cmd_send(args: argparse.Namespace, config: Config) -> int:
    return asyncio.run(_send(args, config))


def cmd_bench(args: argparse.Namespace, config: Config) -> int:
    return asyncio.run(_bench(args, config))


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="echolink", description="Reliable line transport over an echoing link.")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_common(x: argparse.ArgumentParser) -> None:
        x.add_argument("--config", type=Path, default=None, help="YAML configuration file")
        x.add_argument("--timeout-ms", type=int, default=None)
        x.add_argument("--port", default=None, help="serial port of the peer (loopback if omitted)")
        x.add_argument("--baud", type=int, default=None, help=f"serial baud rate (default: config file or {DEFAULT_SERIAL_BAUD})")
        x.add_argument("--loss-rate", type=float, default=0.0)
        x.add_argument("--delay-ms", type=int, default=0)
        x.add_argument("--json", action="store_true")

    send = sub.add_parser("send")
    add_common(send)
    send.add_argument("message")
    send.set_defaults(func=cmd_send)

    bench = sub.add_parser("bench")
    add_common(bench)
    bench.set_defaults(func=cmd_bench)

    args = p.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    try:
        config = _load(args)
    except FileNotFoundError:
        logger.error("Configuration file not found: %s", args.config)
        return 1
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        return 1

    return int(args.func(args, config))


if __name__ == "__main__":
    raise SystemExit(main())
