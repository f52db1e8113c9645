"""Command-line entry point for the live dashboard and offline pcap replay."""

from __future__ import annotations

import argparse
import ipaddress
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from .config import DEFAULT_LOCAL_SUBNETS, HISTORY_WINDOW_SECS, TICK_RATE_MS, TOP_TALKERS_LIMIT, MonitorConfig
from .dashboard import render_talkers_table, run_dashboard
from .devices import default_interface, get_local_address
from .engine import BandwidthEngine
from .formatting import format_bps, format_bytes_total
from .live_capture import LiveCapture, LiveCaptureError
from .replay import ReplayResult, replay_pcap

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--tick-ms",
        type=int,
        default=TICK_RATE_MS,
        metavar="MS",
        help=f"Milliseconds between aggregation ticks (default: {TICK_RATE_MS}).",
    )
    common.add_argument(
        "--window-secs",
        type=float,
        default=HISTORY_WINDOW_SECS,
        metavar="SECONDS",
        help=f"Smoothing window for host averages and graphs (default: {HISTORY_WINDOW_SECS}).",
    )
    common.add_argument(
        "--subnet",
        action="append",
        metavar="CIDR",
        help="Local network tracked per host; repeatable "
        f"(default: {', '.join(DEFAULT_LOCAL_SUBNETS)}).",
    )
    common.add_argument(
        "--local-ip",
        metavar="ADDR",
        help="Address whose frames count as upload (default: the interface's IPv4 address).",
    )
    common.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Log level for diagnostic output.",
    )

    parser = argparse.ArgumentParser(
        prog="lantop",
        description="Live per-host bandwidth monitor for the local network.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    live = commands.add_parser("live", parents=[common], help="Capture an interface and show the dashboard.")
    live.add_argument("-i", "--interface", help="Interface to capture (default: first non-loopback).")
    live.add_argument("--bpf-filter", metavar="FILTER", help="Optional BPF capture filter.")

    replay = commands.add_parser("replay", parents=[common], help="Aggregate a pcap file on capture time.")
    replay.add_argument("pcap_path", type=Path, help="Path to a PCAP file.")
    replay.add_argument(
        "--top",
        type=int,
        default=TOP_TALKERS_LIMIT,
        metavar="N",
        help=f"Rows in the top talkers table (default: {TOP_TALKERS_LIMIT}).",
    )
    return parser


def build_config(parser: argparse.ArgumentParser, args: argparse.Namespace, local_address: Optional[bytes]) -> MonitorConfig:
    subnets = tuple(args.subnet) if args.subnet else DEFAULT_LOCAL_SUBNETS
    try:
        return MonitorConfig(
            tick_interval_ms=args.tick_ms,
            history_window_secs=args.window_secs,
            local_subnets=subnets,
            local_address=local_address,
        )
    except ValueError as exc:
        parser.error(str(exc))


def parse_local_ip(parser: argparse.ArgumentParser, value: Optional[str]) -> Optional[bytes]:
    if value is None:
        return None
    try:
        return ipaddress.IPv4Address(value).packed
    except ValueError:
        parser.error(f"--local-ip must be an IPv4 address: {value}")


def run_live(parser: argparse.ArgumentParser, args: argparse.Namespace, console: Console) -> int:
    interface = args.interface or default_interface()
    if interface is None:
        logger.error("No capture interface found; pass one with --interface")
        return 1

    local_address = parse_local_ip(parser, args.local_ip)
    if local_address is None:
        local_address = get_local_address(interface)
        if local_address is None:
            logger.warning("No IPv4 address on %s; all traffic is counted as download", interface)

    config = build_config(parser, args, local_address)
    engine = BandwidthEngine(config)
    capture = LiveCapture(interface, frame_listener=engine, bpf_filter=args.bpf_filter)

    try:
        capture.start()
    except LiveCaptureError as exc:
        logger.error("%s", exc)
        if exc.__cause__ is not None:
            logger.error("Cause: %s", exc.__cause__)
        return 1

    try:
        run_dashboard(engine, interface, console=console)
    finally:
        capture.stop()
    return 0


def print_replay_summary(result: ReplayResult, console: Console, limit: int) -> None:
    snapshot = result.snapshot
    console.print(
        f"frames={result.frames} ticks={result.ticks} duration={result.duration_s:.2f}s",
    )
    console.print(
        f"▼ Tot: {format_bytes_total(snapshot.total_inbound)}  Top: {format_bps(snapshot.peak_inbound_rate)}"
    )
    console.print(
        f"▲ Tot: {format_bytes_total(snapshot.total_outbound)}  Top: {format_bps(snapshot.peak_outbound_rate)}"
    )
    console.print(render_talkers_table(snapshot, limit))


def run_replay(parser: argparse.ArgumentParser, args: argparse.Namespace, console: Console) -> int:
    config = build_config(parser, args, parse_local_ip(parser, args.local_ip))
    try:
        result = replay_pcap(args.pcap_path, config)
    except (FileNotFoundError, RuntimeError) as exc:
        logger.error("%s", exc)
        return 1

    print_replay_summary(result, console, args.top)
    return 0


def configure_logging(level: str, console: Optional[Console] = None) -> None:
    if console is None:
        logging.basicConfig(level=getattr(logging, level))
        return
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "live":
        console = Console()
        configure_logging(args.log_level, console)
        return run_live(parser, args, console)

    configure_logging(args.log_level)
    if args.top < 0:
        parser.error("--top must not be negative")
    return run_replay(parser, args, Console())


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
