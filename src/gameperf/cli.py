"""Command-line entry point for gameperf."""

import argparse
import json
import logging
import sys
from queue import Queue

from gameperf import device
from gameperf.app import GamePerfApp
from gameperf.capture import CaptureController
from gameperf.errors import GamePerfError
from gameperf.logs import configure_logging
from gameperf.models import MemorySample

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the ``gameperf`` command."""
    parser = argparse.ArgumentParser(
        prog="gameperf",
        description="Capture memory usage of an Android process over adb.",
    )
    parser.add_argument("--log-level", default=None, help="logging level (default: $GAMEPERF_LOG or INFO)")
    parser.add_argument("--log-file", default=None, help="write logs to this file")
    sub = parser.add_subparsers(dest="command")

    tui = sub.add_parser("tui", help="interactive capture (default)")
    tui.add_argument("target", nargs="?", default=None, help="package name or pid")

    stream = sub.add_parser("stream", help="print one JSON sample per line")
    stream.add_argument("target", help="package name or pid")
    stream.add_argument("--count", type=int, default=0, help="stop after N samples (0: run until interrupted)")
    stream.add_argument("--interval", type=float, default=1.0, help="seconds between samples")

    pid = sub.add_parser("pid", help="resolve a process to its pid")
    pid.add_argument("identifier")

    package = sub.add_parser("package", help="resolve a partial package name")
    package.add_argument("identifier")

    prop = sub.add_parser("prop", help="read a device property")
    prop.add_argument("key")

    sub.add_parser("current-app", help="print the foreground package")
    return parser


def stream_samples(target: str, count: int = 0, interval: float = 1.0) -> int:
    """
    Capture ``target`` headlessly and print each sample as a JSON line.

    Returns the number of samples printed.
    """
    samples: Queue[MemorySample] = Queue()
    controller = CaptureController(samples.put, sample_interval=interval)
    controller.start()
    controller.start_capture(target)
    printed = 0
    try:
        while count <= 0 or printed < count:
            sample = samples.get()
            print(json.dumps(sample.to_dict()), flush=True)
            printed += 1
    except KeyboardInterrupt:
        pass
    finally:
        controller.stop_capture()
        controller.stop()
    return printed


def run_query(args: argparse.Namespace) -> str:
    """Run a one-shot device query and return its printable result."""
    if args.command == "pid":
        identity = device.resolve_pid(args.identifier)
        return f"{identity.pid} {identity.name}"
    if args.command == "package":
        return device.resolve_package(args.identifier)
    if args.command == "prop":
        return device.get_property(args.key)
    return device.current_app()


def main(argv: list[str] | None = None) -> int:
    """Entry point for the gameperf command."""
    args = build_parser().parse_args(argv)
    command = args.command or "tui"

    if command == "tui":
        configure_logging(args.log_level, args.log_file, tui=True)
        GamePerfApp(target=getattr(args, "target", None)).run()
        return 0

    configure_logging(args.log_level, args.log_file)
    if command == "stream":
        stream_samples(args.target, args.count, args.interval)
        return 0

    try:
        print(run_query(args))
    except GamePerfError as exc:
        logger.debug("query failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
