#!/usr/bin/env python3
"""
termgraf command line.

Usage:
    termgraf --config dashboard.json
    termgraf --host http://influx:8086 --config dashboard.json --log-file termgraf.log
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from textual.logging import TextualHandler

from termgraf.app import run
from termgraf.config import load_config
from termgraf.errors import ConfigError, UIInitError
from termgraf.influx_provider import DEFAULT_HOST, InfluxQueryBackend
from termgraf.scheduler import DEFAULT_POLL_INTERVAL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "WARNING", log_file: Path | None = None) -> None:
    """Configure the root logger.

    Without a log file, records go through Textual so they do not draw over
    the dashboard.
    """
    handler = logging.FileHandler(log_file) if log_file else TextualHandler()
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=LOG_FORMAT,
        handlers=[handler],
    )


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="termgraf",
        description="Live sparklines of Flux query results",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--host",
        default=DEFAULT_HOST,
        help=f"Query backend URL (default: {DEFAULT_HOST})",
    )
    parser.add_argument(
        "--config",
        type=Path,
        required=True,
        help="Path to the dashboard config file",
    )
    parser.add_argument(
        "--token",
        default=os.environ.get("INFLUX_TOKEN", ""),
        help="API token (default: $INFLUX_TOKEN)",
    )
    parser.add_argument(
        "--org",
        default=os.environ.get("INFLUX_ORG", ""),
        help="Organization (default: $INFLUX_ORG)",
    )
    parser.add_argument(
        "--interval",
        type=_positive_float,
        default=DEFAULT_POLL_INTERVAL,
        help="Poll period in seconds for widgets without their own interval",
    )
    parser.add_argument(
        "--no-auto-refresh",
        action="store_true",
        help="Start with polling paused (toggle with 'a')",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Write log records to this file",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: WARNING)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"termgraf: {e}", file=sys.stderr)
        return 1

    backend = InfluxQueryBackend(url=args.host, token=args.token, org=args.org)
    try:
        run(
            config,
            backend,
            interval=args.interval,
            auto_refresh=not args.no_auto_refresh,
        )
    except UIInitError as e:
        print(f"termgraf: {e}", file=sys.stderr)
        return 1
    finally:
        backend.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
