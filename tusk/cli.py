"""Command-line entry point for tusk."""

from __future__ import annotations

import argparse
import asyncio
import logging
import math
import sys
from typing import Sequence

from rich.console import Console
from rich.markup import escape

from . import __version__
from .config import AppConfig, load_config
from .dispatch import CommandDispatcher
from .errors import TuskError
from .queries import Kill, OlderThan, Operation
from .render import OutputFormat
from .units import time_unit_arg

LOG = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

PID_MIN = -(2**31)
PID_MAX = 2**31 - 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tusk", description="Postgres tuning and utility cli")
    parser.add_argument("--version", action="version", version=f"%(prog)s v{__version__}")
    parser.add_argument(
        "-p",
        "--profile",
        help="Connection profile to use. Will use `default` in ~/.tusk/config.toml",
    )
    parser.add_argument(
        "-c",
        "--config",
        help="Path to the config file (default: $TUSKCONFIG or ~/.tusk/config.toml)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    commands = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

    commands.add_parser("ls", help="List configured connection profiles")

    query = commands.add_parser("query", help="Inspect or control server sessions")
    _add_query_options(query, default=OutputFormat.TABLE.value, timeout_default=None)
    queries = query.add_subparsers(dest="query", required=True, metavar="QUERY")

    older_than = queries.add_parser("older-than", help="List queries running longer than a duration")
    _add_query_options(older_than, default=argparse.SUPPRESS, timeout_default=argparse.SUPPRESS)
    older_than.add_argument(
        "older_than",
        metavar="DURATION",
        type=time_unit_arg,
        help="Filter for queries older than. Should be a number and unit (5s, 5min, 5h, 5d)",
    )

    kill = queries.add_parser("kill", help="Terminate the backend with the given pid")
    _add_query_options(kill, default=argparse.SUPPRESS, timeout_default=argparse.SUPPRESS)
    kill.add_argument("pid", type=pid_arg, help="Backend process id to terminate")
    return parser


def _add_query_options(parser: argparse.ArgumentParser, *, default: object, timeout_default: object) -> None:
    # Registered on `query` and each subcommand so the flags work on either side.
    parser.add_argument(
        "-o",
        "--output",
        choices=[fmt.value for fmt in OutputFormat],
        default=default,
        help="Output format (default: table)",
    )
    parser.add_argument(
        "--timeout",
        type=positive_seconds_arg,
        default=timeout_default,
        metavar="SECONDS",
        help="Query timeout in seconds (default: query_timeout from the config file)",
    )


def pid_arg(text: str) -> int:
    """argparse ``type=`` adapter for backend pids (Postgres int4)."""

    try:
        pid = int(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid pid: {text!r}") from exc
    if not PID_MIN <= pid <= PID_MAX:
        raise argparse.ArgumentTypeError(f"pid out of range: {text!r}")
    return pid


def positive_seconds_arg(text: str) -> float:
    """argparse ``type=`` adapter for timeouts; must be finite and above zero."""

    try:
        seconds = float(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid timeout: {text!r}") from exc
    if not math.isfinite(seconds) or seconds <= 0:
        raise argparse.ArgumentTypeError(f"timeout must be a positive number of seconds: {text!r}")
    return seconds


def build_operation(args: argparse.Namespace) -> Operation:
    if args.query == "older-than":
        return OlderThan(args.older_than)
    if args.query == "kill":
        return Kill(args.pid)
    raise ValueError(f"Unknown query '{args.query}'")


def print_profiles(config: AppConfig, console: Console | None = None) -> None:
    """Print profile names with the default one highlighted."""

    console = console or Console(highlight=False)
    console.print(" Profiles\n --------")
    for name, is_default in config.profile_names():
        if is_default:
            console.print(f"*[bold green]{escape(name)}[/] (default)")
        else:
            console.print(f" {escape(name)}")


async def run_query(config: AppConfig, args: argparse.Namespace) -> str:
    profile = config.get(args.profile)
    timeout = args.timeout if args.timeout is not None else config.query_timeout
    dispatcher = CommandDispatcher(
        profile,
        connect_timeout=config.connect_timeout,
        query_timeout=timeout,
    )
    return await dispatcher.run(build_operation(args), OutputFormat(args.output))


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    try:
        config = load_config(args.config)
        if args.command == "ls":
            print_profiles(config)
            return 0
        output = asyncio.run(run_query(config, args))
    except TuskError as exc:
        LOG.debug("Invocation failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(output)
    return 0


__all__ = ["build_operation", "build_parser", "main", "print_profiles", "run_query"]
