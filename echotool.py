#!/usr/bin/env python3
"""Echo protocol (RFC 862) client and server."""

import argparse
import logging
import sys

from client.runner import run_client
from common.config import ClientConfig
from common.protocol import (
    DEFAULT_CLIENT_TIMEOUT_S,
    DEFAULT_PORT,
    DEFAULT_REPEAT_COUNT,
    DEFAULT_SERVER_TIMEOUT_S,
    MAX_PORT,
    MIN_PORT,
    TRACE,
    Transport,
)
from server.runner import run_server

logger = logging.getLogger(__name__)


def _port(value: str) -> int:
    """argparse type for a port in 1-65535."""
    port = _non_negative(value)
    if not MIN_PORT <= port <= MAX_PORT:
        raise argparse.ArgumentTypeError(f"port must be in {MIN_PORT}-{MAX_PORT}, got {port}")
    return port


def _local_port(value: str) -> int:
    """argparse type for a source port, 0 = OS-assigned."""
    port = _non_negative(value)
    if port > MAX_PORT:
        raise argparse.ArgumentTypeError(f"port must be in 0-{MAX_PORT}, got {port}")
    return port


def _non_negative(value: str) -> int:
    if not value.isdigit():
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value!r}")
    return int(value)


def _log_level(verbosity: int) -> int:
    if verbosity >= 2:
        return TRACE
    if verbosity == 1:
        return logging.DEBUG
    return logging.INFO


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="echotool",
        description="Echo protocol (RFC 862) client and server over TCP or UDP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s -p tcp -s                    TCP echo server on port 7
  %(prog)s -p udp -s 9007               UDP echo server on port 9007
  %(prog)s host -p udp -r 9007 -n 3     Three UDP echoes to host:9007
  %(prog)s host -p tcp -n 0 -d PING     TCP echo of "PING" until Ctrl-C
""",
    )
    parser.add_argument(
        "target", nargs="?", help="Echo server hostname or IPv4 address (client mode)"
    )
    parser.add_argument(
        "-p",
        "--protocol",
        type=str.lower,
        choices=[t.value for t in Transport],
        required=True,
        help="Transport: tcp or udp",
    )
    parser.add_argument(
        "-s",
        "--server",
        type=_port,
        nargs="?",
        const=DEFAULT_PORT,
        metavar="PORT",
        help=f"Server mode on the given port (default: {DEFAULT_PORT})",
    )
    parser.add_argument(
        "-r",
        "--remote-port",
        type=_port,
        default=DEFAULT_PORT,
        help=f"Remote port on the echo server (default: {DEFAULT_PORT})",
    )
    parser.add_argument(
        "-l",
        "--local-port",
        type=_local_port,
        default=0,
        help="Local port for the client, 0 = OS-assigned (default: 0)",
    )
    parser.add_argument(
        "-n",
        "--count",
        type=_non_negative,
        default=DEFAULT_REPEAT_COUNT,
        help=f"Number of echo requests, 0 = infinite (default: {DEFAULT_REPEAT_COUNT})",
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=_non_negative,
        default=None,
        help=(
            f"Timeout in seconds, 0 = none (default: {DEFAULT_CLIENT_TIMEOUT_S} for client, "
            f"{DEFAULT_SERVER_TIMEOUT_S} for TCP server idle sessions)"
        ),
    )
    parser.add_argument("-d", "--data", type=str, default="", help="Pattern to be sent for echo")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Increase log verbosity (-v, -vv)"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=_log_level(args.verbose))
    logger.debug(f"Arguments: {vars(args)}")
    transport = Transport(args.protocol)

    if args.server is not None:
        timeout = DEFAULT_SERVER_TIMEOUT_S if args.timeout is None else args.timeout
        return run_server(transport, args.server, timeout)

    if args.target:
        config = ClientConfig(
            transport=transport,
            host=args.target,
            remote_port=args.remote_port,
            local_port=args.local_port,
            timeout_s=DEFAULT_CLIENT_TIMEOUT_S if args.timeout is None else args.timeout,
            repeat_count=args.count,
            pattern=args.data.encode("utf-8") or None,
        )
        return int(run_client(config))

    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
