"""Client runner for echotool.

Contains run_client() which resolves the target, runs the echo rounds,
renders replies on the console, and returns an exit code based on the
run statistics.
"""

import logging
import signal
import threading
from enum import IntEnum
from types import FrameType

from client.tcp import TcpEchoClient
from client.udp import UdpEchoClient
from common import messages
from common.config import ClientConfig
from common.connection import Endpoint
from common.errors import SocketFault
from common.events import ClientListener
from common.protocol import Transport
from session.report import SessionReport
from session.result import EchoRound

logger = logging.getLogger(__name__)

# Short wait between stop checks - allows quick response to Ctrl-C
STOP_POLL_S = 0.5


class ExitCode(IntEnum):
    """Exit codes for client operations."""

    SUCCESS = 0  # All echoes received intact
    SOCKET_ERROR = 1  # Connect failure, timeout or socket fault
    NO_DATA = 2  # Run ended without any echo
    CORRUPTED = 3  # Run complete but some echoes did not match
    RESOLVE_FAILED = 4  # Hostname could not be resolved
    CONFIG_ERROR = 5  # Invalid ports, timeout or count


class ConsoleClientListener(ClientListener):
    """Renders client notifications on stdout."""

    def __init__(self, host: str) -> None:
        self.host = host
        self.resolve_failed = False
        self.socket_failed = False
        self.aborted = False

    def on_resolved(self, endpoint: Endpoint) -> None:
        print(messages.HOSTNAME_RESOLVED.format(host=self.host, address=endpoint.host))
        print()

    def on_resolution_failed(self, fault: SocketFault) -> None:
        self.resolve_failed = True
        print(messages.fault_message(fault.kind, fault.message))

    def on_connect(self, peer: Endpoint) -> None:
        print(messages.CLIENT_CONNECTED.format(endpoint=peer))

    def on_echo_response(self, echo: EchoRound) -> None:
        state = messages.RESPONSE_OK if echo.intact else messages.RESPONSE_CORRUPT
        print(messages.CLIENT_RESPONSE.format(endpoint=echo.peer, ms=f"{echo.rtt_ms:.2f}", state=state))

    def on_socket_error(self, fault: SocketFault) -> None:
        self.socket_failed = True
        print(messages.fault_message(fault.kind, fault.message))

    def on_finished(self, aborted: bool) -> None:
        self.aborted = aborted


def create_client(
    config: ClientConfig, listener: ClientListener | None = None
) -> TcpEchoClient | UdpEchoClient:
    """Build the client engine for config.transport."""
    if config.transport == Transport.TCP:
        return TcpEchoClient(config, listener)
    return UdpEchoClient(config, listener)


def run_client(config: ClientConfig) -> int:
    """Run client rounds to completion (or Ctrl-C). Returns exit code."""
    stop_requested = threading.Event()

    def handle_signal(_sig: int, _frame: FrameType | None) -> None:
        logger.info("Signal received - stopping client")
        stop_requested.set()

    listener = ConsoleClientListener(config.host)
    client = create_client(config, listener)

    previous_int = signal.signal(signal.SIGINT, handle_signal)
    try:
        if not client.start():
            return ExitCode.CONFIG_ERROR

        count_msg = "until stopped" if config.infinite else f"{config.repeat_count} times"
        logger.info(f"Client: echoing to {config.host}:{config.remote_port} {count_msg} (Ctrl-C to stop)")
        while not client.wait(STOP_POLL_S):
            if stop_requested.is_set():
                client.stop()
    finally:
        client.stop()
        signal.signal(signal.SIGINT, previous_int)

    SessionReport(stats=client.stats, aborted=listener.aborted).print()

    # Map run result to exit code
    if listener.resolve_failed:
        return ExitCode.RESOLVE_FAILED
    if listener.socket_failed:
        return ExitCode.SOCKET_ERROR
    if client.stats.rounds == 0:
        return ExitCode.NO_DATA
    if client.stats.corrupted > 0:
        return ExitCode.CORRUPTED
    return ExitCode.SUCCESS
