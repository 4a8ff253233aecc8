"""Server runner for echotool.

Contains run_server() which starts a TCP or UDP echo server, renders its
notifications on the console, and handles SIGINT/SIGTERM for graceful
shutdown.
"""

import logging
import signal
import threading
import time
from types import FrameType

from common import messages
from common.config import ServerConfig
from common.connection import Endpoint
from common.errors import SocketFault
from common.events import ServerListener
from common.protocol import DEFAULT_SERVER_TIMEOUT_S, Transport
from server.tcp import TcpEchoServer
from server.udp import UdpEchoServer
from session.report import ServerReport

logger = logging.getLogger(__name__)

# Short wait between shutdown checks - allows quick response to signals
SHUTDOWN_POLL_S = 0.5


def _now() -> str:
    return time.strftime("%H:%M:%S")


def _printable(payload: bytes) -> str:
    return payload.decode("ascii", errors="replace")


class ConsoleServerListener(ServerListener):
    """Renders server notifications on stdout."""

    def __init__(self, transport: Transport, port: int) -> None:
        self.transport = transport
        self.port = port
        self.failed = False

    def caption(self) -> str:
        template = messages.TCP_SERVER_CAPTION if self.transport == Transport.TCP else messages.UDP_SERVER_CAPTION
        return template.format(port=self.port)

    def on_connect(self, peer: Endpoint) -> None:
        print()
        print(messages.TCP_SERVER_CONNECT.format(endpoint=peer, time=_now()))

    def on_disconnect(self, timeout: bool) -> None:
        print()
        print(messages.TCP_SESSION_TIMEOUT if timeout else messages.TCP_SESSION_CLOSED)
        print(self.caption())

    def on_data_received(self, payload: bytes, sender: Endpoint) -> None:
        if self.transport == Transport.TCP:
            print(messages.TCP_SERVER_DATA.format(time=_now(), data=_printable(payload)))
        else:
            print(messages.UDP_SERVER_DATA.format(time=_now(), endpoint=sender, data=_printable(payload)))

    def on_socket_error(self, fault: SocketFault) -> None:
        self.failed = True
        print(f"{messages.SERVER_ERROR}: {messages.fault_message(fault.kind, fault.message)}")


def create_server(
    config: ServerConfig, listener: ServerListener | None = None
) -> TcpEchoServer | UdpEchoServer:
    """Build the server engine for config.transport."""
    if config.transport == Transport.TCP:
        return TcpEchoServer(config, listener)
    return UdpEchoServer(config, listener)


def run_server(
    transport: Transport,
    port: int,
    timeout_s: int = DEFAULT_SERVER_TIMEOUT_S,
) -> int:
    """Run a server until SIGINT/SIGTERM or a fatal fault.

    Returns 0 on a clean shutdown, 1 if the server failed.
    """
    stop_requested = threading.Event()

    def handle_signal(_sig: int, _frame: FrameType | None) -> None:
        logger.info("Signal received - shutting down")
        stop_requested.set()

    config = ServerConfig(transport=transport, port=port, timeout_s=timeout_s)
    listener = ConsoleServerListener(transport, port)
    server = create_server(config, listener)

    previous_int = signal.signal(signal.SIGINT, handle_signal)
    previous_term = signal.signal(signal.SIGTERM, handle_signal)
    try:
        print(listener.caption())
        if not server.start():
            return 1

        while not stop_requested.is_set():
            if server.wait(SHUTDOWN_POLL_S):
                # Worker exited on its own, only a fault does that
                break
    finally:
        server.stop()
        signal.signal(signal.SIGINT, previous_int)
        signal.signal(signal.SIGTERM, previous_term)

    ServerReport(stats=server.stats, fault=listener.failed).print()
    logger.info("Server shutdown complete")
    return 1 if listener.failed else 0
