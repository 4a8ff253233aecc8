"""UDP echo server for echotool.

Each datagram is echoed back to its sender as a single datagram before
the next receive is issued, so at most one echo is in flight.

Replies go out with sendto() on the bound socket rather than a
per-datagram connected socket; the sender sees the same source address
either way.
"""

import logging
import socket

from common.config import ServerConfig
from common.connection import Endpoint
from common.engine import Engine, EngineState
from common.errors import classify
from common.events import ServerListener
from common.io import CancelToken, Cancelled
from common.protocol import LOG_PROGRESS_INTERVAL, MAX_DATAGRAM_SIZE, TRACE
from session.result import ServerStats

logger = logging.getLogger(__name__)


class UdpEchoServer(Engine):
    """UDP echo server engine."""

    def __init__(self, config: ServerConfig, listener: ServerListener | None = None) -> None:
        super().__init__(f"udp-echo-server:{config.port}")
        self.config = config
        self.listener = listener or ServerListener()
        self.stats = ServerStats()
        self._sock: socket.socket | None = None

    def _prepare(self, token: CancelToken) -> bool:
        if not self.config.is_valid():
            return False

        # No SO_REUSEADDR: on Linux it would let two servers share the port
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind((self.config.bind_host, self.config.port))
        except OSError as e:
            sock.close()
            self._fault(e, "bind failed")
            return False

        self._sock = sock
        self.stats = ServerStats()
        self._state = EngineState.LISTENING
        logger.info(f"UDP server listening on port {self.config.port}")
        return True

    def _run(self, token: CancelToken) -> None:
        sock = self._sock
        assert sock is not None
        try:
            while True:
                token.wait_readable(sock, None)
                data, addr = sock.recvfrom(MAX_DATAGRAM_SIZE)
                sender = Endpoint.from_sockaddr(addr)
                sock.sendto(data, addr)

                self.stats.datagrams += 1
                self.stats.bytes_echoed += len(data)
                logger.log(TRACE, f"Echoed datagram of {len(data)} bytes to {sender}")
                if self.stats.datagrams % LOG_PROGRESS_INTERVAL == 0:
                    logger.debug(f"UDP server: progress {self.stats.datagrams} datagrams")
                self.listener.on_data_received(data, sender)
        except Cancelled:
            logger.info("UDP server stopped")
        except OSError as e:
            self._fault(e, "socket fault")

    def _fault(self, exc: OSError, context: str) -> None:
        fault = classify(exc)
        logger.error(f"UDP server {context} on port {self.config.port}: {fault.kind.value} ({fault.message})")
        self.listener.on_socket_error(fault)

    def _cleanup(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None
