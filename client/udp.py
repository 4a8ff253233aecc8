"""UDP echo client for echotool.

Every round uses a fresh datagram socket, closed before the next round
opens, so a late reply to one round can never be read by the next.
"""

import logging
import socket

from client.base import EchoClient
from common.config import ClientConfig
from common.connection import Endpoint
from common.events import ClientListener
from common.io import CancelToken
from session.exchange import udp_round
from session.result import EchoRound

logger = logging.getLogger(__name__)


class UdpEchoClient(EchoClient):
    """UDP echo client engine."""

    def __init__(self, config: ClientConfig, listener: ClientListener | None = None) -> None:
        super().__init__(config, listener)
        self._sock: socket.socket | None = None

    def _open(self, endpoint: Endpoint, token: CancelToken) -> None:
        pass

    def _round(self, endpoint: Endpoint, token: CancelToken) -> EchoRound:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self._sock = sock
        try:
            if self.config.local_port:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                sock.bind(("", self.config.local_port))
            return udp_round(sock, endpoint, self.config.echo_pattern, self.config.timeout_s, token)
        finally:
            self._close()

    def _close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None
