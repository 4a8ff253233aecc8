"""TCP echo client for echotool.

Connects once and runs every round over the same stream.
"""

import errno
import logging
import os
import socket

from client.base import EchoClient
from common.config import ClientConfig
from common.connection import Endpoint
from common.engine import EngineState
from common.events import ClientListener
from common.io import CancelToken
from session.exchange import tcp_round
from session.result import EchoRound

logger = logging.getLogger(__name__)

_CONNECT_PENDING = {0, errno.EINPROGRESS, errno.EWOULDBLOCK, errno.EAGAIN, errno.EALREADY}


class TcpEchoClient(EchoClient):
    """TCP echo client engine."""

    def __init__(self, config: ClientConfig, listener: ClientListener | None = None) -> None:
        super().__init__(config, listener)
        self._sock: socket.socket | None = None
        self._peer: Endpoint | None = None

    def _open(self, endpoint: Endpoint, token: CancelToken) -> None:
        self._state = EngineState.CONNECTING
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock = sock
        if self.config.local_port:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(("", self.config.local_port))

        # Non-blocking connect so stop() can interrupt it
        sock.setblocking(False)
        err = sock.connect_ex(endpoint.to_sockaddr())
        if err not in _CONNECT_PENDING:
            raise OSError(err, os.strerror(err))
        timeout = self.config.timeout_s or None
        if not token.wait_writable(sock, timeout):
            raise TimeoutError(f"timed out connecting to {endpoint}")
        err = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        if err:
            raise OSError(err, os.strerror(err))

        self._peer = Endpoint.from_sockaddr(sock.getpeername())
        logger.info(f"Client: connected to {self._peer} from {Endpoint.from_sockaddr(sock.getsockname())}")
        self.listener.on_connect(self._peer)

    def _round(self, endpoint: Endpoint, token: CancelToken) -> EchoRound:
        assert self._sock is not None
        return tcp_round(self._sock, endpoint, self.config.echo_pattern, self.config.timeout_s, token)

    def _close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None
            logger.debug("Client: connection closed")
