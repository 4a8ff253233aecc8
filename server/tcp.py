"""TCP echo server for echotool.

Single-session server: accepts one connection at a time, echoes every
byte it reads until the peer closes, the session idles past the
configured timeout, or the server is stopped, then accepts the next.
A peer that stops reading while its echo is pending times out the same way.
A socket fault other than a peer reset stops the whole server.
"""

import logging
import os
import socket

from common.config import ServerConfig
from common.connection import Endpoint
from common.engine import Engine, EngineState
from common.errors import classify, is_peer_reset
from common.events import ServerListener
from common.io import CancelToken, Cancelled, deadline_remaining
from common.protocol import LOG_PROGRESS_INTERVAL, TRACE
from session.exchange import echo_available
from session.result import ServerStats
from session.state import Session

logger = logging.getLogger(__name__)

# The server is sequential, so one pending connection is enough
LISTEN_BACKLOG = 1


class TcpEchoServer(Engine):
    """TCP echo server engine."""

    def __init__(self, config: ServerConfig, listener: ServerListener | None = None) -> None:
        super().__init__(f"tcp-echo-server:{config.port}")
        self.config = config
        self.listener = listener or ServerListener()
        self.stats = ServerStats()
        self._listen_sock: socket.socket | None = None
        self._session: Session | None = None

    @property
    def session(self) -> Session | None:
        """The active session, if a client is connected."""
        return self._session

    def _prepare(self, token: CancelToken) -> bool:
        if not self.config.is_valid():
            return False

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            if os.name != "nt":
                # Allows rebinding through TIME_WAIT; a live listener still conflicts
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.config.bind_host, self.config.port))
            sock.listen(LISTEN_BACKLOG)
            sock.setblocking(False)
        except OSError as e:
            sock.close()
            self._fault(e, "bind failed")
            return False

        self._listen_sock = sock
        self.stats = ServerStats()
        self._state = EngineState.LISTENING
        logger.info(f"TCP server listening on port {self.config.port} (timeout={self.config.timeout_s}s)")
        return True

    def _run(self, token: CancelToken) -> None:
        assert self._listen_sock is not None
        try:
            while True:
                self._state = EngineState.LISTENING
                token.wait_readable(self._listen_sock, None)
                try:
                    conn, addr = self._listen_sock.accept()
                except BlockingIOError:
                    # Client gave up between readiness and accept
                    continue
                # Echo writes wait on the token too
                conn.setblocking(False)
                self._serve(Session.accept(conn, addr), token)
        except Cancelled:
            logger.info("TCP server stopped")
        except OSError as e:
            self._fault(e, "socket fault")

    def _serve(self, session: Session, token: CancelToken) -> None:
        self._session = session
        self.stats.sessions += 1
        self._state = EngineState.RUNNING
        logger.info(f"Client {session.peer} connected (buffer={session.buffer_size} bytes)")
        self.listener.on_connect(session.peer)

        try:
            timed_out = self._echo_loop(session, token)
        except Cancelled:
            self._end_session(session, timed_out=False)
            raise
        except OSError:
            self._session = None
            session.close()
            raise
        self._end_session(session, timed_out)

    def _echo_loop(self, session: Session, token: CancelToken) -> bool:
        """Echo until the session ends. Returns True if it idled out."""
        reads = 0
        while True:
            deadline = session.idle_deadline(self.config.timeout_s)
            if not token.wait_readable(session.conn, deadline_remaining(deadline)):
                logger.warning(f"Session {session.peer} idle for {self.config.timeout_s}s, closing")
                return True

            try:
                data = echo_available(session, token, self.config.timeout_s)
            except TimeoutError:
                logger.warning(f"Session {session.peer} not reading for {self.config.timeout_s}s, closing")
                return True
            except OSError as e:
                if is_peer_reset(e):
                    logger.debug(f"Session {session.peer} reset by peer")
                    return False
                raise

            if data is None:
                continue
            if not data:
                # Peer shut down its side; close rather than linger half-open
                logger.debug(f"Session {session.peer} closed by peer")
                return False

            reads += 1
            self.stats.bytes_echoed += len(data)
            logger.log(TRACE, f"Session {session.peer}: read {reads} ({len(data)} bytes)")
            if reads % LOG_PROGRESS_INTERVAL == 0:
                logger.debug(f"Session {session.peer}: progress {reads} reads, {session.bytes_echoed} bytes")
            self.listener.on_data_received(data, session.peer)

    def _end_session(self, session: Session, timed_out: bool) -> None:
        self._session = None
        if timed_out:
            self.stats.timeouts += 1
        session.close()
        logger.info(
            f"Session {session.peer} ended ({'timeout' if timed_out else 'closed'}, "
            f"{session.bytes_echoed} bytes echoed)"
        )
        self.listener.on_disconnect(timed_out)

    def _fault(self, exc: OSError, context: str) -> None:
        fault = classify(exc)
        logger.error(f"TCP server {context} on port {self.config.port}: {fault.kind.value} ({fault.message})")
        self.listener.on_socket_error(fault)

    def _cleanup(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
        if self._listen_sock is not None:
            self._listen_sock.close()
            self._listen_sock = None

    @property
    def address(self) -> Endpoint | None:
        """Bound listening address while the server runs."""
        sock = self._listen_sock
        if sock is None:
            return None
        return Endpoint.from_sockaddr(sock.getsockname())
