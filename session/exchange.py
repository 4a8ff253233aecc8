"""Echo exchange for echotool.

Contains:
- payload_matches: Integrity check between sent and received bytes
- echo_available: Server side, read one buffer and write it back
- tcp_round: Client side, one write+read round over a connected stream
- udp_round: Client side, one sendto+recvfrom round on a datagram socket
"""

import logging
import socket
import time

from common.connection import Endpoint
from common.io import CancelToken, deadline_remaining
from common.protocol import CLIENT_RECV_SIZE, MAX_DATAGRAM_SIZE, TRACE
from session.result import EchoRound
from session.state import Session

logger = logging.getLogger(__name__)


def payload_matches(sent: bytes, received: bytes) -> bool:
    """True iff received has the same length and content as sent."""
    return len(sent) == len(received) and sent == received


def _deadline(timeout_s: int) -> float | None:
    return time.monotonic() + timeout_s if timeout_s > 0 else None


def _send_all(sock: socket.socket, data: bytes, token: CancelToken, deadline: float | None) -> None:
    view = memoryview(data)
    while view:
        if not token.wait_writable(sock, deadline_remaining(deadline)):
            raise TimeoutError(f"timed out with {len(view)} of {len(data)} bytes unsent")
        try:
            sent = sock.send(view)
        except BlockingIOError:
            continue
        view = view[sent:]


# -----------------------------------------------------------------------------
# Server
# -----------------------------------------------------------------------------


def echo_available(session: Session, token: CancelToken, timeout_s: int) -> bytes | None:
    """Read one buffer from the session and write exactly those bytes back.

    Call only when the connection is readable; the socket must be
    non-blocking. The write shares the idle deadline started by the read,
    so a peer that stops reading times out like a silent one.

    Returns the echoed payload, b"" when the peer has shut down its side,
    or None if the readiness was spurious and nothing was read.

    Raises:
        TimeoutError: If the echo could not be written before the idle deadline.
        Cancelled: If the token is cancelled while the write is pending.
        OSError: On a socket fault, including a peer reset.
    """
    try:
        data = session.conn.recv(session.buffer_size)
    except BlockingIOError:
        return None
    if not data:
        return b""
    session.touch()
    _send_all(session.conn, data, token, session.idle_deadline(timeout_s))
    session.bytes_echoed += len(data)
    logger.log(TRACE, f"Echoed {len(data)} bytes to {session.peer}")
    return data


# -----------------------------------------------------------------------------
# Client
# -----------------------------------------------------------------------------


def tcp_round(
    sock: socket.socket,
    peer: Endpoint,
    pattern: bytes,
    timeout_s: int,
    token: CancelToken,
) -> EchoRound:
    """Write pattern and read until at least len(pattern) bytes come back.

    The timeout bounds the whole round, 0 waits forever.

    Raises:
        TimeoutError: If the reply does not arrive in time.
        ConnectionAbortedError: If the server closes the stream mid-round.
        Cancelled: If the token is cancelled.
        OSError: On any other socket fault.
    """
    deadline = _deadline(timeout_s)
    started = time.perf_counter()
    _send_all(sock, pattern, token, deadline)

    received = bytearray()
    while len(received) < len(pattern):
        if not token.wait_readable(sock, deadline_remaining(deadline)):
            raise TimeoutError(f"timed out after {timeout_s}s waiting for echo")
        chunk = sock.recv(CLIENT_RECV_SIZE)
        if not chunk:
            raise ConnectionAbortedError(
                f"connection closed by server after {len(received)}/{len(pattern)} bytes"
            )
        received += chunk
    ended = time.perf_counter()

    return EchoRound(
        peer=peer,
        started=started,
        ended=ended,
        bytes_sent=len(pattern),
        bytes_received=len(received),
        intact=payload_matches(pattern, bytes(received)),
    )


def udp_round(
    sock: socket.socket,
    target: Endpoint,
    pattern: bytes,
    timeout_s: int,
    token: CancelToken,
) -> EchoRound:
    """Send pattern as one datagram and wait for one reply datagram.

    Raises:
        TimeoutError: If no reply arrives within timeout_s (0 waits forever).
        Cancelled: If the token is cancelled.
        OSError: On any other socket fault.
    """
    deadline = _deadline(timeout_s)
    started = time.perf_counter()
    sock.sendto(pattern, target.to_sockaddr())

    if not token.wait_readable(sock, deadline_remaining(deadline)):
        raise TimeoutError(f"timed out after {timeout_s}s waiting for echo")
    data, addr = sock.recvfrom(MAX_DATAGRAM_SIZE)
    ended = time.perf_counter()

    return EchoRound(
        peer=Endpoint.from_sockaddr(addr),
        started=started,
        ended=ended,
        bytes_sent=len(pattern),
        bytes_received=len(data),
        intact=payload_matches(pattern, data),
    )
