"""TCP server session state for echotool.

Contains:
- Session: One accepted connection with its receive buffer size and
  last-activity time
"""

import socket
import time
from dataclasses import dataclass, field

from common.connection import Endpoint


@dataclass
class Session:
    """One accepted TCP connection.

    idle_since is the single source of truth for the idle timeout. It is
    written by touch() after each successful read and read by
    idle_deadline(), both on the server worker thread.
    """

    conn: socket.socket
    peer: Endpoint
    buffer_size: int
    idle_since: float = field(default_factory=time.monotonic)
    bytes_echoed: int = 0

    @classmethod
    def accept(cls, conn: socket.socket, addr: tuple) -> "Session":
        """Wrap an accepted connection, sizing the buffer to SO_RCVBUF."""
        buffer_size = conn.getsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF)
        return cls(conn=conn, peer=Endpoint.from_sockaddr(addr), buffer_size=max(buffer_size, 1))

    def touch(self) -> None:
        """Reset the idle clock."""
        self.idle_since = time.monotonic()

    def idle_deadline(self, timeout_s: int) -> float | None:
        """Monotonic time at which the session times out, None if disabled."""
        if timeout_s <= 0:
            return None
        return self.idle_since + timeout_s

    def close(self) -> None:
        """Close the connection without waiting for the peer."""
        try:
            self.conn.shutdown(socket.SHUT_RDWR)
        except OSError:
            # Already reset or closed by the peer
            pass
        self.conn.close()
