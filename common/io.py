"""Cancellable socket waits for echotool.

Contains:
- Cancelled: Raised by a wait once its token is cancelled
- CancelToken: Stop signal that wakes any thread blocked in a wait
- deadline_remaining: Seconds left until a monotonic deadline
"""

import logging
import selectors
import socket
import threading
import time
from contextlib import suppress

logger = logging.getLogger(__name__)


class Cancelled(Exception):
    """Raised when a wait is interrupted by CancelToken.cancel()."""

    pass


def deadline_remaining(deadline: float | None) -> float | None:
    """Return seconds left until deadline (monotonic), never negative.

    None means no deadline.
    """
    if deadline is None:
        return None
    return max(0.0, deadline - time.monotonic())


class CancelToken:
    """Stop signal shared between an engine and its worker thread.

    Waits multiplex the target socket with one end of a socketpair;
    cancel() writes to the other end, so a blocked wait returns at once
    instead of polling a flag.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._wake_r, self._wake_w = socket.socketpair()
        self._wake_r.setblocking(False)
        self._wake_w.setblocking(False)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Signal cancellation. Safe to call repeatedly and from any thread."""
        if self._event.is_set():
            return
        self._event.set()
        with suppress(OSError):
            self._wake_w.send(b"\x00")

    def check(self) -> None:
        """Raise Cancelled if cancel() has been called."""
        if self._event.is_set():
            raise Cancelled()

    def sleep(self, seconds: float) -> None:
        """Sleep, returning early with Cancelled if cancelled."""
        if self._event.wait(seconds):
            raise Cancelled()

    def wait_readable(self, sock: socket.socket, timeout: float | None) -> bool:
        """Wait until sock is readable.

        Returns True when readable, False when timeout (seconds) elapses.
        None waits forever.

        Raises:
            Cancelled: If the token is or becomes cancelled.
        """
        return self._wait(sock, selectors.EVENT_READ, timeout)

    def wait_writable(self, sock: socket.socket, timeout: float | None) -> bool:
        """Wait until sock is writable. Same contract as wait_readable()."""
        return self._wait(sock, selectors.EVENT_WRITE, timeout)

    def _wait(self, sock: socket.socket, events: int, timeout: float | None) -> bool:
        self.check()
        with selectors.DefaultSelector() as sel:
            sel.register(sock, events)
            sel.register(self._wake_r, selectors.EVENT_READ)
            ready = sel.select(timeout)
        self.check()
        return any(key.fileobj is sock for key, _ in ready)

    def close(self) -> None:
        self._wake_r.close()
        self._wake_w.close()
