"""Presentation callbacks for echotool engines.

Engines report everything through a listener; presentation code
(console runners, tests) subclasses one of these and overrides the
notifications it renders. All methods are invoked on the engine's
worker thread, except on_socket_error for a server bind failure,
which is invoked from start().
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from common.connection import Endpoint
    from common.errors import SocketFault
    from session.result import EchoRound


class ServerListener:
    """Notifications from the TCP and UDP echo servers."""

    def on_connect(self, peer: Endpoint) -> None:
        """A TCP client connection was accepted."""
        pass

    def on_disconnect(self, timeout: bool) -> None:
        """The TCP session ended; timeout is True for idle-timeout expiry."""
        pass

    def on_data_received(self, payload: bytes, sender: Endpoint) -> None:
        """payload was echoed back to sender."""
        pass

    def on_socket_error(self, fault: SocketFault) -> None:
        """A fatal socket fault stopped the server."""
        pass


class ClientListener:
    """Notifications from the TCP and UDP echo clients."""

    def on_resolved(self, endpoint: Endpoint) -> None:
        pass

    def on_resolution_failed(self, fault: SocketFault) -> None:
        pass

    def on_connect(self, peer: Endpoint) -> None:
        """The TCP client connected (not raised by the UDP client)."""
        pass

    def on_echo_response(self, echo: EchoRound) -> None:
        """One round completed; echo carries peer, RTT and integrity flag."""
        pass

    def on_socket_error(self, fault: SocketFault) -> None:
        """A socket fault (including response timeout) ended the run."""
        pass

    def on_finished(self, aborted: bool) -> None:
        """Terminal notification of every run."""
        pass
