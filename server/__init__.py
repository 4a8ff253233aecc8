"""Server package for echotool.

Contains the echo server engines:
- tcp: TcpEchoServer, single-session with idle timeout
- udp: UdpEchoServer, one datagram in flight at a time

Note: run_server is not exported here. Import it from server.runner.
"""

from server.tcp import TcpEchoServer
from server.udp import UdpEchoServer

__all__ = [
    "TcpEchoServer",
    "UdpEchoServer",
]
