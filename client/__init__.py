"""Client package for echotool.

Contains the echo client engines:
- base: EchoClient, resolve/repeat/pacing policy shared by both transports
- tcp: TcpEchoClient, one connection for all rounds
- udp: UdpEchoClient, a fresh socket per round

Note: run_client and ExitCode are not exported here. Import them from
client.runner.
"""

from client.base import EchoClient
from client.tcp import TcpEchoClient
from client.udp import UdpEchoClient

__all__ = [
    "EchoClient",
    "TcpEchoClient",
    "UdpEchoClient",
]
