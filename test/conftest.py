"""pytest configuration and fixtures for echotool tests.

Provides:
- RecordingServerListener / RecordingClientListener: Listeners that store
  every notification and expose threading.Events to wait on
- free_port: An OS-assigned port that is free for both TCP and UDP
- Running TCP/UDP echo server fixtures on 127.0.0.1
- Markers for unit vs integration tests
"""

import socket
import threading
from collections.abc import Generator
from pathlib import Path

import pytest

from common.config import ServerConfig
from common.connection import Endpoint
from common.errors import SocketFault
from common.events import ClientListener, ServerListener
from common.protocol import Transport
from server.tcp import TcpEchoServer
from server.udp import UdpEchoServer
from session.result import EchoRound

# Upper bound for waiting on a notification in integration tests
EVENT_TIMEOUT_S = 5.0


class RecordingServerListener(ServerListener):
    """Stores server notifications for assertions."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.connects: list[Endpoint] = []
        self.disconnects: list[bool] = []
        self.data: list[tuple[bytes, Endpoint]] = []
        self.errors: list[SocketFault] = []
        self.connected = threading.Event()
        self.disconnected = threading.Event()
        self.received = threading.Event()
        self.failed = threading.Event()

    def on_connect(self, peer: Endpoint) -> None:
        with self.lock:
            self.connects.append(peer)
        self.connected.set()

    def on_disconnect(self, timeout: bool) -> None:
        with self.lock:
            self.disconnects.append(timeout)
        self.disconnected.set()

    def on_data_received(self, payload: bytes, sender: Endpoint) -> None:
        with self.lock:
            self.data.append((payload, sender))
        self.received.set()

    def on_socket_error(self, fault: SocketFault) -> None:
        with self.lock:
            self.errors.append(fault)
        self.failed.set()


class RecordingClientListener(ClientListener):
    """Stores client notifications for assertions."""

    def __init__(self) -> None:
        self.resolved: list[Endpoint] = []
        self.resolution_failures: list[SocketFault] = []
        self.connects: list[Endpoint] = []
        self.responses: list[EchoRound] = []
        self.errors: list[SocketFault] = []
        self.finished: list[bool] = []
        self.done = threading.Event()
        self.first_response = threading.Event()

    def on_resolved(self, endpoint: Endpoint) -> None:
        self.resolved.append(endpoint)

    def on_resolution_failed(self, fault: SocketFault) -> None:
        self.resolution_failures.append(fault)

    def on_connect(self, peer: Endpoint) -> None:
        self.connects.append(peer)

    def on_echo_response(self, echo: EchoRound) -> None:
        self.responses.append(echo)
        self.first_response.set()

    def on_socket_error(self, fault: SocketFault) -> None:
        self.errors.append(fault)

    def on_finished(self, aborted: bool) -> None:
        self.finished.append(aborted)
        self.done.set()


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test (uses loopback sockets)")


def _find_free_port() -> int:
    for _ in range(20):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as tcp:
            tcp.bind(("127.0.0.1", 0))
            port = tcp.getsockname()[1]
            with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as udp:
                try:
                    udp.bind(("127.0.0.1", port))
                except OSError:
                    continue
        return port
    raise RuntimeError("No port free for both TCP and UDP")


@pytest.fixture
def free_port() -> int:
    """Return a port currently free for both TCP and UDP on 127.0.0.1."""
    return _find_free_port()


@pytest.fixture
def server_events() -> RecordingServerListener:
    return RecordingServerListener()


@pytest.fixture
def client_events() -> RecordingClientListener:
    return RecordingClientListener()


@pytest.fixture
def tcp_server(
    free_port: int, server_events: RecordingServerListener
) -> Generator[TcpEchoServer, None, None]:
    """Running TCP echo server on free_port with a 30s idle timeout."""
    server = TcpEchoServer(ServerConfig(Transport.TCP, port=free_port, timeout_s=30), server_events)
    assert server.start()
    yield server
    server.stop()


@pytest.fixture
def udp_server(
    free_port: int, server_events: RecordingServerListener
) -> Generator[UdpEchoServer, None, None]:
    """Running UDP echo server on free_port."""
    server = UdpEchoServer(ServerConfig(Transport.UDP, port=free_port), server_events)
    assert server.start()
    yield server
    server.stop()


@pytest.fixture
def script_dir() -> Path:
    """Return path to the repository root."""
    return Path(__file__).parent.parent


@pytest.fixture
def echotool_path(script_dir: Path) -> Path:
    """Return path to echotool.py."""
    return script_dir / "echotool.py"
