"""Integration tests for the TCP and UDP echo servers on loopback."""

import errno
import socket
import struct
import threading
import time
from collections.abc import Generator

import pytest

from common.config import ServerConfig
from common.connection import EngineError
from common.engine import EngineState
from common.errors import ErrorKind
from common.protocol import Transport
from conftest import EVENT_TIMEOUT_S, RecordingServerListener
from server.tcp import TcpEchoServer
from server.udp import UdpEchoServer


def connect(port: int) -> socket.socket:
    sock = socket.create_connection(("127.0.0.1", port), timeout=EVENT_TIMEOUT_S)
    return sock


def recv_exactly(sock: socket.socket, size: int) -> bytes:
    data = b""
    while len(data) < size:
        chunk = sock.recv(size - len(data))
        if not chunk:
            break
        data += chunk
    return data


def flood_without_reading(sock: socket.socket, done: threading.Event, limit_s: float) -> None:
    """Send until done is set, limit_s passes, or the server drops the connection."""
    sock.settimeout(0.2)
    chunk = b"x" * 65536
    deadline = time.monotonic() + limit_s
    while not done.is_set() and time.monotonic() < deadline:
        try:
            sock.send(chunk)
        except TimeoutError:
            continue
        except OSError:
            return


@pytest.mark.integration
class TestTcpEchoServer:
    """Tests for TcpEchoServer."""

    def test_echoes_payload(self, tcp_server: TcpEchoServer, server_events: RecordingServerListener, free_port: int) -> None:
        """Test bytes sent are echoed back and reported."""
        with connect(free_port) as sock:
            assert server_events.connected.wait(EVENT_TIMEOUT_S)
            sock.sendall(b"hello")
            assert recv_exactly(sock, 5) == b"hello"
            assert server_events.received.wait(EVENT_TIMEOUT_S)

        assert server_events.connects[0].host == "127.0.0.1"
        assert b"".join(data for data, _ in server_events.data) == b"hello"
        assert server_events.data[0][1] == server_events.connects[0]

    def test_large_payload(self, tcp_server: TcpEchoServer, free_port: int) -> None:
        """Test a payload larger than one read is echoed in full and in order."""
        payload = bytes(range(256)) * 1024
        with connect(free_port) as sock:
            sock.sendall(payload)
            assert recv_exactly(sock, len(payload)) == payload

    def test_state_and_address(self, tcp_server: TcpEchoServer, free_port: int) -> None:
        """Test a started server is listening on its port."""
        assert tcp_server.running
        assert tcp_server.state in (EngineState.LISTENING, EngineState.RUNNING)
        assert tcp_server.address is not None
        assert tcp_server.address.port == free_port

    def test_peer_close(self, tcp_server: TcpEchoServer, server_events: RecordingServerListener, free_port: int) -> None:
        """Test a client close ends the session without timeout."""
        with connect(free_port):
            assert server_events.connected.wait(EVENT_TIMEOUT_S)
        assert server_events.disconnected.wait(EVENT_TIMEOUT_S)
        assert server_events.disconnects == [False]
        assert tcp_server.stats.timeouts == 0

    def test_sequential_sessions(self, tcp_server: TcpEchoServer, server_events: RecordingServerListener, free_port: int) -> None:
        """Test the server accepts a new client after the previous one leaves."""
        for payload in (b"first", b"second"):
            server_events.disconnected.clear()
            with connect(free_port) as sock:
                sock.sendall(payload)
                assert recv_exactly(sock, len(payload)) == payload
            assert server_events.disconnected.wait(EVENT_TIMEOUT_S)

        assert len(server_events.connects) == 2
        assert tcp_server.stats.sessions == 2
        assert tcp_server.running

    def test_idle_timeout(self, free_port: int, server_events: RecordingServerListener) -> None:
        """Test an idle session is closed and reported as a timeout."""
        server = TcpEchoServer(ServerConfig(Transport.TCP, port=free_port, timeout_s=1), server_events)
        assert server.start()
        try:
            with connect(free_port) as sock:
                assert server_events.disconnected.wait(EVENT_TIMEOUT_S)
                assert server_events.disconnects == [True]
                assert sock.recv(16) == b""
            assert server.stats.timeouts == 1
            assert server.running
        finally:
            server.stop()

    def test_activity_resets_idle_timer(self, free_port: int, server_events: RecordingServerListener) -> None:
        """Test reads keep an active session open past the timeout."""
        server = TcpEchoServer(ServerConfig(Transport.TCP, port=free_port, timeout_s=1), server_events)
        assert server.start()
        try:
            with connect(free_port) as sock:
                for _ in range(3):
                    sock.sendall(b"x")
                    assert recv_exactly(sock, 1) == b"x"
                    assert not server_events.disconnected.wait(0.6)
        finally:
            server.stop()

    def test_stop_during_session(self, tcp_server: TcpEchoServer, server_events: RecordingServerListener, free_port: int) -> None:
        """Test stopping with a connected client closes it without timeout."""
        with connect(free_port) as sock:
            assert server_events.connected.wait(EVENT_TIMEOUT_S)
            tcp_server.stop()
            assert server_events.disconnects == [False]
            assert sock.recv(16) == b""
        assert not tcp_server.running
        assert tcp_server.state == EngineState.STOPPED

    def test_address_in_use(self, tcp_server: TcpEchoServer, free_port: int) -> None:
        """Test a second server on a busy port fails to start."""
        events = RecordingServerListener()
        second = TcpEchoServer(ServerConfig(Transport.TCP, port=free_port), events)
        assert second.start() is False
        assert events.errors[0].kind == ErrorKind.ADDRESS_IN_USE
        assert second.state == EngineState.STOPPED

    def test_start_twice(self, tcp_server: TcpEchoServer) -> None:
        """Test starting a running server is a programming error."""
        with pytest.raises(EngineError):
            tcp_server.start()

    def test_stop_idempotent(self, tcp_server: TcpEchoServer) -> None:
        """Test stop can be called repeatedly."""
        tcp_server.stop()
        tcp_server.stop()
        assert not tcp_server.running

    def test_restart(self, tcp_server: TcpEchoServer, free_port: int) -> None:
        """Test a stopped server can be started again on the same port."""
        tcp_server.stop()
        assert tcp_server.start()
        with connect(free_port) as sock:
            sock.sendall(b"again")
            assert recv_exactly(sock, 5) == b"again"

    def test_client_not_reading(self, free_port: int, server_events: RecordingServerListener) -> None:
        """Test a client that sends but never reads times out instead of stalling the server."""
        server = TcpEchoServer(ServerConfig(Transport.TCP, port=free_port, timeout_s=1), server_events)
        assert server.start()
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF, 4096)
        try:
            sock.connect(("127.0.0.1", free_port))
            flood_without_reading(sock, server_events.disconnected, 2 * EVENT_TIMEOUT_S)

            assert server_events.disconnected.wait(EVENT_TIMEOUT_S)
            assert server_events.disconnects == [True]
            assert server_events.errors == []
            assert server.stats.timeouts == 1
            assert server.running
        finally:
            sock.close()
            server.stop()

    def test_stop_while_client_not_reading(
        self, tcp_server: TcpEchoServer, server_events: RecordingServerListener, free_port: int
    ) -> None:
        """Test stop releases a session whose echo write is stalled."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF, 4096)
        try:
            sock.connect(("127.0.0.1", free_port))
            flood_without_reading(sock, threading.Event(), 1.0)

            start = time.monotonic()
            tcp_server.stop()
            assert time.monotonic() - start < 2.0
            assert not tcp_server.running
            assert server_events.disconnects == [False]
            assert server_events.errors == []
        finally:
            sock.close()

    def test_peer_reset(self, tcp_server: TcpEchoServer, server_events: RecordingServerListener, free_port: int) -> None:
        """Test a reset from the client ends only its session."""
        with connect(free_port) as sock:
            sock.sendall(b"hi")
            assert recv_exactly(sock, 2) == b"hi"
            # Zero linger turns close() into a reset
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_LINGER, struct.pack("ii", 1, 0))
        assert server_events.disconnected.wait(EVENT_TIMEOUT_S)

        assert server_events.disconnects == [False]
        assert server_events.errors == []
        assert tcp_server.running
        with connect(free_port) as sock:
            sock.sendall(b"next")
            assert recv_exactly(sock, 4) == b"next"

    def test_fault_mid_session(
        self,
        tcp_server: TcpEchoServer,
        server_events: RecordingServerListener,
        free_port: int,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test a socket fault other than a reset stops the whole server."""

        def failing_echo(session, token, timeout_s):
            raise OSError(errno.EIO, "Input/output error")

        monkeypatch.setattr("server.tcp.echo_available", failing_echo)
        with connect(free_port) as sock:
            sock.sendall(b"x")
            assert server_events.failed.wait(EVENT_TIMEOUT_S)

        assert tcp_server.wait(EVENT_TIMEOUT_S)
        assert not tcp_server.running
        assert server_events.errors[0].kind == ErrorKind.OTHER
        assert server_events.errors[0].errno == errno.EIO
        assert server_events.disconnects == []
        assert tcp_server.state == EngineState.STOPPED

    def test_invalid_config(self, server_events: RecordingServerListener) -> None:
        """Test an invalid port refuses to start."""
        server = TcpEchoServer(ServerConfig(Transport.TCP, port=0), server_events)
        assert server.start() is False
        assert not server.running
        assert server_events.errors == []


@pytest.mark.integration
class TestUdpEchoServer:
    """Tests for UdpEchoServer."""

    @pytest.fixture
    def client(self) -> Generator[socket.socket, None, None]:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        sock.settimeout(EVENT_TIMEOUT_S)
        sock.bind(("127.0.0.1", 0))
        yield sock
        sock.close()

    def test_echoes_datagram(
        self, udp_server: UdpEchoServer, server_events: RecordingServerListener, free_port: int, client: socket.socket
    ) -> None:
        """Test a datagram is echoed to its sender."""
        client.sendto(b"PING", ("127.0.0.1", free_port))
        data, addr = client.recvfrom(1024)

        assert data == b"PING"
        assert addr == ("127.0.0.1", free_port)
        assert server_events.received.wait(EVENT_TIMEOUT_S)
        payload, sender = server_events.data[0]
        assert payload == b"PING"
        assert sender.to_sockaddr() == client.getsockname()

    def test_datagram_boundaries(self, udp_server: UdpEchoServer, free_port: int, client: socket.socket) -> None:
        """Test each datagram is echoed as a separate datagram."""
        for payload in (b"one", b"two", b"three"):
            client.sendto(payload, ("127.0.0.1", free_port))
        replies = [client.recvfrom(1024)[0] for _ in range(3)]
        assert replies == [b"one", b"two", b"three"]

    def test_empty_datagram(self, udp_server: UdpEchoServer, free_port: int, client: socket.socket) -> None:
        """Test a zero-length datagram is echoed as zero-length."""
        client.sendto(b"", ("127.0.0.1", free_port))
        data, _ = client.recvfrom(1024)
        assert data == b""

    def test_no_connect_events(
        self, udp_server: UdpEchoServer, server_events: RecordingServerListener, free_port: int, client: socket.socket
    ) -> None:
        """Test UDP never reports connect or disconnect."""
        client.sendto(b"x", ("127.0.0.1", free_port))
        client.recvfrom(16)
        assert server_events.connects == []
        assert server_events.disconnects == []

    def test_address_in_use(self, udp_server: UdpEchoServer, free_port: int) -> None:
        """Test a second server on a busy port fails to start."""
        events = RecordingServerListener()
        second = UdpEchoServer(ServerConfig(Transport.UDP, port=free_port), events)
        assert second.start() is False
        assert events.errors[0].kind == ErrorKind.ADDRESS_IN_USE

    def test_stop(self, udp_server: UdpEchoServer) -> None:
        """Test stop ends the worker and is idempotent."""
        udp_server.stop()
        udp_server.stop()
        assert not udp_server.running
        assert udp_server.state == EngineState.STOPPED
