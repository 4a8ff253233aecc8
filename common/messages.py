"""Console message strings for echotool.

Kept in one place so the runners and the CLI render identical text.
"""

from common.errors import ErrorKind

HOSTNAME_RESOLVED = "Hostname {host} resolved as {address}"
CLIENT_CONNECTED = "Connected to {endpoint}"
CLIENT_RESPONSE = "Reply from {endpoint}, time {ms} ms {state}"
RESPONSE_OK = "OK"
RESPONSE_CORRUPT = "Corrupted"
CLIENT_STATISTICS = "Statistics: Received={received}, Corrupted={corrupted}"

TCP_SERVER_CAPTION = "Waiting for TCP connection on port {port}. Press Ctrl-C to exit."
UDP_SERVER_CAPTION = "Listening for UDP echo on port {port}. Press Ctrl-C to exit."
TCP_SERVER_CONNECT = "Client {endpoint} connected at {time}"
TCP_SERVER_DATA = "[{time}] Received: {data}"
UDP_SERVER_DATA = "[{time}] Received from {endpoint}: {data}"
TCP_SESSION_TIMEOUT = "Session timeout, connection closed"
TCP_SESSION_CLOSED = "Session closed by peer"
SERVER_ERROR = "Server error"

_FAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.ADDRESS_IN_USE: "Address already in use",
    ErrorKind.ACCESS_DENIED: "Access denied",
    ErrorKind.HOST_NOT_FOUND: "Host not found",
    ErrorKind.TRY_AGAIN: "Host not found (temporary failure in name resolution)",
    ErrorKind.HOST_UNREACHABLE: "Host unreachable",
    ErrorKind.NETWORK_UNREACHABLE: "Network unreachable",
    ErrorKind.CONNECTION_REFUSED: "Can not connect to server",
    ErrorKind.CONNECTION_ABORTED: "Connection closed by remote party",
    ErrorKind.CONNECTION_RESET: "Connection reset by remote party",
    ErrorKind.TIMED_OUT: "Response timeout",
}


def fault_message(kind: ErrorKind, fallback: str) -> str:
    """Human-readable text for a classified fault."""
    return _FAULT_MESSAGES.get(kind, fallback)
