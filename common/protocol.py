"""Protocol definitions for echotool.

Contains:
- Transport enum for the two supported transports
- Default ports, timeouts and repeat policy constants
- default_pattern: hostname-derived echo pattern
- Logging configuration
"""

import logging
import os
import socket
from enum import Enum

# TRACE logging level (below DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Progress logging interval (configurable via envvar)
LOG_PROGRESS_INTERVAL = int(os.environ.get("ECHO_LOG_INTERVAL", "100"))


class Transport(Enum):
    """Transport carrying the echo service."""

    TCP = "tcp"
    UDP = "udp"


# Standard Echo service port (RFC 862)
DEFAULT_PORT = 7

# Default timing and repeat constants
DEFAULT_CLIENT_TIMEOUT_S = 5  # Client waits this long for each echo
DEFAULT_SERVER_TIMEOUT_S = 300  # TCP server drops idle sessions after this
DEFAULT_REPEAT_COUNT = 5  # 0 = repeat until stopped
PACING_DELAY_S = 0.1  # Delay between client rounds

# Receive size for datagrams and client reads
MAX_DATAGRAM_SIZE = 65535
CLIENT_RECV_SIZE = 4096

MIN_PORT = 1
MAX_PORT = 65535


def default_pattern(transport: Transport, hostname: str | None = None) -> bytes:
    """Build the default echo pattern, e.g. b"TCP echo from myhost"."""
    if hostname is None:
        hostname = socket.gethostname()
    text = f"{transport.name} echo from {hostname}"
    return text.encode("ascii", errors="replace")
