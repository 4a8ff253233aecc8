"""Echo session package for echotool.

This package handles the data side of an echo run:
- Single-round exchange for TCP and UDP clients, server-side echo
- Integrity check between sent and received payloads
- RTT (round-trip time) measurement and latency statistics
- TCP server session state with idle tracking
- Client and server reports
"""

from session.exchange import echo_available, payload_matches, tcp_round, udp_round
from session.report import ServerReport, SessionReport
from session.result import (
    EchoRound,
    LatencyStats,
    RunStatistics,
    ServerStats,
    compute_latency_stats,
)
from session.state import Session

__all__ = [
    "EchoRound",
    "LatencyStats",
    "RunStatistics",
    "ServerReport",
    "ServerStats",
    "Session",
    "SessionReport",
    "compute_latency_stats",
    "echo_available",
    "payload_matches",
    "tcp_round",
    "udp_round",
]
