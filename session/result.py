"""Round and run result types for echotool.

Contains:
- EchoRound: One client send+receive pair
- LatencyStats: Computed latency statistics in milliseconds
- compute_latency_stats: Compute stats from RTT samples
- RunStatistics: Running client counters, updated after every round
- ServerStats: Running server counters
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from statistics import fmean

from common.connection import Endpoint


@dataclass(frozen=True)
class EchoRound:
    """One logical send+receive pair.

    Attributes:
        peer: Endpoint the reply came from.
        started: perf_counter() timestamp taken just before the send.
        ended: perf_counter() timestamp taken after the full reply was read.
        bytes_sent: Pattern length.
        bytes_received: Reply length.
        intact: Reply equals the pattern in length and content.
    """

    peer: Endpoint
    started: float
    ended: float
    bytes_sent: int
    bytes_received: int
    intact: bool

    @property
    def rtt_s(self) -> float:
        """Round-trip time in seconds, never negative."""
        return max(0.0, self.ended - self.started)

    @property
    def rtt_ms(self) -> float:
        return self.rtt_s * 1000


@dataclass(frozen=True)
class LatencyStats:
    """Round-trip summary of a client run, all values in milliseconds."""

    count: int
    min_ms: float
    max_ms: float
    avg_ms: float
    p50_ms: float
    p95_ms: float
    p99_ms: float


def _rank(ordered: Sequence[float], pct: int) -> float:
    # Lower sample at the rank, no interpolation
    return ordered[int(pct / 100 * (len(ordered) - 1))]


def compute_latency_stats(rtt_samples: Sequence[float]) -> LatencyStats | None:
    """Summarize round-trip times given in seconds.

    Returns None when no echo came back, so reports can skip the latency
    lines entirely.
    """
    if not rtt_samples:
        return None
    ordered = sorted(rtt * 1000 for rtt in rtt_samples)
    return LatencyStats(
        count=len(ordered),
        min_ms=ordered[0],
        max_ms=ordered[-1],
        avg_ms=fmean(ordered),
        p50_ms=_rank(ordered, 50),
        p95_ms=_rank(ordered, 95),
        p99_ms=_rank(ordered, 99),
    )


@dataclass
class RunStatistics:
    """Running client counters.

    Attributes:
        rounds: Rounds completed (echo responses received).
        corrupted: Rounds whose reply did not match the pattern.
        bytes_sent: Total pattern bytes sent in completed rounds.
        bytes_received: Total reply bytes received.
        rtt_samples: Round-trip times in seconds.
    """

    rounds: int = 0
    corrupted: int = 0
    bytes_sent: int = 0
    bytes_received: int = 0
    rtt_samples: list[float] = field(default_factory=list)

    def record(self, echo: EchoRound) -> None:
        """Fold one completed round into the counters."""
        self.rounds += 1
        if not echo.intact:
            self.corrupted += 1
        self.bytes_sent += echo.bytes_sent
        self.bytes_received += echo.bytes_received
        self.rtt_samples.append(echo.rtt_s)

    @property
    def intact(self) -> int:
        return self.rounds - self.corrupted

    @property
    def integrity_rate(self) -> float:
        """Return intact replies as percentage (0-100)."""
        if self.rounds == 0:
            return 0.0
        return (self.intact / self.rounds) * 100

    @property
    def latency_stats(self) -> LatencyStats | None:
        """Compute latency statistics from RTT samples."""
        return compute_latency_stats(self.rtt_samples)


@dataclass
class ServerStats:
    """Running server counters."""

    sessions: int = 0
    timeouts: int = 0
    datagrams: int = 0
    bytes_echoed: int = 0
