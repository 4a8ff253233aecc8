"""Run reporting for echotool.

Contains:
- SessionReport: Client report after a run finishes
- ServerReport: Server report after shutdown
"""

from dataclasses import dataclass

from common import messages
from common.report import Report
from session.result import RunStatistics, ServerStats


@dataclass
class SessionReport(Report):
    """Client report after a run finishes."""

    stats: RunStatistics
    aborted: bool = False

    def print(self) -> None:
        """Print the run report."""
        s = self.stats
        print()
        print(messages.CLIENT_STATISTICS.format(received=s.rounds, corrupted=s.corrupted))
        if self.aborted:
            print("(Note: run ended before all requested echoes completed)")

        latency = s.latency_stats
        if latency:
            print(
                f"Latency: avg={latency.avg_ms:.2f}ms min={latency.min_ms:.2f}ms "
                f"max={latency.max_ms:.2f}ms"
            )
            print(
                f"         p50={latency.p50_ms:.2f}ms p95={latency.p95_ms:.2f}ms "
                f"p99={latency.p99_ms:.2f}ms (n={latency.count})"
            )

    def success(self) -> bool:
        """Return True if at least one round completed and every echo was intact."""
        return self.stats.rounds > 0 and self.stats.corrupted == 0


@dataclass
class ServerReport(Report):
    """Server report after shutdown."""

    stats: ServerStats
    fault: bool = False

    def print(self) -> None:
        s = self.stats
        print(
            f"Server: {s.sessions} sessions ({s.timeouts} timed out), "
            f"{s.datagrams} datagrams, {s.bytes_echoed} bytes echoed"
        )

    def success(self) -> bool:
        return not self.fault
