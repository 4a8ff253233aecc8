"""Console report base for echotool.

SessionReport (client) and ServerReport (server) in session.report
derive from Report; the runners print one after the engine finishes.
"""

from abc import ABC, abstractmethod


class Report(ABC):
    """Summary printed once an echo engine has finished."""

    @abstractmethod
    def print(self) -> None:
        """Write the summary to stdout, below any per-round lines."""

    @abstractmethod
    def success(self) -> bool:
        """Whether the run ended the way the operator asked for."""
