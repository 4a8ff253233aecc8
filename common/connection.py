"""Endpoint types and exceptions for echotool.

Contains:
- Endpoint: IPv4 address and port of a peer
- ConfigError, EngineError, ResolutionError: Exceptions raised by the engines
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from common.errors import SocketFault


class ConfigError(Exception):
    """Raised when engine configuration is out of range."""

    pass


class EngineError(Exception):
    """Raised on engine misuse, such as starting a running engine."""

    pass


class ResolutionError(Exception):
    """Raised when a hostname has no usable IPv4 address."""

    def __init__(self, hostname: str, fault: SocketFault) -> None:
        super().__init__(f"Cannot resolve {hostname!r}: {fault.message}")
        self.hostname = hostname
        self.fault = fault


@dataclass(frozen=True)
class Endpoint:
    """IPv4 address and port of a peer."""

    host: str
    port: int

    @classmethod
    def from_sockaddr(cls, addr: tuple) -> Endpoint:
        """Build from a socket address tuple (host, port[, ...])."""
        return cls(host=addr[0], port=addr[1])

    def to_sockaddr(self) -> tuple[str, int]:
        return (self.host, self.port)

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"
