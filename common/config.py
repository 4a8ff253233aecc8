"""Engine configuration for echotool.

Contains:
- ServerConfig: Listen port and TCP idle timeout
- ClientConfig: Target, ports, response timeout, repeat count and pattern
"""

import logging
from dataclasses import dataclass

from common.connection import ConfigError
from common.protocol import (
    DEFAULT_CLIENT_TIMEOUT_S,
    DEFAULT_PORT,
    DEFAULT_REPEAT_COUNT,
    DEFAULT_SERVER_TIMEOUT_S,
    MAX_PORT,
    MIN_PORT,
    Transport,
    default_pattern,
)

logger = logging.getLogger(__name__)


def _check_port(name: str, value: int, allow_zero: bool = False) -> None:
    low = 0 if allow_zero else MIN_PORT
    if not isinstance(value, int) or not low <= value <= MAX_PORT:
        raise ConfigError(f"{name} must be in {low}-{MAX_PORT}, got {value!r}")


def _check_non_negative(name: str, value: int) -> None:
    if not isinstance(value, int) or value < 0:
        raise ConfigError(f"{name} must be a non-negative integer, got {value!r}")


@dataclass(frozen=True)
class ServerConfig:
    """Server configuration. A timeout of 0 disables the idle timeout."""

    transport: Transport
    port: int = DEFAULT_PORT
    timeout_s: int = DEFAULT_SERVER_TIMEOUT_S
    bind_host: str = ""  # All interfaces

    def validate(self) -> None:
        """Raise ConfigError if any field is out of range."""
        _check_port("port", self.port)
        _check_non_negative("timeout_s", self.timeout_s)

    def is_valid(self) -> bool:
        try:
            self.validate()
        except ConfigError as e:
            logger.error(f"Invalid server configuration: {e}")
            return False
        return True


@dataclass(frozen=True)
class ClientConfig:
    """Client configuration.

    Attributes:
        transport: TCP or UDP.
        host: Hostname or IPv4 literal of the echo server.
        remote_port: Echo server port.
        local_port: Source port, 0 lets the OS pick.
        timeout_s: Response timeout per round, 0 waits forever.
        repeat_count: Number of rounds, 0 repeats until stopped.
        pattern: Bytes to echo. None or empty selects the default pattern.
    """

    transport: Transport
    host: str
    remote_port: int = DEFAULT_PORT
    local_port: int = 0
    timeout_s: int = DEFAULT_CLIENT_TIMEOUT_S
    repeat_count: int = DEFAULT_REPEAT_COUNT
    pattern: bytes | None = None

    def __post_init__(self) -> None:
        # Computed once here so a run never re-reads the hostname
        if not self.pattern:
            object.__setattr__(self, "pattern", default_pattern(self.transport))

    @property
    def echo_pattern(self) -> bytes:
        assert self.pattern is not None
        return self.pattern

    @property
    def infinite(self) -> bool:
        return self.repeat_count == 0

    def validate(self) -> None:
        """Raise ConfigError if any field is out of range."""
        if not self.host:
            raise ConfigError("host is required")
        _check_port("remote_port", self.remote_port)
        _check_port("local_port", self.local_port, allow_zero=True)
        _check_non_negative("timeout_s", self.timeout_s)
        _check_non_negative("repeat_count", self.repeat_count)

    def is_valid(self) -> bool:
        try:
            self.validate()
        except ConfigError as e:
            logger.error(f"Invalid client configuration: {e}")
            return False
        return True
