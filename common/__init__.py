"""Common modules for echotool.

This package contains shared code used by both client and server:
- protocol: Transport enum, default ports/timeouts, TRACE level, default pattern
- connection: Endpoint and engine exceptions
- config: ServerConfig and ClientConfig with validation
- errors: ErrorKind, SocketFault and classify() for socket faults
- resolver: Hostname to IPv4 endpoint resolution
- io: CancelToken and cancellable socket waits
- engine: Engine base class with start/stop lifecycle
- events: ServerListener and ClientListener callback interfaces
- messages: Console message strings
- report: Reporting abstractions
"""

from common.config import ClientConfig, ServerConfig
from common.connection import ConfigError, Endpoint, EngineError, ResolutionError
from common.engine import Engine, EngineState
from common.errors import ErrorKind, SocketFault, classify
from common.events import ClientListener, ServerListener
from common.io import CancelToken, Cancelled
from common.protocol import (
    DEFAULT_CLIENT_TIMEOUT_S,
    DEFAULT_PORT,
    DEFAULT_REPEAT_COUNT,
    DEFAULT_SERVER_TIMEOUT_S,
    PACING_DELAY_S,
    Transport,
    default_pattern,
)
from common.resolver import resolve_endpoint

__all__ = [
    # Protocol
    "Transport",
    "DEFAULT_PORT",
    "DEFAULT_CLIENT_TIMEOUT_S",
    "DEFAULT_SERVER_TIMEOUT_S",
    "DEFAULT_REPEAT_COUNT",
    "PACING_DELAY_S",
    "default_pattern",
    # Configuration
    "ClientConfig",
    "ServerConfig",
    # Endpoints
    "Endpoint",
    "resolve_endpoint",
    # Engine
    "CancelToken",
    "Engine",
    "EngineState",
    "ClientListener",
    "ServerListener",
    # Faults
    "ErrorKind",
    "SocketFault",
    "classify",
    # Exceptions
    "Cancelled",
    "ConfigError",
    "EngineError",
    "ResolutionError",
]
