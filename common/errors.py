"""Socket fault classification for echotool.

Maps OSError and socket.gaierror instances onto a small set of
ErrorKind values so the presentation layer can render a specific
message (address in use, host not found, response timeout, ...)
without knowing platform errno values.
"""

import errno
import socket
from dataclasses import dataclass
from enum import Enum


class ErrorKind(Enum):
    """Classified reason for a socket fault."""

    ADDRESS_IN_USE = "address_in_use"
    ACCESS_DENIED = "access_denied"
    HOST_NOT_FOUND = "host_not_found"
    TRY_AGAIN = "try_again"
    HOST_UNREACHABLE = "host_unreachable"
    NETWORK_UNREACHABLE = "network_unreachable"
    CONNECTION_REFUSED = "connection_refused"
    CONNECTION_ABORTED = "connection_aborted"
    CONNECTION_RESET = "connection_reset"
    TIMED_OUT = "timed_out"
    OTHER = "other"


@dataclass(frozen=True)
class SocketFault:
    """Classified socket fault passed to socket-error notifications."""

    kind: ErrorKind
    message: str
    errno: int | None = None

    def __str__(self) -> str:
        return self.message


_ERRNO_KINDS: dict[int, ErrorKind] = {
    errno.EADDRINUSE: ErrorKind.ADDRESS_IN_USE,
    errno.EACCES: ErrorKind.ACCESS_DENIED,
    errno.EPERM: ErrorKind.ACCESS_DENIED,
    errno.EHOSTUNREACH: ErrorKind.HOST_UNREACHABLE,
    errno.EHOSTDOWN: ErrorKind.HOST_UNREACHABLE,
    errno.ENETUNREACH: ErrorKind.NETWORK_UNREACHABLE,
    errno.ENETDOWN: ErrorKind.NETWORK_UNREACHABLE,
    errno.ECONNREFUSED: ErrorKind.CONNECTION_REFUSED,
    errno.ECONNABORTED: ErrorKind.CONNECTION_ABORTED,
    errno.EPIPE: ErrorKind.CONNECTION_ABORTED,
    errno.ECONNRESET: ErrorKind.CONNECTION_RESET,
    errno.ETIMEDOUT: ErrorKind.TIMED_OUT,
}

# Windows reports WSAEACCES (10013) for a port held with exclusive use
_WSAEACCES = 10013


def _gai_kind(code: int) -> ErrorKind:
    if code == socket.EAI_AGAIN:
        return ErrorKind.TRY_AGAIN
    return ErrorKind.HOST_NOT_FOUND


def classify(exc: BaseException) -> SocketFault:
    """Classify an exception raised by a socket operation."""
    if isinstance(exc, socket.gaierror):
        code = exc.args[0] if exc.args and isinstance(exc.args[0], int) else None
        message = exc.strerror or str(exc)
        kind = _gai_kind(code) if code is not None else ErrorKind.HOST_NOT_FOUND
        return SocketFault(kind, message, code)

    if isinstance(exc, TimeoutError):
        return SocketFault(ErrorKind.TIMED_OUT, str(exc) or "timed out", errno.ETIMEDOUT)

    if isinstance(exc, OSError):
        code = exc.errno
        message = exc.strerror or str(exc) or type(exc).__name__
        if code == _WSAEACCES:
            return SocketFault(ErrorKind.ADDRESS_IN_USE, message, code)
        if code in _ERRNO_KINDS:
            return SocketFault(_ERRNO_KINDS[code], message, code)
        match exc:
            case ConnectionRefusedError():
                return SocketFault(ErrorKind.CONNECTION_REFUSED, message, code)
            case ConnectionResetError():
                return SocketFault(ErrorKind.CONNECTION_RESET, message, code)
            case ConnectionAbortedError() | BrokenPipeError():
                return SocketFault(ErrorKind.CONNECTION_ABORTED, message, code)
            case PermissionError():
                return SocketFault(ErrorKind.ACCESS_DENIED, message, code)
        return SocketFault(ErrorKind.OTHER, message, code)

    return SocketFault(ErrorKind.OTHER, str(exc) or type(exc).__name__)


def is_peer_reset(exc: BaseException) -> bool:
    """True if exc means the peer reset or abandoned the connection.

    Either ends a session normally. A broken pipe is the same reset seen
    from a pending write.
    """
    return isinstance(exc, (ConnectionResetError, BrokenPipeError)) or (
        isinstance(exc, OSError) and exc.errno in (errno.ECONNRESET, errno.EPIPE)
    )
