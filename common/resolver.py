"""Endpoint resolution for echotool clients."""

import logging
import socket

from common.connection import Endpoint, ResolutionError
from common.errors import ErrorKind, SocketFault, classify

logger = logging.getLogger(__name__)


def resolve_endpoint(hostname: str, port: int) -> Endpoint:
    """Resolve hostname to the first IPv4 address found.

    Raises:
        ResolutionError: If lookup fails or the host has no IPv4 address.
    """
    try:
        infos = socket.getaddrinfo(hostname, port, socket.AF_INET, socket.SOCK_STREAM)
    except OSError as e:
        fault = classify(e)
        if fault.kind not in (ErrorKind.HOST_NOT_FOUND, ErrorKind.TRY_AGAIN, ErrorKind.HOST_UNREACHABLE):
            fault = SocketFault(ErrorKind.HOST_NOT_FOUND, fault.message, fault.errno)
        logger.debug(f"Lookup of {hostname!r} failed: {fault.message}")
        raise ResolutionError(hostname, fault) from e

    for family, _type, _proto, _canon, sockaddr in infos:
        if family == socket.AF_INET:
            endpoint = Endpoint(host=sockaddr[0], port=port)
            logger.debug(f"Resolved {hostname!r} to {endpoint}")
            return endpoint

    raise ResolutionError(
        hostname, SocketFault(ErrorKind.HOST_NOT_FOUND, f"No IPv4 address for {hostname}")
    )
