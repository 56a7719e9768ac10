"""
Hand-off listening socket.

The supervisor binds one listening socket at startup and passes its file
descriptor to every child it spawns, so the port stays bound while the child
is being replaced. The supervisor itself never accepts on it.
"""

import logging
import socket
from typing import Dict, List

from ..validation import SocketBindError

logger = logging.getLogger(__name__)

# Environment variable carrying the inherited descriptor number.
LISTEN_FD_ENV = "LISTEN_FD"

LISTEN_BACKLOG = 128


def _bind_candidate(family: int, socktype: int, proto: int, sockaddr) -> socket.socket:
    sock = socket.socket(family, socktype, proto)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(sockaddr)
        sock.listen(LISTEN_BACKLOG)
    except OSError:
        sock.close()
        raise
    return sock


def open_listening_socket(host: str, port: int) -> socket.socket:
    """
    Bind and listen on the first usable address for ``host:port``.

    Every address ``host`` resolves to is tried in resolver order until one
    can be bound.

    Returns:
        A listening, inheritable socket.

    Raises:
        SocketBindError: If the host does not resolve or no address can be bound
    """
    errors: List[OSError] = []
    try:
        candidates = socket.getaddrinfo(
            host, port, type=socket.SOCK_STREAM, proto=socket.IPPROTO_TCP
        )
    except socket.gaierror as e:
        raise SocketBindError(host, port, [e]) from e

    for family, socktype, proto, _, sockaddr in candidates:
        try:
            sock = _bind_candidate(family, socktype, proto, sockaddr)
        except OSError as e:
            logger.debug(f"Could not bind {sockaddr}: {e}")
            errors.append(e)
            continue

        sock.set_inheritable(True)
        logger.info(f"Listening on {format_address(sock)}")
        return sock

    raise SocketBindError(host, port, errors)


def format_address(sock: socket.socket) -> str:
    """Render the local address of a socket as host:port."""
    address = sock.getsockname()
    host, port = address[0], address[1]
    if sock.family == socket.AF_INET6:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def socket_environment(sock: socket.socket) -> Dict[str, str]:
    """
    Encode an inheritable socket as environment for a child process.

    The descriptor must also be passed to the child (``pass_fds``) for the
    number to be meaningful there.
    """
    return {LISTEN_FD_ENV: str(sock.fileno())}
