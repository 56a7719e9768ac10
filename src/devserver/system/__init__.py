"""
System interaction utilities.

This module provides the pieces that touch the operating system directly:

- Command execution with captured output
- Artifact path resolution through cargo metadata
- The inheritable hand-off listening socket
"""

from .artifact import (
    artifact_from_metadata,
    binary_name,
    canonical_artifact_path,
    query_cargo_metadata,
    resolve_artifact_path,
)
from .commands import run_command
from .sockets import (
    LISTEN_FD_ENV,
    format_address,
    open_listening_socket,
    socket_environment,
)

__all__ = [
    # Commands
    "run_command",
    # Artifact
    "artifact_from_metadata",
    "binary_name",
    "canonical_artifact_path",
    "query_cargo_metadata",
    "resolve_artifact_path",
    # Sockets
    "LISTEN_FD_ENV",
    "format_address",
    "open_listening_socket",
    "socket_environment",
]
