"""
devserver: development-loop supervisor for cargo projects.

Builds a project, runs the resulting binary, watches the filesystem and
rebuilds on change, restarting the binary when a fresh artifact appears. A
listening socket bound once at startup is inherited by every instance of the
binary, so the port stays bound across restarts.

The package is organized into specialized modules:
- config: Configuration assembly and validation
- models: Data structures and type definitions
- validation: Input validation and error handling
- system: Command execution, artifact resolution, the hand-off socket
- orchestration: The supervision engine (coordinator, builds, child, watchers)
- cli: Command-line interface

Usage:
    From command line:
        devserver [options]
        cargo devserver [options]

    Programmatically:
        from devserver import DevServer, load_config
        config = load_config({"port": 3000})
        DevServer(config).run()
"""

__version__ = "0.1.0"

from .config import load_config
from .models import BuildResult, CoordinatorState, DevServerConfig, Event
from .validation import (
    ArtifactResolutionError,
    DevServerError,
    SocketBindError,
    SpawnError,
    ValidationError,
)
from .cli.orchestrator import DevServer
from .cli import main_cli

__all__ = [
    # Main interfaces
    "DevServer",
    "load_config",
    "main_cli",
    # Models
    "BuildResult",
    "CoordinatorState",
    "DevServerConfig",
    "Event",
    # Errors
    "ArtifactResolutionError",
    "DevServerError",
    "SocketBindError",
    "SpawnError",
    "ValidationError",
]
