"""
Configuration data models.

This module contains the run configuration assembled from the command line,
the environment and an optional TOML file. It is built once at startup and
never modified afterwards.
"""

import signal
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple


@dataclass(frozen=True)
class DevServerConfig:
    """
    Immutable settings for one supervisor run.
    """

    # Host name or address literal the hand-off socket is bound to.
    host: str = "localhost"
    # TCP port of the hand-off socket. 0 lets the OS pick one.
    port: int = 8080
    # Files or directories that trigger a rebuild, in the order given.
    # Relative entries are resolved against working_dir.
    watch_paths: Tuple[str, ...] = ("src",)
    # Binary to run. None means "ask cargo metadata".
    artifact_path: Optional[Path] = None
    # Directory the build tool and the child run in.
    working_dir: Path = field(default_factory=Path.cwd)
    # Build with --release instead of the debug profile.
    release: bool = False
    # Optional binary target name passed to the build as --bin.
    target: Optional[str] = None
    # Signal forwarded to the child when it should restart.
    restart_signal: signal.Signals = signal.SIGTERM
    # Build tool executable.
    build_program: str = "cargo"
    # Quiet period used to group filesystem notifications, in seconds.
    debounce_seconds: float = 1.0
    # Collapse duplicate events queued while a build was running.
    coalesce_events: bool = False
    # Root logging level name.
    log_level: str = "INFO"

    @property
    def profile(self) -> str:
        """Name of the cargo profile directory the artifact lives in."""
        return "release" if self.release else "debug"
