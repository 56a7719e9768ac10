"""
Top-level supervisor runner for CLI integration.

Wires the supervision components together in startup order: the signal
monitor and the hand-off socket first, then the artifact, the first child,
and only then the file watcher and the coordinator loop.
"""

import logging
import socket
from pathlib import Path
from typing import Callable, Optional

from ..models.config import DevServerConfig
from ..orchestration import (
    BuildRunner,
    ChildSupervisor,
    EventCoordinator,
    FileSystemWatcher,
    RuntimeState,
    SignalMonitor,
)
from ..orchestration.process_manager import terminate_process
from ..system import (
    canonical_artifact_path,
    open_listening_socket,
    resolve_artifact_path,
)
from ..validation import StartupInterruptedError

logger = logging.getLogger(__name__)


class DevServer:
    """
    Main supervisor runner coordinating build, watch and child lifecycle.

    Startup failures (unbindable address, unresolvable artifact, failed first
    spawn, an interrupt before the first spawn) are raised as DevServerError
    subclasses before the child exit watcher and the file watcher exist.
    """

    def __init__(
        self,
        config: DevServerConfig,
        exit_func: Callable[[int], None] = terminate_process,
        install_signal_handlers: bool = True,
    ):
        """
        Initialize the supervisor.

        Args:
            config: Immutable run configuration
            exit_func: Ends the program with the given code once shutdown completes
            install_signal_handlers: Whether to take over SIGHUP/SIGINT/SIGTERM.
                Requires running on the main thread.
        """
        self.config = config
        self.exit_func = exit_func
        self.install_signal_handlers = install_signal_handlers

        self.state = RuntimeState()
        self.build_runner = BuildRunner(config)
        self.listen_socket: Optional[socket.socket] = None
        self.artifact_path: Optional[Path] = None
        self.supervisor: Optional[ChildSupervisor] = None
        self.watcher: Optional[FileSystemWatcher] = None
        self.signal_monitor: Optional[SignalMonitor] = None
        self.coordinator: Optional[EventCoordinator] = None

    def run(self) -> None:
        """
        Execute the whole supervision lifecycle.

        Returns only if the coordinator is stopped; a normal run ends through
        ``exit_func`` when the child exits after a shutdown request.
        """
        try:
            self.install_signal_monitor()
            self.setup()
            self.start_event_sources()
            self.coordinator.run()
        finally:
            self.teardown()

    def install_signal_monitor(self) -> None:
        """
        Take over SIGHUP/SIGINT/SIGTERM. Done before startup so an interrupt
        during the initial build is not a raw KeyboardInterrupt.
        """
        if not self.install_signal_handlers or self.signal_monitor is not None:
            return
        self.signal_monitor = SignalMonitor(self.state.events, shutdown=self.state.shutdown)
        self.signal_monitor.install()

    def setup(self) -> None:
        """
        Bind the socket, locate the artifact and start the first child.

        Raises:
            StartupInterruptedError: If shutdown was requested before the
                first child was started
        """
        self.listen_socket = open_listening_socket(self.config.host, self.config.port)
        self.artifact_path = self.prepare_artifact()
        self._check_interrupted()

        self.supervisor = ChildSupervisor(
            artifact_path=self.artifact_path,
            working_dir=self.config.working_dir,
            listen_socket=self.listen_socket,
            child=self.state.child,
            shutdown=self.state.shutdown,
            exit_func=self.exit_func,
        )
        self.supervisor.start()

        self.coordinator = EventCoordinator(
            config=self.config,
            events=self.state.events,
            child=self.state.child,
            shutdown=self.state.shutdown,
            build_runner=self.build_runner,
        )

    def prepare_artifact(self) -> Path:
        """
        Resolve the artifact path, building once first if it does not exist.

        Raises:
            ArtifactResolutionError: If the artifact cannot be located
        """
        path = resolve_artifact_path(self.config)
        if not path.exists():
            logger.info(f"{path} does not exist yet, running an initial build")
            self.build_runner.build()
            self._check_interrupted()
        return canonical_artifact_path(path)

    def _check_interrupted(self) -> None:
        if self.state.shutdown.is_requested():
            raise StartupInterruptedError("Interrupted before the first child was started")

    def start_event_sources(self) -> None:
        """Start the watcher feeding the event queue."""
        self.watcher = FileSystemWatcher(
            events=self.state.events,
            watch_paths=self.config.watch_paths,
            artifact_path=self.artifact_path,
            working_dir=self.config.working_dir,
            debounce=self.config.debounce_seconds,
        )
        self.watcher.start()

    def teardown(self) -> None:
        """Stop the event sources. The socket and child are left to process exit."""
        if self.signal_monitor is not None:
            self.signal_monitor.uninstall()
        if self.watcher is not None:
            self.watcher.stop()
