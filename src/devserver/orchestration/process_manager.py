"""
Child process management for the orchestration module.

This module owns the lifecycle of the supervised binary: it launches it with
the hand-off socket inherited, watches for its exit on a dedicated thread and
either respawns it or, once shutdown was requested, ends the whole program
with the child's exit code.
"""

import logging
import os
import signal
import socket
import subprocess
import sys
import threading
from pathlib import Path
from typing import Callable, Dict, Optional

import psutil

from ..system.sockets import socket_environment
from ..validation import SpawnError
from .shared_state import (
    DEFAULT_EXIT_CODE,
    SUPERVISED_ENV_VAR,
    ChildIdentity,
    ShutdownState,
    TimeoutConstants,
)

logger = logging.getLogger(__name__)


def exit_code_for(returncode: Optional[int]) -> int:
    """Map a Popen returncode to the supervisor's own exit code."""
    if returncode is None or returncode < 0:
        # Negative returncodes mean the child was killed by a signal.
        return DEFAULT_EXIT_CODE
    return returncode


def terminate_process(code: int) -> None:
    """End the supervisor from any thread, flushing output first."""
    logging.shutdown()
    for stream in (sys.stdout, sys.stderr):
        try:
            stream.flush()
        except (OSError, ValueError):
            pass
    os._exit(code)


def deliver_signal(pid: Optional[int], signum: int) -> bool:
    """
    Send a signal to a child process.

    A child that has already exited is not an error: the exit watcher may be
    replacing it at this very moment.

    Returns:
        True if the signal was delivered
    """
    name = signal.Signals(signum).name
    if pid is None:
        logger.warning(f"No child process to send {name} to")
        return False

    try:
        psutil.Process(pid).send_signal(signum)
    except psutil.NoSuchProcess:
        logger.warning(f"Child PID {pid} already exited, {name} not delivered")
        return False
    except psutil.AccessDenied:
        logger.warning(f"Access denied sending {name} to PID {pid}")
        return False

    logger.info(f"Sent {name} to child PID {pid}")
    return True


class ChildSupervisor:
    """
    Spawns the artifact and keeps exactly one instance of it running.

    Args:
        artifact_path: Binary to execute
        working_dir: Working directory of the child
        listen_socket: Hand-off socket inherited by every instance
        child: Identity cell this supervisor is the only writer of
        shutdown: Shutdown flag consulted when the child exits
        exit_func: Called with the exit code to end the program
        settle_delay: Seconds an exited child waits for a racing shutdown
            request before it is respawned
    """

    def __init__(
        self,
        artifact_path: Path,
        working_dir: Path,
        listen_socket: socket.socket,
        child: ChildIdentity,
        shutdown: ShutdownState,
        exit_func: Callable[[int], None] = terminate_process,
        settle_delay: float = TimeoutConstants.EXIT_SETTLE_DELAY,
    ):
        self.artifact_path = artifact_path
        self.working_dir = working_dir
        self.listen_socket = listen_socket
        self.child = child
        self.shutdown = shutdown
        self.exit_func = exit_func
        self.settle_delay = settle_delay

        self.process: Optional[subprocess.Popen] = None
        self.restart_count = 0
        self._watcher: Optional[threading.Thread] = None

    def child_environment(self) -> Dict[str, str]:
        env = os.environ.copy()
        env.update(socket_environment(self.listen_socket))
        env[SUPERVISED_ENV_VAR] = "true"
        return env

    def _launch(self) -> subprocess.Popen:
        process = subprocess.Popen(
            [str(self.artifact_path)],
            cwd=self.working_dir,
            env=self.child_environment(),
            pass_fds=(self.listen_socket.fileno(),),
        )
        self.process = process
        self.child.set(process.pid)
        return process

    def spawn(self) -> int:
        """
        Launch the first instance of the child.

        Returns:
            The child's pid

        Raises:
            SpawnError: If the binary cannot be executed
        """
        try:
            process = self._launch()
        except OSError as e:
            raise SpawnError(self.artifact_path, e) from e

        logger.info(f"Started {self.artifact_path} with PID {process.pid}")
        return process.pid

    def start(self) -> int:
        """Spawn the child and start the exit watcher thread."""
        pid = self.spawn()
        self._watcher = threading.Thread(
            target=self._watch_exits, name="ChildExitWatcher", daemon=True
        )
        self._watcher.start()
        return pid

    def _watch_exits(self) -> None:
        while True:
            returncode = self.process.wait()
            if not self.handle_exit(returncode):
                return

    def handle_exit(self, returncode: int) -> bool:
        """
        React to the exit of the current child.

        A shutdown request may still be on its way when the child dies from a
        signal sent to the whole process group, so it is given
        ``settle_delay`` seconds to show up before the child is respawned.

        Returns:
            True if a new child is running, False if the program is ending
        """
        if self.shutdown.wait(self.settle_delay):
            return self._terminate(exit_code_for(returncode))

        logger.info(f"Child exited with code {returncode}, restarting")
        return self._respawn()

    def _respawn(self) -> bool:
        while True:
            try:
                process = self._launch()
            except OSError as e:
                logger.error(f"Failed to restart {self.artifact_path}: {e}")
                if self.shutdown.wait(TimeoutConstants.RESPAWN_RETRY_DELAY):
                    return self._terminate(DEFAULT_EXIT_CODE)
                continue

            self.restart_count += 1
            logger.info(f"Restarted {self.artifact_path} with PID {process.pid}")
            return True

    def _terminate(self, code: int) -> bool:
        self.child.clear()
        logger.info(f"Child exited during shutdown, exiting with code {code}")
        self.exit_func(code)
        return False
