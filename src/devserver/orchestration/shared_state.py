"""
Shared data structures for the orchestration module.

The supervision engine shares exactly two mutable cells between threads: the
identity of the running child and the shutdown flag. Both are explicit
objects handed to the components that need them.
"""

import queue
import threading
from dataclasses import dataclass, field
from typing import Optional

from ..models.events import Event

# Marker variable telling build and child that they run under supervision.
SUPERVISED_ENV_VAR = "CARGO_DEVSERVER"

# Exit code used when the child's own code is unavailable (killed by a signal).
DEFAULT_EXIT_CODE = 1


class ChildIdentity:
    """
    Lock-guarded cell holding the pid of the current child.

    Written only by the child supervisor; read by the coordinator when it
    forwards signals.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pid: Optional[int] = None

    def get(self) -> Optional[int]:
        with self._lock:
            return self._pid

    def set(self, pid: int) -> Optional[int]:
        """Replace the pid and return the previous one."""
        with self._lock:
            previous, self._pid = self._pid, pid
            return previous

    def clear(self) -> None:
        with self._lock:
            self._pid = None


class ShutdownState:
    """
    Monotonic shutdown flag: false until requested, then true forever.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()

    def request(self) -> bool:
        """Set the flag. Returns True only for the call that actually set it."""
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            return True

    def is_requested(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)


@dataclass
class RuntimeState:
    """
    Runtime state created once per run and shared by the components.
    """
    # Multi-producer, single-consumer event stream, unbounded.
    events: "queue.Queue[Event]" = field(default_factory=queue.Queue)
    child: ChildIdentity = field(default_factory=ChildIdentity)
    shutdown: ShutdownState = field(default_factory=ShutdownState)


class TimeoutConstants:
    """
    Centralized timing configuration.
    """
    # Pause between attempts when a respawn fails to launch.
    RESPAWN_RETRY_DELAY = 0.5
    # How long an exited child waits for a shutdown request that raced its
    # exit before being respawned. A terminal Ctrl-C reaches the child and the
    # supervisor at the same time.
    EXIT_SETTLE_DELAY = 0.2
