"""
Signal handling for the orchestration module.

Python only runs signal handlers on the main thread, and the main thread is
busy consuming events. The monitor therefore installs handlers that do nothing
at Python level and routes delivery through the interpreter's wakeup file
descriptor: the C-level handler writes the signal number into a socket pair
and a dedicated thread blocks reading it, translating each signal into an
event on the coordinator queue.
"""

import logging
import queue
import signal
import socket
import threading
from typing import Any, Dict, Optional

from ..models.events import Event
from .shared_state import ShutdownState

logger = logging.getLogger(__name__)

# Hang-up asks for a child restart; interrupt and terminate end the run.
SIGNAL_EVENTS: Dict[int, Event] = {
    signal.SIGHUP: Event.SIGNAL,
    signal.SIGINT: Event.SHUTDOWN,
    signal.SIGTERM: Event.SHUTDOWN,
}


class SignalMonitor:
    """
    Translates OS signals received by the supervisor into events.

    ``install`` must be called from the main thread. When a ShutdownState is
    given, interrupt and terminate set it on the listener thread before the
    SHUTDOWN event is queued: the same Ctrl-C usually kills the child too, and
    its exit watcher must not mistake that for a crash.
    """

    def __init__(self, events: "queue.Queue[Event]", shutdown: Optional[ShutdownState] = None):
        self.events = events
        self.shutdown = shutdown
        self._original_handlers: Dict[int, Any] = {}
        self._original_wakeup_fd = -1
        self._reader: Optional[socket.socket] = None
        self._writer: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None
        self._installed = False

    @property
    def is_installed(self) -> bool:
        return self._installed

    def install(self) -> None:
        """Install the signal handlers and start the listener thread."""
        if self._installed:
            return

        self._reader, self._writer = socket.socketpair()
        self._writer.setblocking(False)
        self._original_wakeup_fd = signal.set_wakeup_fd(
            self._writer.fileno(), warn_on_full_buffer=False
        )
        for signum in SIGNAL_EVENTS:
            self._original_handlers[signum] = signal.signal(signum, self._on_signal)
        self._installed = True

        self._thread = threading.Thread(
            target=self._listen, args=(self._reader,), name="SignalMonitor", daemon=True
        )
        self._thread.start()
        logger.debug(f"Signal monitor installed for {', '.join(signal.Signals(s).name for s in SIGNAL_EVENTS)}")

    def uninstall(self) -> None:
        """Restore the original handlers and stop the listener thread."""
        if not self._installed:
            return

        try:
            for signum, handler in self._original_handlers.items():
                signal.signal(signum, handler)
            signal.set_wakeup_fd(self._original_wakeup_fd)
            logger.debug("Signal handlers restored")
        except (ValueError, OSError) as e:
            logger.warning(f"Failed to restore signal handlers: {e}")
        finally:
            self._original_handlers.clear()
            self._installed = False
            # Closing the writer wakes the listener with end-of-file.
            if self._writer is not None:
                self._writer.close()
                self._writer = None
            if self._thread is not None:
                self._thread.join(timeout=1.0)
                self._thread = None

    def dispatch(self, signum: int) -> Optional[Event]:
        """Translate one received signal into an event and queue it."""
        event = SIGNAL_EVENTS.get(signum)
        if event is None:
            return None

        logger.info(f"Received {signal.Signals(signum).name}, queueing {event.value} event")
        if event is Event.SHUTDOWN and self.shutdown is not None:
            self.shutdown.request()
        self.events.put(event)
        return event

    def _listen(self, reader: socket.socket) -> None:
        try:
            while True:
                try:
                    data = reader.recv(64)
                except OSError as e:
                    logger.debug(f"Signal wakeup socket closed: {e}")
                    return
                if not data:
                    return
                for signum in data:
                    self.dispatch(signum)
        finally:
            reader.close()

    @staticmethod
    def _on_signal(signum: int, frame: Any) -> None:
        # Delivery is handled by the listener thread through the wakeup fd.
        pass
