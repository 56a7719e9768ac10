"""
Event coordination for the orchestration module.

The coordinator is the single consumer of the event queue and the only
component that decides what happens next. Events are handled one at a time,
in arrival order, on the thread that calls ``run``.
"""

import logging
import queue
from collections import deque
from typing import Deque, Optional

from ..models.config import DevServerConfig
from ..models.events import CoordinatorState, Event
from .build_runner import BuildRunner
from .process_manager import deliver_signal
from .shared_state import ChildIdentity, ShutdownState

logger = logging.getLogger(__name__)


class EventCoordinator:
    """
    State machine driving builds, signal forwarding and shutdown.

    RUNNING --SHUTDOWN--> SHUTTING_DOWN. SIGNAL and REBUILD are handled the
    same way in both states. The process normally ends from the child exit
    watcher; ``stop`` moves the coordinator to TERMINATED for embedding and
    tests.
    """

    def __init__(
        self,
        config: DevServerConfig,
        events: "queue.Queue[Optional[Event]]",
        child: ChildIdentity,
        shutdown: ShutdownState,
        build_runner: BuildRunner,
    ):
        self.config = config
        self.events = events
        self.child = child
        self.shutdown = shutdown
        self.build_runner = build_runner
        self.state = CoordinatorState.RUNNING
        self.processed = 0
        self._backlog: Deque[Optional[Event]] = deque()

    def run(self) -> None:
        """Consume events until stopped."""
        logger.debug("Event coordinator started")
        while self.state is not CoordinatorState.TERMINATED:
            event = self._next_event()
            if event is None:
                self.state = CoordinatorState.TERMINATED
                break
            self.handle(event)
        logger.debug("Event coordinator stopped")

    def stop(self) -> None:
        """Ask ``run`` to return once the events queued so far are handled."""
        self.events.put(None)

    def handle(self, event: Event) -> None:
        """Apply one event."""
        self.processed += 1
        if event is Event.SIGNAL:
            self._forward_signal()
        elif event is Event.REBUILD:
            self._rebuild()
        elif event is Event.SHUTDOWN:
            self._begin_shutdown()
        else:
            logger.warning(f"Ignoring unknown event {event!r}")

    def _next_event(self) -> Optional[Event]:
        if self._backlog:
            return self._backlog.popleft()
        return self.events.get()

    def _forward_signal(self) -> None:
        # The identity is read now, not when the event was produced.
        pid = self.child.get()
        deliver_signal(pid, self.config.restart_signal)

    def _rebuild(self) -> None:
        result = self.build_runner.build()
        if not result.success:
            logger.warning("Keeping the current child running after the failed build")
        if self.config.coalesce_events:
            self._coalesce_pending()

    def _begin_shutdown(self) -> None:
        # The signal monitor may have set the flag already.
        self.shutdown.request()
        if self.state is CoordinatorState.SHUTTING_DOWN:
            logger.info("Shutdown already in progress")
            return
        self.state = CoordinatorState.SHUTTING_DOWN
        logger.info("Shutting down once the child exits")

    def _coalesce_pending(self) -> None:
        """Keep at most one pending event of each kind, in first-arrival order."""
        while True:
            try:
                self._backlog.append(self.events.get_nowait())
            except queue.Empty:
                break

        kept: Deque[Optional[Event]] = deque()
        for event in self._backlog:
            if event is not None and event in kept:
                logger.debug(f"Discarding duplicate {event.value} event")
                continue
            kept.append(event)
        self._backlog = kept
