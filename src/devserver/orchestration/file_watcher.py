"""
Filesystem watching for the orchestration module.

Watches the configured source paths (directories recursively) plus the
artifact itself and turns raw notifications into coordinator events: a change
to the artifact becomes a SIGNAL event, any other change a REBUILD event.
Notifications arriving in one burst are grouped into one event per kind, so
a single editor save yields one event.
"""

import logging
import os
import queue
import threading
import time
from collections import OrderedDict
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from ..models.events import Event

logger = logging.getLogger(__name__)

# Opened/closed notifications are ignored: the build itself reads the sources.
HANDLED_EVENT_TYPES = frozenset({
    EVENT_TYPE_CREATED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    EVENT_TYPE_DELETED,
})

DEFAULT_DEBOUNCE_SECONDS = 1.0


def canonicalize(path) -> Optional[Path]:
    """Return the symlink-free absolute form of ``path``, or None if it is gone."""
    try:
        return Path(os.fsdecode(path)).resolve(strict=True)
    except (OSError, RuntimeError):
        return None


class EventDebouncer:
    """
    Groups classified changes into bursts. A burst ends once no new change
    arrived for ``delay`` seconds; it then queues one event per kind in
    first-seen order, so an editor save touching a swap file, a backup and
    the target yields a single REBUILD.

    With a delay of 0 every change is queued immediately.
    """

    def __init__(self, events: "queue.Queue[Event]", delay: float = DEFAULT_DEBOUNCE_SECONDS):
        self.events = events
        self.delay = delay
        self._pending: "OrderedDict[Event, List[Path]]" = OrderedDict()
        self._last_change = 0.0
        self._cond = threading.Condition()
        self._thread: Optional[threading.Thread] = None

    def submit(self, path: Path, event: Event) -> None:
        if self.delay <= 0:
            self.events.put(event)
            return

        with self._cond:
            if self._thread is None:
                self._thread = threading.Thread(
                    target=self._flush_loop, name="EventDebouncer", daemon=True
                )
                self._thread.start()
            self._pending.setdefault(event, []).append(path)
            self._last_change = time.monotonic()
            self._cond.notify()

    def _flush_loop(self) -> None:
        while True:
            with self._cond:
                while not self._pending:
                    self._cond.wait()
                remaining = self._last_change + self.delay - time.monotonic()
                if remaining > 0:
                    self._cond.wait(remaining)
                    continue
                batch = list(self._pending.items())
                self._pending.clear()
            for event, paths in batch:
                logger.debug(f"Queueing {event.value} event for {len(paths)} change(s)")
                self.events.put(event)


class ChangeClassifier(FileSystemEventHandler):
    """
    watchdog handler that classifies changed paths.

    Args:
        debouncer: Where classified changes are submitted
        artifact_path: Canonical path of the supervised binary
        only_paths: When given, changes to any other path are ignored. Used for
            watches on the parent directory of a single file.
    """

    def __init__(
        self,
        debouncer: EventDebouncer,
        artifact_path: Path,
        only_paths: Optional[Iterable[Path]] = None,
    ):
        super().__init__()
        self.debouncer = debouncer
        self.artifact_path = artifact_path
        self.only_paths: Optional[FrozenSet[Path]] = (
            frozenset(only_paths) if only_paths is not None else None
        )

    def classify(self, raw_path) -> Optional[Tuple[Path, Event]]:
        path = canonicalize(raw_path)
        if path is None:
            logger.debug(f"Ignoring change to vanished path {raw_path}")
            return None
        if self.only_paths is not None and path not in self.only_paths:
            return None
        if path == self.artifact_path:
            return path, Event.SIGNAL
        return path, Event.REBUILD

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in HANDLED_EVENT_TYPES:
            return
        # A file change also reports its parent directory as modified.
        if event.is_directory and event.event_type == EVENT_TYPE_MODIFIED:
            return

        raw_paths = [event.src_path]
        dest_path = getattr(event, "dest_path", "")
        if dest_path:
            raw_paths.append(dest_path)

        for raw_path in raw_paths:
            classified = self.classify(raw_path)
            if classified is not None:
                path, kind = classified
                logger.debug(f"{event.event_type}: {path} -> {kind.value}")
                self.debouncer.submit(path, kind)


class FileSystemWatcher:
    """
    Recursive watcher over the configured paths plus the artifact.

    The watchdog observer thread runs for the lifetime of the supervisor.
    """

    def __init__(
        self,
        events: "queue.Queue[Event]",
        watch_paths: Iterable[str],
        artifact_path: Path,
        working_dir: Path,
        debounce: float = DEFAULT_DEBOUNCE_SECONDS,
    ):
        self.events = events
        self.watch_paths = list(watch_paths)
        self.artifact_path = artifact_path
        self.working_dir = working_dir
        self.debouncer = EventDebouncer(events, delay=debounce)
        self.observer = Observer()
        self._started = False

    def resolve_watch_paths(self) -> List[Path]:
        """Resolve configured watch paths; missing ones are logged and skipped."""
        resolved = []
        for entry in self.watch_paths:
            path = Path(entry)
            if not path.is_absolute():
                path = self.working_dir / path
            canonical = canonicalize(path)
            if canonical is None:
                logger.warning(f"Watch path {path} does not exist, skipping")
                continue
            resolved.append(canonical)
        return resolved

    def schedule(self) -> None:
        """Register every watch with the observer."""
        file_watches: Dict[Path, List[Path]] = {}

        for path in self.resolve_watch_paths():
            if path.is_dir():
                handler = ChangeClassifier(self.debouncer, self.artifact_path)
                self.observer.schedule(handler, str(path), recursive=True)
                logger.info(f"Watching {path}")
            else:
                file_watches.setdefault(path.parent, []).append(path)
                logger.info(f"Watching {path}")

        file_watches.setdefault(self.artifact_path.parent, []).append(self.artifact_path)
        logger.info(f"Watching artifact {self.artifact_path}")

        for directory, files in file_watches.items():
            handler = ChangeClassifier(self.debouncer, self.artifact_path, only_paths=files)
            self.observer.schedule(handler, str(directory), recursive=False)

    def start(self) -> None:
        if self._started:
            return
        self.schedule()
        self.observer.daemon = True
        self.observer.start()
        self._started = True

    def stop(self) -> None:
        if not self._started:
            return
        self.observer.stop()
        self.observer.join(timeout=2.0)
        self._started = False
