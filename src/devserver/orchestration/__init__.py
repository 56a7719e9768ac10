"""
Orchestration module for the supervision engine.

Components:
- EventCoordinator: single consumer of all events, sole decision authority
- BuildRunner: synchronous build invocation
- ChildSupervisor: spawn, exit watching and respawn of the artifact
- FileSystemWatcher: source and artifact change notifications
- SignalMonitor: OS signals to events
- Shared state: child identity cell, shutdown flag, event queue
"""

from .build_runner import BuildRunner
from .coordinator import EventCoordinator
from .file_watcher import FileSystemWatcher
from .process_manager import ChildSupervisor, deliver_signal, exit_code_for
from .shared_state import (
    DEFAULT_EXIT_CODE,
    SUPERVISED_ENV_VAR,
    ChildIdentity,
    RuntimeState,
    ShutdownState,
    TimeoutConstants,
)
from .signal_handler import SignalMonitor

__all__ = [
    "BuildRunner",
    "EventCoordinator",
    "FileSystemWatcher",
    "ChildSupervisor",
    "deliver_signal",
    "exit_code_for",
    "DEFAULT_EXIT_CODE",
    "SUPERVISED_ENV_VAR",
    "ChildIdentity",
    "RuntimeState",
    "ShutdownState",
    "TimeoutConstants",
    "SignalMonitor",
]
