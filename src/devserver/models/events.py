"""
Event and state models for the supervision loop.
"""

from enum import Enum


class Event(Enum):
    """
    Kinds of events consumed by the coordinator.

    Events carry no payload; everything needed to act on one is already in
    the run configuration.
    """

    # Forward the restart signal to the current child.
    SIGNAL = "signal"
    # Run the build.
    REBUILD = "rebuild"
    # Begin process-wide shutdown.
    SHUTDOWN = "shutdown"


class CoordinatorState(Enum):
    """Lifecycle states of the coordinator."""

    RUNNING = "running"
    # Shutdown requested; the process ends when the current child exits.
    SHUTTING_DOWN = "shutting_down"
    TERMINATED = "terminated"
