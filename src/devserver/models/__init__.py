"""
Data models used throughout the supervisor.

Configuration Models:
- Run configuration assembled at startup

Event Models:
- Event kinds flowing through the coordinator queue
- Coordinator lifecycle states

Result Models:
- Build invocation results
"""

from .config import DevServerConfig
from .events import CoordinatorState, Event
from .results import BuildResult

__all__ = [
    "DevServerConfig",
    "CoordinatorState",
    "Event",
    "BuildResult",
]
