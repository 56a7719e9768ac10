"""
Build result data model.
"""

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class BuildResult:
    """
    Outcome of one build invocation.

    A build that could not be launched at all is reported with a returncode
    of -1 and the launch error in ``stderr``.
    """

    # The argument vector that was executed.
    command: List[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0
