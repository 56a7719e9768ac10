"""
Build invocation for the orchestration module.

The build runs synchronously on the coordinator thread. While it runs no other
event is processed, so builds never overlap and no restart decision is taken
mid-build. A successful build does not restart anything by itself: the
watcher notices the refreshed artifact and queues a SIGNAL event.
"""

import logging
import shlex
import sys
from typing import List, Optional, TextIO

from ..models.config import DevServerConfig
from ..models.results import BuildResult
from ..system.commands import run_command
from .shared_state import SUPERVISED_ENV_VAR

logger = logging.getLogger(__name__)


class BuildRunner:
    """
    Runs the external build tool and reports the outcome.

    Args:
        config: Run configuration
        error_stream: Where a failed build's stderr is written verbatim.
            Defaults to the supervisor's stderr.
    """

    def __init__(self, config: DevServerConfig, error_stream: Optional[TextIO] = None):
        self.config = config
        self.error_stream = error_stream
        self.builds_started = 0

    def build_command(self) -> List[str]:
        """Argument vector for one build."""
        command = [self.config.build_program, "build", "--color=always"]
        if self.config.release:
            command.append("--release")
        if self.config.target:
            command.extend(["--bin", self.config.target])
        return command

    def build(self) -> BuildResult:
        """
        Run the build and wait for it.

        Never raises for build problems: a failed or unlaunchable build is
        reported through the returned result and the surfaced stderr.
        """
        command = self.build_command()
        self.builds_started += 1
        logger.info(f"Building: {shlex.join(command)}")

        returncode, stdout, stderr = run_command(
            command,
            self.config.working_dir,
            env={SUPERVISED_ENV_VAR: "true"},
        )
        result = BuildResult(command=command, returncode=returncode, stdout=stdout, stderr=stderr)

        if result.success:
            if stdout:
                logger.debug(stdout)
            logger.info("Build succeeded")
        else:
            self._surface_failure(result)
        return result

    def _surface_failure(self, result: BuildResult) -> None:
        if result.returncode == -1:
            logger.error(f"Build could not be started: {result.stderr}")
        else:
            logger.error(f"Build failed with exit code {result.returncode}")

        stream = self.error_stream or sys.stderr
        stream.write(result.stderr)
        stream.flush()
