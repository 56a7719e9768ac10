"""
Command execution utilities.

This module provides the function used to run external tools (the build tool
and cargo metadata) and capture their output.
"""

import logging
import os
import shlex
import subprocess
from pathlib import Path
from typing import Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


def run_command(
    command: Sequence[str], cwd: Path, env: Optional[Mapping[str, str]] = None
) -> Tuple[int, str, str]:
    """Execute a command and capture its output with robust error handling.

    Runs a subprocess in the specified directory, capturing both stdout and
    stderr. Blocks until the command exits.

    Args:
        command: Argument vector to execute.
        cwd: Working directory path for command execution.
        env: Extra environment variables layered over the current environment.

    Returns:
        Tuple of (return_code, stdout_string, stderr_string).
        return_code is -1 when the command could not be launched.

    Note:
        Uses UTF-8 encoding with error replacement for robust text handling.
    """
    printable = shlex.join(command)
    logger.debug(f"Executing command: '{printable}' in '{cwd}'")

    full_env = None
    if env:
        full_env = os.environ.copy()
        full_env.update(env)

    try:
        process = subprocess.run(
            list(command),
            cwd=cwd,
            env=full_env,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
        return process.returncode, process.stdout, process.stderr
    except FileNotFoundError as e:
        logger.error(f"Command not found: {command[0]}: {type(e).__name__}: {e}")
        return -1, "", f"Error: Command not found '{command[0]}'"
    except OSError as e:
        logger.error(f"Unable to launch '{printable}': {type(e).__name__}: {e}")
        return -1, "", f"Error: Unable to launch '{command[0]}': {e}"
