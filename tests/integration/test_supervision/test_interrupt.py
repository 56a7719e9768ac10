"""
Integration tests for interrupting the supervisor from a terminal.

The supervisor runs as a real process in its own session, so a signal sent to
the process group reaches it and its child at the same time, like Ctrl-C.
"""

import os
import signal
import subprocess
import sys
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).resolve().parents[3] / "src"

# Exits with code 5 on SIGINT; records its pid on start.
INTERRUPTIBLE_CHILD = """\
#!{python}
import os
import signal
import sys
import time
from pathlib import Path

signal.signal(signal.SIGINT, lambda signum, frame: sys.exit(5))
with open(Path(os.environ["DEVSERVER_TEST_DIR"]) / "starts", "a") as f:
    f.write(f"{{os.getpid()}}\\n")
while True:
    time.sleep(0.05)
"""


@pytest.fixture
def supervisor_process(temp_dir, test_utils):
    (temp_dir / "src").mkdir()
    artifact = test_utils.write_executable(
        temp_dir / "bin" / "app", INTERRUPTIBLE_CHILD.format(python=sys.executable)
    )
    log_path = temp_dir / "devserver.log"
    env = dict(os.environ)
    env["DEVSERVER_TEST_DIR"] = str(temp_dir)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(SRC_DIR), env.get("PYTHONPATH")]))

    with open(log_path, "w") as log:
        process = subprocess.Popen(
            [
                sys.executable, "-m", "devserver.cli.main",
                "-o", "127.0.0.1", "-p", "0",
                "-c", str(temp_dir), "-w", "src",
                "-b", str(artifact), "--debounce", "0",
            ],
            env=env,
            stdout=log,
            stderr=subprocess.STDOUT,
            start_new_session=True,
        )
    yield process, temp_dir, log_path

    if process.poll() is None:
        os.killpg(process.pid, signal.SIGKILL)
        process.wait()


def starts(state_dir):
    path = state_dir / "starts"
    return path.read_text().split() if path.exists() else []


@pytest.mark.integration
@pytest.mark.slow
class TestTerminalInterrupt:
    """Test cases for process-group interrupts."""

    def test_ctrl_c_ends_supervisor_with_child_exit_code(self, supervisor_process, test_utils):
        process, state_dir, log_path = supervisor_process
        assert test_utils.wait_for(lambda: len(starts(state_dir)) == 1, timeout=20), log_path.read_text()

        os.killpg(process.pid, signal.SIGINT)

        try:
            returncode = process.wait(timeout=10)
        except subprocess.TimeoutExpired:
            pytest.fail(f"supervisor still running after SIGINT:\n{log_path.read_text()}")

        assert returncode == 5, log_path.read_text()
        assert len(starts(state_dir)) == 1, log_path.read_text()
        assert "Restarted" not in log_path.read_text()

    def test_repeated_ctrl_c(self, supervisor_process, test_utils):
        process, state_dir, log_path = supervisor_process
        assert test_utils.wait_for(lambda: len(starts(state_dir)) == 1, timeout=20), log_path.read_text()

        for _ in range(3):
            os.killpg(process.pid, signal.SIGINT)

        try:
            returncode = process.wait(timeout=10)
        except subprocess.TimeoutExpired:
            pytest.fail(f"supervisor still running after SIGINT:\n{log_path.read_text()}")

        assert returncode in (5, 1), log_path.read_text()
        assert len(starts(state_dir)) == 1, log_path.read_text()
