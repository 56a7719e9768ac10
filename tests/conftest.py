"""
Pytest configuration and shared fixtures for the devserver test suite.

This module provides common fixtures, test utilities, and configuration
for all test modules in the devserver project.
"""

import json
import os
import shutil
import signal
import stat
import sys
import tempfile
import textwrap
import threading
import time
from pathlib import Path
from typing import Callable

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from devserver.models import DevServerConfig  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path).resolve()
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_config_data(temp_dir):
    """Raw settings as they would appear in a [devserver] TOML table."""
    (temp_dir / "src").mkdir()
    return {
        "host": "127.0.0.1",
        "port": 0,
        "watch": ["src"],
        "cwd": str(temp_dir),
        "release": False,
        "signal": "SIGTERM",
        "build_program": "cargo",
    }


@pytest.fixture
def make_config(temp_dir):
    """Factory for DevServerConfig instances rooted in the temporary directory."""

    def _make(**overrides) -> DevServerConfig:
        values = {
            "host": "127.0.0.1",
            "port": 0,
            "watch_paths": ("src",),
            "working_dir": temp_dir,
        }
        values.update(overrides)
        return DevServerConfig(**values)

    return _make


# ============================================================================
# Test Utilities
# ============================================================================


# Child used as the supervised artifact. It records how it was started in
# DEVSERVER_TEST_DIR, then idles until an "exit_code" file tells it to exit.
CHILD_SCRIPT = """\
#!{python}
import json
import os
import socket
import sys
import time
from pathlib import Path

state_dir = Path(os.environ["DEVSERVER_TEST_DIR"])
fd = int(os.environ["LISTEN_FD"])
sock = socket.socket(fileno=fd)
info = {{
    "pid": os.getpid(),
    "listen_fd": fd,
    "supervised": os.environ.get("CARGO_DEVSERVER"),
    "address": list(sock.getsockname())[:2],
    "cwd": os.getcwd(),
}}
(state_dir / "run-{{}}.json".format(os.getpid())).write_text(json.dumps(info))

code_file = state_dir / "exit_code"
while True:
    if code_file.exists():
        code = int(code_file.read_text())
        code_file.unlink()
        sys.exit(code)
    time.sleep(0.02)
"""

# Stand-in for cargo: logs its arguments, fails on request, and otherwise
# "produces" the artifact by atomically replacing it with a fresh copy.
FAKE_CARGO_SCRIPT = """\
#!/bin/sh
echo "$@" >> "$DEVSERVER_TEST_DIR/build.log"
if [ -n "$CARGO_DEVSERVER" ]; then
    echo "$CARGO_DEVSERVER" > "$DEVSERVER_TEST_DIR/build_env"
fi
if [ -f "$DEVSERVER_TEST_DIR/fail_build" ]; then
    echo "error[E0425]: cannot find value" >&2
    exit 101
fi
cp "$DEVSERVER_TEST_DIR/app.template" "$DEVSERVER_TEST_DIR/bin/app.tmp"
chmod +x "$DEVSERVER_TEST_DIR/bin/app.tmp"
mv "$DEVSERVER_TEST_DIR/bin/app.tmp" "$DEVSERVER_TEST_DIR/bin/app"
echo "Finished dev profile"
"""


class TestUtils:
    """Utility functions for testing."""

    @staticmethod
    def write_executable(path: Path, content: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content))
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    @staticmethod
    def wait_for(predicate: Callable[[], bool], timeout: float = 10.0, interval: float = 0.02) -> bool:
        """Poll ``predicate`` until it is truthy or ``timeout`` expires."""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return bool(predicate())

    @staticmethod
    def kill_quietly(pid):
        if pid is None:
            return
        try:
            os.kill(pid, signal.SIGKILL)
        except ProcessLookupError:
            pass


class ExitRecorder:
    """Stands in for process termination, recording the requested exit codes."""

    def __init__(self):
        self.codes = []
        self.called = threading.Event()

    def __call__(self, code):
        self.codes.append(code)
        self.called.set()


@pytest.fixture
def exit_recorder():
    return ExitRecorder()


@pytest.fixture
def test_utils():
    """Provide test utility functions."""
    return TestUtils


@pytest.fixture
def child_artifact(temp_dir, monkeypatch):
    """An executable artifact plus the directory it reports into."""
    state_dir = temp_dir / "state"
    state_dir.mkdir()
    monkeypatch.setenv("DEVSERVER_TEST_DIR", str(state_dir))
    artifact = TestUtils.write_executable(
        temp_dir / "bin" / "app", CHILD_SCRIPT.format(python=sys.executable)
    )
    return artifact, state_dir


@pytest.fixture
def cargo_project(temp_dir, monkeypatch):
    """
    A project directory with a src/ tree, a fake cargo and an already-built
    artifact, all sharing one state directory.
    """
    state_dir = temp_dir
    monkeypatch.setenv("DEVSERVER_TEST_DIR", str(state_dir))

    project = temp_dir / "project"
    (project / "src").mkdir(parents=True)
    (project / "src" / "main.rs").write_text("fn main() {}\n")

    child = CHILD_SCRIPT.format(python=sys.executable)
    (state_dir / "app.template").write_text(child)
    artifact = TestUtils.write_executable(state_dir / "bin" / "app", child)
    cargo = TestUtils.write_executable(state_dir / "tools" / "cargo", FAKE_CARGO_SCRIPT)

    return {
        "project": project,
        "artifact": artifact,
        "cargo": cargo,
        "state": state_dir,
    }


def read_runs(state_dir: Path):
    """Return the start records written by child instances, oldest first."""
    records = [json.loads(p.read_text()) for p in state_dir.glob("run-*.json")]
    return sorted(records, key=lambda r: os.stat(state_dir / f"run-{r['pid']}.json").st_mtime_ns)


@pytest.fixture
def runs():
    return read_runs
