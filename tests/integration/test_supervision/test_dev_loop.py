"""
End-to-end tests of the supervision loop: watch, build, signal, respawn.
"""

import io
import signal
import threading

import pytest

from devserver.cli.orchestrator import DevServer
from devserver.models import Event
from devserver.system import open_listening_socket
from devserver.validation import ArtifactResolutionError, SocketBindError, StartupInterruptedError


def build_log(state_dir):
    log = state_dir / "build.log"
    return log.read_text().splitlines() if log.exists() else []


@pytest.fixture
def dev_server(cargo_project, make_config, test_utils, exit_recorder):
    created = []

    def _make(**overrides):
        values = {
            "working_dir": cargo_project["project"],
            "artifact_path": cargo_project["artifact"],
            "build_program": str(cargo_project["cargo"]),
            "watch_paths": ("src",),
            "debounce_seconds": 0.1,
        }
        values.update(overrides)
        server = DevServer(make_config(**values), exit_func=exit_recorder, install_signal_handlers=False)
        server.build_runner.error_stream = io.StringIO()
        created.append(server)
        return server

    yield _make, exit_recorder

    for server in created:
        server.state.shutdown.request()
        if server.coordinator is not None:
            server.coordinator.stop()
        test_utils.kill_quietly(server.state.child.get())
        server.teardown()
        if server.listen_socket is not None:
            server.listen_socket.close()


def start_loop(server):
    server.setup()
    server.start_event_sources()
    thread = threading.Thread(target=server.coordinator.run, daemon=True)
    thread.start()
    return thread


@pytest.mark.integration
@pytest.mark.slow
class TestDevLoop:
    """Test cases for the full rebuild/restart cycle."""

    def test_source_change_rebuilds_and_restarts(self, dev_server, cargo_project, runs, test_utils):
        make, recorder = dev_server
        state_dir = cargo_project["state"]
        server = make()
        start_loop(server)
        assert test_utils.wait_for(lambda: len(runs(state_dir)) == 1)
        first_pid = server.state.child.get()

        (cargo_project["project"] / "src" / "main.rs").write_text("fn main() { loop {} }\n")

        assert test_utils.wait_for(lambda: len(runs(state_dir)) == 2)
        first, second = runs(state_dir)
        assert first["pid"] == first_pid
        assert server.state.child.get() == second["pid"]
        assert second["address"] == first["address"]
        assert build_log(state_dir) == ["build --color=always"]
        assert (state_dir / "build_env").read_text().strip() == "true"
        assert not recorder.called.is_set()

    def test_failed_build_keeps_child(self, dev_server, cargo_project, runs, test_utils):
        make, _ = dev_server
        state_dir = cargo_project["state"]
        server = make()
        start_loop(server)
        assert test_utils.wait_for(lambda: len(runs(state_dir)) == 1)
        pid = server.state.child.get()
        (state_dir / "fail_build").write_text("")

        (cargo_project["project"] / "src" / "main.rs").write_text("fn main() { nope }\n")

        errors = server.build_runner.error_stream
        assert test_utils.wait_for(lambda: "error[E0425]" in errors.getvalue())
        assert server.state.child.get() == pid
        assert len(runs(state_dir)) == 1

    def test_hangup_event_restarts_child(self, dev_server, cargo_project, runs, test_utils):
        make, _ = dev_server
        state_dir = cargo_project["state"]
        server = make()
        start_loop(server)
        assert test_utils.wait_for(lambda: len(runs(state_dir)) == 1)

        server.state.events.put(Event.SIGNAL)

        assert test_utils.wait_for(lambda: len(runs(state_dir)) == 2)
        assert build_log(state_dir) == []

    def test_shutdown_exits_with_child_code(self, dev_server, cargo_project, runs, test_utils):
        make, recorder = dev_server
        state_dir = cargo_project["state"]
        server = make()
        start_loop(server)
        assert test_utils.wait_for(lambda: len(runs(state_dir)) == 1)

        server.state.events.put(Event.SHUTDOWN)
        assert test_utils.wait_for(server.state.shutdown.is_requested)
        (state_dir / "exit_code").write_text("7")

        assert recorder.called.wait(10)
        assert recorder.codes == [7]
        assert len(runs(state_dir)) == 1

    def test_missing_artifact_is_built_first(self, dev_server, cargo_project, runs, test_utils):
        make, _ = dev_server
        state_dir = cargo_project["state"]
        cargo_project["artifact"].unlink()
        server = make()

        start_loop(server)

        assert build_log(state_dir) == ["build --color=always"]
        assert server.artifact_path == cargo_project["artifact"]
        assert test_utils.wait_for(lambda: len(runs(state_dir)) == 1)

    def test_missing_artifact_and_failed_build(self, dev_server, cargo_project):
        make, _ = dev_server
        cargo_project["artifact"].unlink()
        (cargo_project["state"] / "fail_build").write_text("")
        server = make()

        with pytest.raises(ArtifactResolutionError):
            server.setup()
        assert server.state.child.get() is None

    def test_interrupt_during_initial_build(self, dev_server, cargo_project):
        make, recorder = dev_server
        cargo_project["artifact"].unlink()
        server = make()
        # As if Ctrl-C arrived while cargo was running.
        server.state.shutdown.request()

        with pytest.raises(StartupInterruptedError):
            server.setup()
        assert server.supervisor is None
        assert server.state.child.get() is None
        assert not recorder.called.is_set()

    def test_signal_monitor_installed_before_startup(self, make_config, exit_recorder):
        server = DevServer(make_config(), exit_func=exit_recorder)
        seen = []
        original = signal.getsignal(signal.SIGINT)

        def setup():
            seen.append(server.signal_monitor is not None and server.signal_monitor.is_installed)
            raise SocketBindError("127.0.0.1", 1, [])

        server.setup = setup
        with pytest.raises(SocketBindError):
            server.run()

        assert seen == [True]
        assert signal.getsignal(signal.SIGINT) is original

    def test_port_in_use(self, dev_server):
        make, _ = dev_server
        taken = open_listening_socket("127.0.0.1", 0)
        try:
            server = make(port=taken.getsockname()[1])
            with pytest.raises(SocketBindError):
                server.setup()
            assert server.state.child.get() is None
        finally:
            taken.close()
