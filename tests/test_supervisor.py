"""Tests for the node process supervisor, role registry and server entry point.

Signals are delivered through ProcessSupervisor.handle_signal from a timer
thread; no real signal is ever sent to the test process.
"""

import json
import logging
import signal
import threading

import pytest

from node import main as node_main
from node.limits import raise_open_files_limit
from node.roles import ProcessRole, RoleRegistry, RoleSpec
from node.service import Service
from node.supervisor import NodeState, ProcessSupervisor
from shared.config import Config
from shared.errors import ConfigError, ResourceLimitError


class FakeService(Service):
    name = "fake"

    def __init__(self, fail_start: bool = False):
        super().__init__()
        self.fail_start = fail_start
        self.start_calls = 0
        self.shutdown_calls = 0
        self.sync_calls = 0

    def _do_start(self, cfg):
        self.start_calls += 1
        if self.fail_start:
            raise RuntimeError("listener bind failed")

    def _do_shutdown(self):
        self.shutdown_calls += 1

    def sync(self, timeout=None):
        self.sync_calls += 1
        return super().sync(timeout)


class FakeProfileServer:
    def __init__(self):
        self.stop_calls = 0

    def stop(self, timeout=5):
        self.stop_calls += 1


class Recorder:
    def __init__(self, result=None, error=None):
        self.calls = []
        self.result = result
        self.error = error

    def __call__(self, *args):
        self.calls.append(args)
        if self.error is not None:
            raise self.error
        return self.result


def _supervisor(factory=FakeService, **overrides):
    registry = RoleRegistry({
        ProcessRole.MASTER: RoleSpec(ProcessRole.MASTER, factory, "master"),
        ProcessRole.METANODE: RoleSpec(ProcessRole.METANODE, factory, "metaNode"),
    })
    options = {
        "limit_adjuster": Recorder(result=(1024000, 1024000)),
        "logging_initializer": Recorder(),
        "profiler_starter": Recorder(),
        "signals": (),
    }
    options.update(overrides)
    return ProcessSupervisor(registry, **options)


# ===================================================================
# Bootstrap
# ===================================================================

class TestBootstrap:
    @pytest.mark.parametrize("role", ["", "Master", "client", "datanode ", "authnode"])
    def test_unknown_role_builds_no_service(self, role) -> None:
        factory = Recorder(result=FakeService())
        sup = _supervisor(factory=factory)
        with pytest.raises(ConfigError):
            sup.bootstrap(role, "/tmp/logs", "info", "")
        assert factory.calls == []
        assert sup.state == NodeState.UNCONFIGURED

    def test_role_supported_by_enum_but_not_registered(self) -> None:
        sup = _supervisor()
        with pytest.raises(ConfigError):
            sup.bootstrap("datanode", "/tmp/logs", "info", "")

    def test_limit_failure_is_reported(self) -> None:
        factory = Recorder(result=FakeService())
        sup = _supervisor(factory=factory, limit_adjuster=Recorder(error=ResourceLimitError("denied")))
        with pytest.raises(ResourceLimitError):
            sup.bootstrap("master", "/tmp/logs", "info", "")
        assert factory.calls == []

    @pytest.mark.parametrize("raw, level", [
        ("debug", logging.DEBUG),
        ("INFO", logging.INFO),
        ("Warn", logging.WARNING),
        ("error", logging.ERROR),
        ("verbose", logging.ERROR),
        ("", logging.ERROR),
    ])
    def test_log_level_normalized(self, raw, level) -> None:
        init = Recorder()
        sup = _supervisor(logging_initializer=init)
        sup.bootstrap("metanode", "/var/log/cfs", raw, "")
        assert init.calls == [("/var/log/cfs", "metaNode", level)]

    def test_logging_failure_becomes_config_error(self) -> None:
        sup = _supervisor(logging_initializer=Recorder(error=PermissionError("read-only")))
        with pytest.raises(ConfigError, match="failed to init log"):
            sup.bootstrap("master", "/", "info", "")

    def test_profiler_started_only_with_port(self) -> None:
        prof = Recorder()
        _supervisor(profiler_starter=prof).bootstrap("master", "/tmp/logs", "info", "")
        assert prof.calls == []

        prof = Recorder(result=None)
        sup = _supervisor(profiler_starter=prof)
        service = sup.bootstrap("master", "/tmp/logs", "info", "6060")
        assert prof.calls == [("6060", "master")]
        assert isinstance(service, FakeService)
        assert sup.state == NodeState.CONFIGURED


# ===================================================================
# Service lifecycle
# ===================================================================

class TestServiceLifecycle:
    def test_shutdown_twice_releases_once(self) -> None:
        service = FakeService()
        service.start(Config())
        service.shutdown()
        service.shutdown()
        assert service.shutdown_calls == 1
        assert service.sync(timeout=0) is True

    def test_start_only_once(self) -> None:
        service = FakeService()
        service.start(Config())
        with pytest.raises(RuntimeError):
            service.start(Config())
        service.shutdown()

    def test_shutdown_before_start_unblocks_sync(self) -> None:
        service = FakeService()
        service.shutdown()
        assert service.sync(timeout=1) is True
        assert service.shutdown_calls == 0
        with pytest.raises(RuntimeError):
            service.start(Config())

    def test_concurrent_shutdown_and_sync(self) -> None:
        service = FakeService()
        service.start(Config())
        threads = [threading.Thread(target=service.shutdown) for _ in range(5)]
        for t in threads:
            t.start()
        assert service.sync(timeout=5) is True
        for t in threads:
            t.join()
        assert service.shutdown_calls == 1


# ===================================================================
# Run
# ===================================================================

class TestRun:
    def test_signal_shuts_service_down(self) -> None:
        sup = _supervisor()
        service = sup.bootstrap("master", "/tmp/logs", "info", "")
        timer = threading.Timer(0.1, sup.handle_signal, args=(signal.SIGTERM,))
        timer.start()

        assert sup.run(service, Config()) == 0
        timer.join()
        assert sup.state == NodeState.STOPPED
        assert service.shutdown_calls == 1
        assert service.stopped

    def test_repeated_signals_shut_down_once(self) -> None:
        sup = _supervisor()
        service = sup.bootstrap("master", "/tmp/logs", "info", "")

        def fire():
            sup.handle_signal(signal.SIGINT)
            sup.handle_signal(signal.SIGTERM)

        timer = threading.Timer(0.1, fire)
        timer.start()
        assert sup.run(service, Config()) == 0
        timer.join()
        assert service.shutdown_calls == 1

    def test_start_failure_returns_1_without_sync(self, capsys) -> None:
        sup = _supervisor(factory=lambda: FakeService(fail_start=True))
        service = sup.bootstrap("master", "/tmp/logs", "info", "")

        assert sup.run(service, Config()) == 1
        assert service.sync_calls == 0
        assert sup.state == NodeState.STOPPED
        assert "Fatal: failed to start the master daemon" in capsys.readouterr().err

    def test_start_failure_stops_profile_server(self) -> None:
        profile_server = FakeProfileServer()
        sup = _supervisor(
            factory=lambda: FakeService(fail_start=True),
            profiler_starter=Recorder(result=profile_server),
        )
        service = sup.bootstrap("master", "/tmp/logs", "info", "6060")

        assert sup.run(service, Config()) == 1
        assert profile_server.stop_calls == 1
        assert sup.profile_server is None

    def test_clean_stop_stops_profile_server(self) -> None:
        profile_server = FakeProfileServer()
        sup = _supervisor(profiler_starter=Recorder(result=profile_server))
        service = sup.bootstrap("master", "/tmp/logs", "info", "6060")
        timer = threading.Timer(0.1, sup.handle_signal, args=(signal.SIGTERM,))
        timer.start()

        assert sup.run(service, Config()) == 0
        timer.join()
        assert profile_server.stop_calls == 1

    def test_internal_failure_stops_run(self) -> None:
        sup = _supervisor()
        service = sup.bootstrap("master", "/tmp/logs", "info", "")
        timer = threading.Timer(0.1, service.fail, args=(RuntimeError("api thread died"),))
        timer.start()

        assert sup.run(service, Config()) == 0
        timer.join()
        assert isinstance(service.failure, RuntimeError)
        assert sup.state == NodeState.STOPPED

    def test_real_handlers_installed_and_restored(self) -> None:
        previous = signal.getsignal(signal.SIGUSR1)
        sup = _supervisor(signals=(signal.SIGUSR1,))
        service = sup.bootstrap("master", "/tmp/logs", "info", "")
        seen = {}

        def fire():
            seen["handler"] = signal.getsignal(signal.SIGUSR1)
            sup.handle_signal(signal.SIGUSR1)

        timer = threading.Timer(0.1, fire)
        timer.start()
        sup.run(service, Config())
        timer.join()
        assert seen["handler"] == sup.handle_signal
        assert signal.getsignal(signal.SIGUSR1) == previous


# ===================================================================
# Entry point
# ===================================================================

class TestMain:
    def test_version_flag(self, capsys) -> None:
        assert node_main.main(["-v"]) == 0
        assert capsys.readouterr().out.strip() == "Current Version: 0.01"

    def test_missing_config_is_fatal(self, tmp_path, capsys) -> None:
        assert node_main.main(["-c", str(tmp_path / "absent.json")], supervisor=_supervisor()) == 1
        assert "Fatal:" in capsys.readouterr().err

    def test_bad_role_is_fatal(self, tmp_path, capsys) -> None:
        path = tmp_path / "node.json"
        path.write_text(json.dumps({"role": "client", "logDir": str(tmp_path)}))
        assert node_main.main(["-c", str(path)], supervisor=_supervisor()) == 1
        assert "role mismatch" in capsys.readouterr().err

    def test_unexpected_error_propagates(self, tmp_path) -> None:
        path = tmp_path / "node.json"
        path.write_text(json.dumps({"role": "master"}))
        sup = _supervisor(logging_initializer=Recorder(error=KeyError("boom")))
        with pytest.raises(KeyError):
            node_main.main(["-c", str(path)], supervisor=sup)

    def test_full_lifecycle_from_config(self, tmp_path) -> None:
        path = tmp_path / "node.yaml"
        path.write_text("role: metanode\nlogLevel: debug\n")
        sup = _supervisor()
        threading.Timer(0.1, sup.handle_signal, args=(signal.SIGTERM,)).start()
        assert node_main.main(["-c", str(path)], supervisor=sup) == 0
        assert sup.state == NodeState.STOPPED
        assert sup.module == "metaNode"


# ===================================================================
# Open files limit
# ===================================================================

class TestOpenFilesLimit:
    def test_denied_adjustment_raises(self, monkeypatch) -> None:
        import resource

        def deny(which, limits):
            raise ValueError("not allowed to raise maximum limit")

        monkeypatch.setattr(resource, "setrlimit", deny)
        with pytest.raises(ResourceLimitError, match="Error Setting Rlimit"):
            raise_open_files_limit()

    def test_returns_final_limits(self, monkeypatch) -> None:
        import resource

        state = {"limits": (1024, 4096)}
        monkeypatch.setattr(resource, "getrlimit", lambda which: state["limits"])
        monkeypatch.setattr(resource, "setrlimit", lambda which, limits: state.update(limits=limits))
        assert raise_open_files_limit(2048) == (2048, 2048)
