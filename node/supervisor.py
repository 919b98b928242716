"""
Node Process Supervisor

Owns the single role Service of a node process and drives its one-shot
lifecycle:

    UNCONFIGURED -> CONFIGURED -> RUNNING -> SHUTTING_DOWN -> STOPPED

- bootstrap(): resolve role, raise open files limit, init logging, start
  the optional diagnostics endpoint, build the Service
- run(): start the Service, intercept SIGINT/SIGTERM, block in sync()
- the signal handler only sets a cancellation event; a watcher thread
  performs the actual shutdown so the handler never blocks
"""

import enum
import logging
import signal
import sys
import threading
from typing import Callable, Optional

from node.limits import raise_open_files_limit
from node.profiler import start_profile_server
from node.roles import RoleRegistry
from node.service import Service
from shared.config import Config
from shared.errors import ConfigError
from shared.logging_config import flush_logs, init_node_logging, normalize_log_level

logger = logging.getLogger(__name__)


class NodeState(str, enum.Enum):
    """Lifecycle state of the node process"""
    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


_TRANSITIONS = {
    NodeState.UNCONFIGURED: {NodeState.CONFIGURED},
    NodeState.CONFIGURED: {NodeState.RUNNING, NodeState.STOPPED},
    NodeState.RUNNING: {NodeState.SHUTTING_DOWN},
    NodeState.SHUTTING_DOWN: {NodeState.STOPPED},
    NodeState.STOPPED: set(),
}

INTERCEPTED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ProcessSupervisor:
    def __init__(
        self,
        registry: RoleRegistry,
        limit_adjuster: Callable[[], object] = raise_open_files_limit,
        logging_initializer: Callable[[str, str, int], object] = init_node_logging,
        profiler_starter: Callable[[str, str], object] = start_profile_server,
        signals=INTERCEPTED_SIGNALS
    ):
        self.registry = registry
        self.limit_adjuster = limit_adjuster
        self.logging_initializer = logging_initializer
        self.profiler_starter = profiler_starter
        self.signals = tuple(signals)

        self.state = NodeState.UNCONFIGURED
        self.module: Optional[str] = None
        self.service: Optional[Service] = None
        self.profile_server = None

        self._state_lock = threading.Lock()
        self._cancel = threading.Event()
        self._received_signal: Optional[int] = None
        self._watcher: Optional[threading.Thread] = None
        self._previous_handlers: dict = {}

    def _transition(self, target: NodeState):
        with self._state_lock:
            if target not in _TRANSITIONS[self.state]:
                raise RuntimeError(f"invalid node state transition {self.state.value} -> {target.value}")
            logger.debug(f"Node state {self.state.value} -> {target.value}")
            self.state = target

    def _enter_shutting_down(self):
        with self._state_lock:
            if self.state != NodeState.RUNNING:
                return
            self.state = NodeState.SHUTTING_DOWN

    def bootstrap(self, role_name: str, log_dir: str, log_level: str, profile_port: str) -> Service:
        """
        Prepare the process for the configured role.

        Raises:
            ConfigError: unknown role or logging cannot be initialized
            ResourceLimitError: open files limit could not be raised
        """
        if self.state != NodeState.UNCONFIGURED:
            raise RuntimeError(f"bootstrap called in state {self.state.value}")

        spec = self.registry.resolve(role_name)
        self.limit_adjuster()

        level = normalize_log_level(log_level)
        try:
            self.logging_initializer(log_dir, spec.module, level)
        except OSError as e:
            raise ConfigError(f"failed to init log - {e}")

        if profile_port:
            self.profile_server = self.profiler_starter(profile_port, spec.module)

        self.module = spec.module
        self.service = spec.factory()
        self._transition(NodeState.CONFIGURED)
        logger.info(f"action[bootstrap] role={spec.role.value} module={spec.module}")
        return self.service

    def handle_signal(self, signum, frame=None):
        """Signal handler: record the first signal and release the watcher"""
        if self._received_signal is None:
            self._received_signal = signum
        self._cancel.set()

    def intercept_signals(self, service: Service):
        for sig in self.signals:
            self._previous_handlers[sig] = signal.signal(sig, self.handle_signal)
        self._watcher = threading.Thread(
            target=self._watch_signals,
            args=(service,),
            name="signal-watcher",
            daemon=True
        )
        self._watcher.start()
        logger.info("action[interceptSignal] register system signal.")

    def _watch_signals(self, service: Service):
        self._cancel.wait()
        signum = self._received_signal
        if signum is None:
            # released by run() after the service stopped on its own
            return
        try:
            sig_name = signal.Signals(signum).name
        except ValueError:
            sig_name = str(signum)
        logger.info(f"action[interceptSignal] received signal: {sig_name}.")
        self._enter_shutting_down()
        service.shutdown()

    def _release_signals(self):
        for sig, handler in self._previous_handlers.items():
            try:
                signal.signal(sig, handler)
            except (ValueError, TypeError):
                pass
        self._previous_handlers.clear()
        self._cancel.set()

    def _stop_profile_server(self):
        if self.profile_server is not None:
            self.profile_server.stop()
            self.profile_server = None

    def run(self, service: Service, cfg: Config) -> int:
        """Start the service and block until it stops; returns the exit code"""
        try:
            service.start(cfg)
        except Exception as e:
            print(f"Fatal: failed to start the {self.module} daemon - {e}", file=sys.stderr)
            logger.critical(f"Fatal: failed to start the {self.module} daemon - {e}", exc_info=True)
            self._transition(NodeState.STOPPED)
            self._stop_profile_server()
            flush_logs()
            return 1

        self._transition(NodeState.RUNNING)
        try:
            self.intercept_signals(service)
            # Block main thread until server shutdown.
            service.sync()
        finally:
            self._release_signals()

        self._enter_shutting_down()
        self._transition(NodeState.STOPPED)
        if service.failure is not None:
            logger.error(f"action[run] {self.module} stopped after internal failure: {service.failure}")
        self._stop_profile_server()
        logger.info(f"action[run] {self.module} stopped")
        flush_logs()
        return 0
