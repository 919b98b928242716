"""
Role Service Base

Every cluster role (master, metanode, datanode) is a Service:
- start(cfg): bring up listeners and background workers, at most once
- shutdown(): stop everything; idempotent, safe to call from any thread
- sync(): block the caller until the service has fully stopped

Subclasses implement _do_start / _do_shutdown. A background worker that dies
calls fail(), which shuts the service down and releases sync().
"""

import logging
import threading
from typing import Optional

import uvicorn

from shared.config import Config

logger = logging.getLogger(__name__)


class Service:
    """Lifecycle base class shared by all role services"""

    name = "service"

    def __init__(self):
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self._started = False
        self._shutting_down = False
        self.failure: Optional[BaseException] = None

    @property
    def started(self) -> bool:
        return self._started

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def start(self, cfg: Config):
        with self._lock:
            if self._started:
                raise RuntimeError(f"{self.name} already started")
            if self._shutting_down:
                raise RuntimeError(f"{self.name} already shut down")
            self._started = True

        logger.info(f"Starting {self.name}...")
        try:
            self._do_start(cfg)
        except BaseException:
            # release whatever was brought up before the failure
            self.shutdown()
            raise
        logger.info(f"✓ {self.name} started successfully")

    def shutdown(self):
        with self._lock:
            if self._shutting_down:
                return
            self._shutting_down = True

        logger.info(f"Stopping {self.name}...")
        try:
            if self._started:
                self._do_shutdown()
        finally:
            self._stopped.set()
            logger.info(f"✓ {self.name} stopped")

    def sync(self, timeout: Optional[float] = None) -> bool:
        """Block until the service has stopped; returns False on timeout"""
        return self._stopped.wait(timeout)

    def fail(self, exc: BaseException):
        """Record an internal fatal error and stop the service"""
        logger.error(f"{self.name} internal failure: {exc}")
        if self.failure is None:
            self.failure = exc
        threading.Thread(target=self.shutdown, name=f"{self.name}-fail", daemon=True).start()

    def _do_start(self, cfg: Config):
        raise NotImplementedError

    def _do_shutdown(self):
        raise NotImplementedError


class ApiServerThread:
    """
    Runs a FastAPI app under uvicorn in a background thread.

    Unlike uvicorn.run(), the server can be stopped from another thread by
    setting should_exit. on_exit is called when the server stops without
    being asked to.
    """

    def __init__(self, app, host: str, port: int, name: str, on_exit=None, daemon: bool = False):
        self.app = app
        self.host = host
        self.port = port
        self.name = name
        self.on_exit = on_exit
        self.daemon = daemon

        self.server: Optional[uvicorn.Server] = None
        self.thread: Optional[threading.Thread] = None
        self._stopping = False

    def start(self):
        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=self.port,
            log_level="warning",
            access_log=False
        )
        self.server = uvicorn.Server(config)
        self.thread = threading.Thread(target=self._run, name=self.name, daemon=self.daemon)
        self.thread.start()
        logger.info(f"{self.name} listening: http://{self.host}:{self.port}")

    def _run(self):
        error: Optional[BaseException] = None
        try:
            self.server.run()
        except (Exception, SystemExit) as e:
            # uvicorn exits the thread with SystemExit when it cannot bind
            error = e
            logger.error(f"{self.name} server error: {e}", exc_info=True)

        if not self._stopping and self.on_exit is not None:
            self.on_exit(error or RuntimeError(f"{self.name} server exited unexpectedly"))

    def stop(self, timeout: float = 5):
        self._stopping = True
        if self.server is not None:
            self.server.should_exit = True
        if self.thread and self.thread.is_alive() and self.thread is not threading.current_thread():
            self.thread.join(timeout=timeout)
