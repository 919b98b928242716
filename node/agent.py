"""
Cluster Node Service (metanode / datanode)

Shared lifecycle for the non-master roles:
1. Read listen address and master addresses from config
2. Prepare role-specific local state (directories, disks)
3. Register with the master
4. Serve the role status API (FastAPI) in a background thread
5. Send heartbeats to the master
"""

import logging
import time
from typing import Optional

from fastapi import FastAPI

from node.heartbeat import HeartbeatSender, register_with_master
from node.service import ApiServerThread, Service
from shared.config import (
    CONFIG_KEY_BIND_HOST,
    CONFIG_KEY_LISTEN,
    CONFIG_KEY_MASTER_ADDR,
    Config,
)
from shared.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_KEY_LOCAL_IP = "localIP"
CONFIG_KEY_HEARTBEAT_INTERVAL = "heartbeatInterval"


class ClusterNodeService(Service):
    role = ""
    default_port = 0

    def __init__(self):
        super().__init__()
        self.address: Optional[str] = None
        self.master_addrs: list[str] = []
        self.started_at: Optional[float] = None

        self.api_server: Optional[ApiServerThread] = None
        self.heartbeat_sender: Optional[HeartbeatSender] = None

    @property
    def name(self):
        return self.role

    def _do_start(self, cfg: Config):
        port = cfg.get_int(CONFIG_KEY_LISTEN, self.default_port)
        host = cfg.get_string(CONFIG_KEY_BIND_HOST, "0.0.0.0")
        local_ip = cfg.get_string(CONFIG_KEY_LOCAL_IP, "127.0.0.1")
        self.master_addrs = cfg.get_list(CONFIG_KEY_MASTER_ADDR)
        if not self.master_addrs:
            raise ConfigError(f"{CONFIG_KEY_MASTER_ADDR} is required for {self.role}")
        self.address = f"{local_ip}:{port}"

        # 1. Role specific local state
        self._prepare(cfg)

        # 2. Join the cluster
        register_with_master(self.master_addrs, self.address, self.role, metadata=self.metrics())

        # 3. Status API
        self.started_at = time.time()
        self.api_server = ApiServerThread(
            self.create_app(),
            host=host,
            port=port,
            name=f"{self.role}-api",
            on_exit=self.fail
        )
        self.api_server.start()

        # 4. Heartbeats
        self.heartbeat_sender = HeartbeatSender(
            master_addrs=self.master_addrs,
            address=self.address,
            role=self.role,
            interval_seconds=cfg.get_int(CONFIG_KEY_HEARTBEAT_INTERVAL, 10),
            metrics_provider=self.metrics
        )
        self.heartbeat_sender.start()

    def _do_shutdown(self):
        if self.heartbeat_sender:
            self.heartbeat_sender.stop()
        if self.api_server:
            self.api_server.stop()

    def status(self) -> dict:
        uptime = time.time() - self.started_at if self.started_at else 0.0
        return {
            "role": self.role,
            "address": self.address,
            "masters": self.master_addrs,
            "uptime_seconds": round(uptime, 1),
            "stopping": self.stopped,
        }

    def create_app(self) -> FastAPI:
        app = FastAPI(title=f"CFS {self.role}")

        @app.get("/status")
        def get_status():
            return self.status()

        self._add_routes(app)
        return app

    def _prepare(self, cfg: Config):
        pass

    def _add_routes(self, app: FastAPI):
        pass

    def metrics(self) -> dict:
        return {}
