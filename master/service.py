"""
Master Service

Control-plane role:
- SQLite store for users, volumes, partitions and nodes
- Admin HTTP API (uvicorn, background thread)
- Node monitor (background thread)

Config keys: listen (default 17010), bindHost, storeDir, clusterName,
nodeTimeout.
"""

import logging
from typing import Optional

from master.app import create_app
from master.database import SessionLocal, database_url_for, init_db
from master.node_monitor import NodeMonitor
from node.service import ApiServerThread, Service
from shared.config import CONFIG_KEY_BIND_HOST, CONFIG_KEY_LISTEN, Config

logger = logging.getLogger(__name__)

CONFIG_KEY_STORE_DIR = "storeDir"
CONFIG_KEY_CLUSTER_NAME = "clusterName"
CONFIG_KEY_NODE_TIMEOUT = "nodeTimeout"

DEFAULT_MASTER_PORT = 17010


class MasterService(Service):
    name = "master"

    def __init__(self):
        super().__init__()
        self.cluster_name: Optional[str] = None
        self.node_monitor: Optional[NodeMonitor] = None
        self.api_server: Optional[ApiServerThread] = None

    def _do_start(self, cfg: Config):
        port = cfg.get_int(CONFIG_KEY_LISTEN, DEFAULT_MASTER_PORT)
        host = cfg.get_string(CONFIG_KEY_BIND_HOST, "0.0.0.0")
        self.cluster_name = cfg.get_string(CONFIG_KEY_CLUSTER_NAME, "cfs_cluster")

        # 1. Store
        store_dir = cfg.get_string(CONFIG_KEY_STORE_DIR, "./master_data")
        logger.info(f"Initializing master store in {store_dir}...")
        init_db(database_url_for(store_dir))

        # 2. Node monitor
        self.node_monitor = NodeMonitor(
            session_factory=SessionLocal,
            check_interval_seconds=10,
            heartbeat_timeout_seconds=cfg.get_int(CONFIG_KEY_NODE_TIMEOUT, 30)
        )
        self.node_monitor.start()

        # 3. Admin API
        self.api_server = ApiServerThread(
            create_app(self.cluster_name, self.node_monitor),
            host=host,
            port=port,
            name="master-api",
            on_exit=self.fail
        )
        self.api_server.start()
        logger.info(f"Master cluster={self.cluster_name} admin API: http://{host}:{port}")

    def _do_shutdown(self):
        if self.api_server:
            self.api_server.stop()
        if self.node_monitor:
            self.node_monitor.stop()
