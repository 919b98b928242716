"""
Master Node Monitor

Background service that tracks metanode/datanode liveness via heartbeats.
Marks a node INACTIVE when no heartbeat arrived within the timeout and back
to ACTIVE when heartbeats resume. Inactive nodes get no new partitions.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Any, Dict

from sqlalchemy import select

from master.models import ClusterNode, ClusterNodeStatus

logger = logging.getLogger(__name__)


class NodeMonitor:
    """
    Monitor node liveness via heartbeat tracking.
    Runs in background thread.
    """

    def __init__(self, session_factory, check_interval_seconds: int = 10, heartbeat_timeout_seconds: int = 30):
        """
        Initialize node monitor.

        Args:
            session_factory: SQLAlchemy session factory
            check_interval_seconds: How often to check node liveness (default 10s)
            heartbeat_timeout_seconds: Mark INACTIVE after this many seconds without heartbeat (default 30s)
        """
        self.session_factory = session_factory
        self.check_interval = check_interval_seconds
        self.heartbeat_timeout = heartbeat_timeout_seconds

        self._stop = threading.Event()
        self.monitor_thread: threading.Thread | None = None

        logger.info(f"Node monitor initialized: check_interval={check_interval_seconds}s, timeout={heartbeat_timeout_seconds}s")

    @property
    def running(self) -> bool:
        return self.monitor_thread is not None and self.monitor_thread.is_alive()

    def start(self):
        """Start node monitor in background thread"""
        if self.running:
            logger.warning("Node monitor already running")
            return

        self._stop.clear()
        self.monitor_thread = threading.Thread(target=self._monitor_loop, name="node-monitor", daemon=True)
        self.monitor_thread.start()

        logger.info("Node monitor started")

    def stop(self):
        """Stop node monitor"""
        self._stop.set()
        if self.monitor_thread and self.monitor_thread.is_alive():
            self.monitor_thread.join(timeout=5)

        logger.info("Node monitor stopped")

    def _monitor_loop(self):
        """Main monitoring loop (runs in background thread)"""
        while not self._stop.is_set():
            try:
                self.check_nodes()
            except Exception as e:
                logger.error(f"Node check error: {e}", exc_info=True)

            self._stop.wait(self.check_interval)

    def check_nodes(self, now: datetime | None = None) -> Dict[str, int]:
        """Check all registered nodes for heartbeat timeout"""
        db = self.session_factory()
        try:
            now = now or datetime.utcnow()
            timeout_threshold = now - timedelta(seconds=self.heartbeat_timeout)

            nodes = db.scalars(select(ClusterNode)).all()

            inactive_count = 0
            recovered_count = 0

            for node in nodes:
                if node.last_heartbeat_at < timeout_threshold:
                    if node.status == ClusterNodeStatus.ACTIVE:
                        node.status = ClusterNodeStatus.INACTIVE
                        time_since_last = (now - node.last_heartbeat_at).total_seconds()
                        logger.warning(f"Node {node.address} ({node.role.value}) marked INACTIVE (no heartbeat for {time_since_last:.1f}s)")
                        inactive_count += 1
                elif node.status == ClusterNodeStatus.INACTIVE:
                    node.status = ClusterNodeStatus.ACTIVE
                    logger.info(f"Node {node.address} recovered (status → ACTIVE)")
                    recovered_count += 1

            db.commit()
            if inactive_count > 0 or recovered_count > 0:
                logger.info(f"Node check: {inactive_count} nodes marked INACTIVE, {recovered_count} recovered")
            return {"inactive": inactive_count, "recovered": recovered_count}

        finally:
            db.close()

    def get_summary(self) -> Dict[str, Any]:
        """Node counts per role and status"""
        db = self.session_factory()
        try:
            nodes = db.scalars(select(ClusterNode)).all()
            by_role: Dict[str, Dict[str, int]] = {}
            for node in nodes:
                counts = by_role.setdefault(node.role.value, {"total": 0, "active": 0, "inactive": 0})
                counts["total"] += 1
                if node.status == ClusterNodeStatus.ACTIVE:
                    counts["active"] += 1
                else:
                    counts["inactive"] += 1
            return {
                "timestamp": datetime.utcnow().isoformat(),
                "total": len(nodes),
                "by_role": by_role,
                "heartbeat_timeout_seconds": self.heartbeat_timeout,
            }
        finally:
            db.close()
