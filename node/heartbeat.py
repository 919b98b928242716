"""
Node Heartbeat Sender

Background thread that sends periodic heartbeats to the master.
Runs every `heartbeatInterval` seconds to indicate liveness.
"""

import logging
import threading
import time
from typing import Callable, Optional

import requests

from shared.errors import RemoteError

logger = logging.getLogger(__name__)


def register_with_master(master_addrs: list[str], address: str, role: str,
                         metadata: Optional[dict] = None, timeout: int = 10) -> dict:
    """
    Register this node with the master so it receives partitions.

    Tries every master address in order.

    Raises:
        RemoteError: no master accepted the registration
    """
    payload = {"address": address, "role": role, "metadata": metadata}
    last_error = "no master address configured"
    for master in master_addrs:
        url = f"http://{master}/node/add"
        logger.info(f"Registering {role} with master: {url}")
        try:
            response = requests.post(url, json=payload, timeout=timeout)
        except requests.exceptions.RequestException as e:
            last_error = f"{master}: {e}"
            logger.warning(f"Registration request failed: {last_error}")
            continue

        if response.status_code in (200, 201):
            result = response.json()
            logger.info(f"✓ Registration successful: address={address} role={role}")
            return result
        last_error = f"{master}: status={response.status_code}, body={response.text}"
        logger.error(f"Registration failed: {last_error}")

    raise RemoteError(f"node registration failed: {last_error}")


class HeartbeatSender:
    """
    Sends periodic heartbeats to the master node API.
    """

    def __init__(
        self,
        master_addrs: list[str],
        address: str,
        role: str,
        interval_seconds: int = 10,
        metrics_provider: Optional[Callable[[], dict]] = None
    ):
        """
        Initialize heartbeat sender.

        Args:
            master_addrs: Master addresses (host:port), tried in order
            address: This node's advertised address (host:port)
            role: Node role ('metanode' or 'datanode')
            interval_seconds: Heartbeat interval (default: 10 seconds)
            metrics_provider: Optional callable returning node metrics
        """
        self.master_addrs = list(master_addrs)
        self.address = address
        self.role = role
        self.interval_seconds = interval_seconds
        self.metrics_provider = metrics_provider

        self.running = False
        self.thread = None
        self.last_sent_at: Optional[float] = None

        logger.info(f"Heartbeat sender initialized: masters={master_addrs}, node={address}, interval={interval_seconds}s")

    def start(self):
        """Start heartbeat sender thread"""
        if self.running:
            logger.warning("Heartbeat sender already running")
            return

        self.running = True
        self.thread = threading.Thread(target=self._run, name=f"{self.role}-heartbeat", daemon=True)
        self.thread.start()

        logger.info("Heartbeat sender started")

    def stop(self):
        """Stop heartbeat sender thread"""
        self.running = False
        if self.thread:
            self.thread.join(timeout=5)

        logger.info("Heartbeat sender stopped")

    def _run(self):
        """Main heartbeat loop"""
        while self.running:
            self.send_heartbeat()

            # Sleep in small increments for responsive shutdown
            for _ in range(self.interval_seconds * 10):
                if not self.running:
                    break
                time.sleep(0.1)

    def send_heartbeat(self) -> bool:
        """Send single heartbeat; the first master that answers 200 wins"""
        payload = {
            "address": self.address,
            "role": self.role,
            "metrics": self.metrics_provider() if self.metrics_provider else None,
        }
        for master in self.master_addrs:
            try:
                response = requests.post(f"http://{master}/node/heartbeat", json=payload, timeout=5)
            except requests.exceptions.RequestException as e:
                logger.error(f"Heartbeat request error: {master}: {e}")
                continue

            if response.status_code == 200:
                logger.debug(f"Heartbeat sent successfully: {self.address}")
                self.last_sent_at = time.time()
                return True
            logger.warning(f"Heartbeat failed: master={master} status={response.status_code}")
        return False
