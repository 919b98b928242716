import logging
import shutil
from pathlib import Path

from fastapi import FastAPI

from node.agent import ClusterNodeService
from shared.config import Config
from shared.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_KEY_DISKS = "disks"


class DataNodeService(ClusterNodeService):
    role = "datanode"
    default_port = 17310

    def __init__(self):
        super().__init__()
        self.disks: list[Path] = []

    def _prepare(self, cfg: Config):
        disks = cfg.get_list(CONFIG_KEY_DISKS)
        if not disks:
            raise ConfigError(f"{CONFIG_KEY_DISKS} is required for datanode")
        for disk in disks:
            path = Path(disk)
            if not path.is_dir():
                raise ConfigError(f"disk path is not a directory: {disk}")
            self.disks.append(path)
        logger.info(f"Data disks: {[str(d) for d in self.disks]}")

    def disk_usage(self) -> list[dict]:
        result = []
        for disk in self.disks:
            try:
                usage = shutil.disk_usage(disk)
            except OSError as e:
                result.append({"path": str(disk), "status": "Unavailable", "error": str(e)})
                continue
            result.append({
                "path": str(disk),
                "status": "ReadWrite",
                "total_bytes": usage.total,
                "used_bytes": usage.used,
                "free_bytes": usage.free,
            })
        return result

    def _add_routes(self, app: FastAPI):
        @app.get("/disks")
        def get_disks():
            return self.disk_usage()

    def metrics(self) -> dict:
        usage = [d for d in self.disk_usage() if d["status"] == "ReadWrite"]
        return {
            "disks": len(self.disks),
            "total_bytes": sum(d["total_bytes"] for d in usage),
            "used_bytes": sum(d["used_bytes"] for d in usage),
        }
