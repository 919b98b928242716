import logging
from pathlib import Path

from fastapi import FastAPI

from node.agent import ClusterNodeService
from shared.config import Config
from shared.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_KEY_METADATA_DIR = "metadataDir"


class MetaNodeService(ClusterNodeService):
    role = "metanode"
    default_port = 17210

    def __init__(self):
        super().__init__()
        self.metadata_dir: Path | None = None

    def _prepare(self, cfg: Config):
        self.metadata_dir = Path(cfg.get_string(CONFIG_KEY_METADATA_DIR, "./metanode_data"))
        try:
            self.metadata_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"cannot create {CONFIG_KEY_METADATA_DIR} {self.metadata_dir}: {e}")
        logger.info(f"Metadata directory: {self.metadata_dir}")

    def _add_routes(self, app: FastAPI):
        @app.get("/metadata")
        def get_metadata_dir():
            files = sorted(p.name for p in self.metadata_dir.iterdir()) if self.metadata_dir else []
            return {"metadata_dir": str(self.metadata_dir), "entries": files}

    def metrics(self) -> dict:
        return {"metadata_dir": str(self.metadata_dir) if self.metadata_dir else None}
