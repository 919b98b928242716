import json
import os
from pathlib import Path
from typing import Any

import yaml

from shared.errors import ConfigError

CONFIG_KEY_ROLE = "role"
CONFIG_KEY_LOG_DIR = "logDir"
CONFIG_KEY_LOG_LEVEL = "logLevel"
CONFIG_KEY_PROF_PORT = "prof"
CONFIG_KEY_LISTEN = "listen"
CONFIG_KEY_BIND_HOST = "bindHost"
CONFIG_KEY_MASTER_ADDR = "masterAddr"


def _env(name: str, default: str) -> str:
    return str(os.getenv(name, default)).strip()


def _int_env(name: str, default: int) -> int:
    raw = _env(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


DEFAULT_MASTER_ADDR = _env("CFS_MASTER_ADDR", "127.0.0.1:17010")
DEFAULT_HTTP_TIMEOUT = _int_env("CFS_HTTP_TIMEOUT", 10)


class Config:
    """Read-only view over a parsed configuration file"""

    def __init__(self, data: dict[str, Any] | None = None, path: str | None = None):
        self.data = dict(data or {})
        self.path = path

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def get_string(self, key: str, default: str = "") -> str:
        value = self.data.get(key)
        if value is None:
            return default
        return str(value).strip()

    def get_int(self, key: str, default: int = 0) -> int:
        value = self.data.get(key)
        if value is None or value == "":
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigError(f"config key '{key}' must be an integer, got {value!r}")

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.data.get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in {"true", "1", "yes"}:
            return True
        if text in {"false", "0", "no"}:
            return False
        raise ConfigError(f"config key '{key}' must be a boolean, got {value!r}")

    def get_list(self, key: str) -> list[str]:
        """Accept either a list or a comma separated string"""
        value = self.data.get(key)
        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            return [str(item).strip() for item in value if str(item).strip()]
        return [part.strip() for part in str(value).split(",") if part.strip()]


def load_config_file(path: str) -> Config:
    """
    Load a node configuration file.

    JSON is the default format; files ending in .yaml / .yml are read with
    PyYAML.

    Raises:
        ConfigError: missing file, parse failure or non-mapping document
    """
    if not path:
        raise ConfigError("config file path is required")
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigError(f"config file not found: {path}")

    raw = config_path.read_text(encoding="utf-8")
    try:
        if config_path.suffix.lower() in {".yaml", ".yml"}:
            data = yaml.safe_load(raw) or {}
        else:
            data = json.loads(raw) if raw.strip() else {}
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"failed to parse config file {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping at top level")
    return Config(data, path=str(config_path))
