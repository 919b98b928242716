"""Tests for config loading, log level mapping and authorization keys."""

import json
import logging

import pytest

from shared.config import Config, load_config_file
from shared.errors import ConfigError
from shared.logging_config import normalize_log_level
from shared.token_utils import calc_auth_key, verify_auth_key


class TestConfigFile:
    def test_json(self, tmp_path) -> None:
        path = tmp_path / "master.json"
        path.write_text(json.dumps({"role": "master", "listen": "17010", "masterAddr": "a:1,b:2"}))
        cfg = load_config_file(str(path))
        assert cfg.get_string("role") == "master"
        assert cfg.get_int("listen") == 17010
        assert cfg.get_list("masterAddr") == ["a:1", "b:2"]

    def test_yaml(self, tmp_path) -> None:
        path = tmp_path / "datanode.yml"
        path.write_text("role: datanode\ndisks:\n  - /data0\n  - /data1\nheartbeatInterval: 5\n")
        cfg = load_config_file(str(path))
        assert cfg.get_list("disks") == ["/data0", "/data1"]
        assert cfg.get_int("heartbeatInterval") == 5

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config_file(str(tmp_path / "none.json"))

    def test_empty_path(self) -> None:
        with pytest.raises(ConfigError):
            load_config_file("")

    def test_malformed_json(self, tmp_path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{role: master")
        with pytest.raises(ConfigError, match="failed to parse"):
            load_config_file(str(path))

    def test_non_mapping_document(self, tmp_path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config_file(str(path))


class TestConfigAccessors:
    def test_defaults(self) -> None:
        cfg = Config()
        assert cfg.get_string("logDir", "./logs") == "./logs"
        assert cfg.get_int("listen", 17010) == 17010
        assert cfg.get_bool("enabled") is False
        assert cfg.get_list("disks") == []

    def test_bad_int(self) -> None:
        with pytest.raises(ConfigError):
            Config({"listen": "http"}).get_int("listen")

    def test_bool_forms(self) -> None:
        cfg = Config({"a": True, "b": "false", "c": "1", "d": "sometimes"})
        assert cfg.get_bool("a") is True
        assert cfg.get_bool("b") is False
        assert cfg.get_bool("c") is True
        with pytest.raises(ConfigError):
            cfg.get_bool("d")


class TestLogLevel:
    def test_mapping(self) -> None:
        assert normalize_log_level("DEBUG") == logging.DEBUG
        assert normalize_log_level("warn") == logging.WARNING
        assert normalize_log_level(None) == logging.ERROR
        assert normalize_log_level("trace") == logging.ERROR


class TestAuthKey:
    def test_known_digest(self) -> None:
        # md5("root")
        assert calc_auth_key("root") == "63a9f0ea7bb98050796b649e85481845"

    def test_deterministic(self) -> None:
        assert calc_auth_key("u1") == calc_auth_key("u1")
        assert len(calc_auth_key("u1")) == 32

    def test_distinct_owners_distinct_keys(self) -> None:
        owners = [f"user-{i}" for i in range(200)] + ["", "a", "A", "ü"]
        keys = {calc_auth_key(o) for o in owners}
        assert len(keys) == len(owners)

    def test_verify(self) -> None:
        assert verify_auth_key("u1", calc_auth_key("u1")) is True
        assert verify_auth_key("u1", calc_auth_key("u1").upper()) is True
        assert verify_auth_key("u1", calc_auth_key("u2")) is False
        assert verify_auth_key("u1", "") is False
