"""Shared fixtures: in-memory admin client, scripted prompts, master store."""

from typing import Dict, List, Tuple

import pytest
from fastapi.testclient import TestClient

from master.app import create_app
from master.database import init_db
from shared.errors import NotFoundError, RemoteError
from shared.schemas import (
    DataPartitionsView,
    DataPartitionView,
    MetaPartitionView,
    SimpleVolView,
    UserInfo,
    UserTransferVolParam,
    VolumeInfo,
)
from shared.token_utils import calc_auth_key


class FakeAdminClient:
    """Records every call; volumes and users live in dicts."""

    def __init__(self):
        self.calls: List[Tuple[str, Dict]] = []
        self.volumes: Dict[str, SimpleVolView] = {}
        self.users: Dict[str, UserInfo] = {}
        self.meta_partitions: Dict[str, List[MetaPartitionView]] = {}
        self.data_partitions: Dict[str, List[DataPartitionView]] = {}

    def _record(self, _call: str, /, **kwargs):
        self.calls.append((_call, kwargs))

    def calls_named(self, name: str) -> List[Dict]:
        return [kwargs for call, kwargs in self.calls if call == name]

    @property
    def call_names(self) -> List[str]:
        return [call for call, _ in self.calls]

    def add_volume(self, **fields) -> SimpleVolView:
        data = {
            "name": "vol1",
            "owner": "u1",
            "zone_name": "default",
            "capacity": 10,
            "dp_replica_num": 3,
            "follower_read": True,
            "create_time": "2026-10-19 10:00:00",
        }
        data.update(fields)
        view = SimpleVolView(**data)
        self.volumes[view.name] = view
        return view

    def add_user(self, user_id: str) -> UserInfo:
        user = UserInfo(user_id=user_id, create_time="2026-10-19 10:00:00")
        self.users[user_id] = user
        return user

    # admin API surface

    def list_volumes(self, keyword: str = ""):
        self._record("list_volumes", keyword=keyword)
        return [
            VolumeInfo(
                name=v.name,
                owner=v.owner,
                create_time=v.create_time,
                status=v.status,
                total_size=v.capacity << 30,
            )
            for v in self.volumes.values()
            if keyword in v.name
        ]

    def get_volume(self, name: str) -> SimpleVolView:
        self._record("get_volume", name=name)
        if name not in self.volumes:
            raise NotFoundError(f"volume '{name}' not found", 404)
        return self.volumes[name].model_copy()

    def create_volume(self, **kwargs) -> SimpleVolView:
        self._record("create_volume", **kwargs)
        if kwargs["name"] in self.volumes:
            raise RemoteError(f"volume '{kwargs['name']}' already exists", 400)
        return self.add_volume(
            name=kwargs["name"],
            owner=kwargs["owner"],
            zone_name=kwargs["zone_name"],
            capacity=kwargs["capacity"],
            dp_replica_num=kwargs["replicas"],
            follower_read=kwargs["follower_read"],
            auto_repair=kwargs["auto_repair"],
            mp_count=kwargs["mp_count"],
            dp_size=kwargs["dp_size"],
        )

    def update_volume(self, **kwargs) -> SimpleVolView:
        self._record("update_volume", **kwargs)
        view = self.volumes[kwargs["name"]]
        if kwargs["auth_key"] != calc_auth_key(view.owner):
            raise RemoteError("auth key mismatch", 403)
        view.capacity = kwargs["capacity"]
        view.dp_replica_num = kwargs["replicas"]
        view.follower_read = kwargs["follower_read"]
        view.authenticate = kwargs["authenticate"]
        view.enable_token = kwargs["enable_token"]
        view.auto_repair = kwargs["auto_repair"]
        view.zone_name = kwargs["zone_name"]
        return view.model_copy()

    def delete_volume(self, name: str, auth_key: str):
        self._record("delete_volume", name=name, auth_key=auth_key)
        if auth_key != calc_auth_key(self.volumes[name].owner):
            raise RemoteError("auth key mismatch", 403)
        del self.volumes[name]
        return {"status": "deleted", "name": name}

    def create_data_partitions(self, name: str, count: int):
        self._record("create_data_partitions", name=name, count=count)
        return {"name": name, "created": count}

    def get_meta_partitions(self, name: str):
        self._record("get_meta_partitions", name=name)
        return list(self.meta_partitions.get(name, []))

    def get_data_partitions(self, name: str):
        self._record("get_data_partitions", name=name)
        return DataPartitionsView(data_partitions=list(self.data_partitions.get(name, [])))

    def get_user(self, user_id: str) -> UserInfo:
        self._record("get_user", user_id=user_id)
        if user_id not in self.users:
            raise NotFoundError(f"user '{user_id}' not found", 404)
        return self.users[user_id]

    def create_user(self, user_id: str) -> UserInfo:
        self._record("create_user", user_id=user_id)
        return self.add_user(user_id)

    def transfer_volume(self, param: UserTransferVolParam) -> UserInfo:
        self._record("transfer_volume", param=param)
        self.volumes[param.volume].owner = param.user_dst
        return self.users[param.user_dst]


class ScriptedConfirmation:
    """Answers prompts from a fixed script and remembers what was asked."""

    def __init__(self, *answers: str):
        self.answers = list(answers)
        self.prompts: List[str] = []

    def prompt(self, text: str) -> str:
        self.prompts.append(text)
        if not self.answers:
            raise AssertionError(f"unexpected prompt: {text!r}")
        return self.answers.pop(0)


@pytest.fixture
def fake_client() -> FakeAdminClient:
    return FakeAdminClient()


@pytest.fixture
def master_api(tmp_path):
    """TestClient over a master app backed by a fresh SQLite file"""
    init_db(f"sqlite:///{tmp_path / 'master.db'}")
    with TestClient(create_app("test_cluster")) as client:
        yield client
