"""
Master Admin API Client

Typed façade over the master HTTP API. Every call is synchronous and
returns a pydantic model from shared.schemas, or raises:
- NotFoundError: master answered 404
- RemoteError: any other non-2xx answer (message = master's `detail`),
  a reply that does not fit the expected model, a request that could
  not be sent, or no configured master could be reached

Connection failures fall through to the next master address; HTTP errors
are never retried.

Usage:
    client = AdminClient(["10.0.1.1:17010", "10.0.1.2:17010"])
    view = client.get_volume("vol1")
"""

import logging
from typing import Any, Dict, List, Optional, Union

import pydantic
import requests

from shared.config import DEFAULT_HTTP_TIMEOUT
from shared.errors import NotFoundError, RemoteError
from shared.schemas import (
    CreateUserRequest,
    CreateVolumeRequest,
    DataPartitionsView,
    MetaPartitionView,
    SimpleVolView,
    UpdateVolumeRequest,
    UserInfo,
    UserTransferVolParam,
    VolumeInfo,
)

logger = logging.getLogger(__name__)


def _base_url(addr: str) -> str:
    addr = addr.strip().rstrip("/")
    if addr.startswith("http://") or addr.startswith("https://"):
        return addr
    return f"http://{addr}"


class AdminClient:
    def __init__(
        self,
        master_addrs: Union[str, List[str]],
        timeout: int = DEFAULT_HTTP_TIMEOUT,
        session: Optional[requests.Session] = None
    ):
        if isinstance(master_addrs, str):
            master_addrs = master_addrs.split(",")
        self.master_urls = [_base_url(a) for a in master_addrs if a.strip()]
        if not self.master_urls:
            raise ValueError("at least one master address is required")
        self.timeout = timeout
        self.session = session or requests.Session()

    def close(self):
        self.session.close()

    # ========================================================================
    # TRANSPORT
    # ========================================================================

    def _request(self, method: str, path: str, params: Optional[Dict] = None, json: Any = None) -> Any:
        last_error = None
        for base in self.master_urls:
            url = f"{base}{path}"
            try:
                resp = self.session.request(method, url, params=params, json=json, timeout=self.timeout)
            except (requests.ConnectionError, requests.Timeout) as e:
                last_error = f"{base}: {e}"
                logger.warning(f"Master unreachable, trying next: {last_error}")
                continue
            except requests.RequestException as e:
                raise RemoteError(f"request to {base} failed: {e}")
            return self._parse(resp)

        raise RemoteError(f"no master reachable: {last_error}")

    @staticmethod
    def _validate(model, data):
        try:
            return model.model_validate(data)
        except pydantic.ValidationError as e:
            raise RemoteError(f"unexpected master reply: {e.error_count()} invalid field(s) for {model.__name__}")

    @staticmethod
    def _parse(resp: requests.Response) -> Any:
        try:
            payload = resp.json()
        except ValueError:
            payload = {"raw": resp.text}

        if 200 <= resp.status_code < 300:
            return payload

        if isinstance(payload, dict):
            error = payload.get("detail") or payload.get("error") or payload.get("raw")
        else:
            error = payload
        if not isinstance(error, str):
            error = str(error)
        if resp.status_code == 404:
            raise NotFoundError(error, resp.status_code)
        raise RemoteError(error, resp.status_code)

    # ========================================================================
    # VOLUMES
    # ========================================================================

    def list_volumes(self, keyword: str = "") -> List[VolumeInfo]:
        data = self._request("GET", "/admin/listVols", params={"keywords": keyword})
        if not isinstance(data, list):
            raise RemoteError("unexpected master reply: expected a volume list")
        return [self._validate(VolumeInfo, item) for item in data]

    def get_volume(self, name: str) -> SimpleVolView:
        data = self._request("GET", "/admin/getVol", params={"name": name})
        return self._validate(SimpleVolView, data)

    def create_volume(self, name: str, owner: str, mp_count: int, dp_size: int, capacity: int,
                      replicas: int, follower_read: bool, auto_repair: bool, zone_name: str) -> SimpleVolView:
        req = CreateVolumeRequest(
            name=name,
            owner=owner,
            mp_count=mp_count,
            dp_size=dp_size,
            capacity=capacity,
            replicas=replicas,
            follower_read=follower_read,
            auto_repair=auto_repair,
            zone_name=zone_name,
        )
        data = self._request("POST", "/admin/createVol", json=req.model_dump())
        return self._validate(SimpleVolView, data)

    def update_volume(self, name: str, capacity: int, replicas: int, follower_read: bool,
                      authenticate: bool, enable_token: bool, auto_repair: bool,
                      auth_key: str, zone_name: str) -> SimpleVolView:
        req = UpdateVolumeRequest(
            name=name,
            capacity=capacity,
            replicas=replicas,
            follower_read=follower_read,
            authenticate=authenticate,
            enable_token=enable_token,
            auto_repair=auto_repair,
            zone_name=zone_name,
            auth_key=auth_key,
        )
        data = self._request("POST", "/vol/update", json=req.model_dump())
        return self._validate(SimpleVolView, data)

    def delete_volume(self, name: str, auth_key: str) -> Dict:
        return self._request("POST", "/vol/delete", params={"name": name, "authKey": auth_key})

    def create_data_partitions(self, name: str, count: int) -> Dict:
        return self._request("POST", "/dataPartition/create", params={"name": name, "count": count})

    # ========================================================================
    # PARTITIONS
    # ========================================================================

    def get_meta_partitions(self, name: str) -> List[MetaPartitionView]:
        data = self._request("GET", "/client/metaPartitions", params={"name": name})
        if not isinstance(data, list):
            raise RemoteError("unexpected master reply: expected a partition list")
        return [self._validate(MetaPartitionView, item) for item in data]

    def get_data_partitions(self, name: str) -> DataPartitionsView:
        data = self._request("GET", "/client/partitions", params={"name": name})
        return self._validate(DataPartitionsView, data)

    # ========================================================================
    # USERS
    # ========================================================================

    def get_user(self, user_id: str) -> UserInfo:
        data = self._request("GET", "/user/info", params={"user": user_id})
        return self._validate(UserInfo, data)

    def create_user(self, user_id: str) -> UserInfo:
        req = CreateUserRequest(user_id=user_id)
        data = self._request("POST", "/user/create", json=req.model_dump())
        return self._validate(UserInfo, data)

    def transfer_volume(self, param: UserTransferVolParam) -> UserInfo:
        data = self._request("POST", "/user/transferVol", json=param.model_dump())
        return self._validate(UserInfo, data)
