"""Tests for the master admin API client.

Transport behavior is checked with a stub session; the end-to-end class
drives the real master app through TestClient, which accepts the same
request() call the client issues.
"""

import io

import pytest
import requests

from cli.admin_client import AdminClient
from cli.main import main
from cli.reconciler import VolumeOverrides, VolumeReconciler
from conftest import ScriptedConfirmation
from shared.errors import NotFoundError, RemoteError
from shared.schemas import UserTransferVolParam


class StubResponse:
    def __init__(self, status_code, payload=None, text=""):
        self.status_code = status_code
        self.payload = payload
        self.text = text

    def json(self):
        if self.payload is None:
            raise ValueError("no json body")
        return self.payload


class StubSession:
    def __init__(self, *results):
        self.results = list(results)
        self.requests = []

    def request(self, method, url, params=None, json=None, timeout=None):
        self.requests.append({"method": method, "url": url, "params": params, "json": json})
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


def _view(name="v1", owner="u1"):
    return {"name": name, "owner": owner, "capacity": 10, "dp_replica_num": 3}


class TestTransport:
    def test_fails_over_on_connection_error(self) -> None:
        session = StubSession(requests.ConnectionError("refused"), StubResponse(200, _view()))
        client = AdminClient("10.0.0.1:17010,10.0.0.2:17010", session=session)

        view = client.get_volume("v1")
        assert view.owner == "u1"
        assert [r["url"] for r in session.requests] == [
            "http://10.0.0.1:17010/admin/getVol",
            "http://10.0.0.2:17010/admin/getVol",
        ]

    def test_http_errors_are_not_retried(self) -> None:
        session = StubSession(StubResponse(400, {"detail": "volume 'v1' already exists"}))
        client = AdminClient(["m1:17010", "m2:17010"], session=session)

        with pytest.raises(RemoteError) as exc:
            client.create_volume("v1", "u1", 3, 120, 10, 3, True, False, "default")
        assert str(exc.value) == "volume 'v1' already exists"
        assert exc.value.status_code == 400
        assert len(session.requests) == 1

    def test_404_maps_to_not_found(self) -> None:
        session = StubSession(StubResponse(404, {"detail": "user 'x' not found"}))
        client = AdminClient("m1:17010", session=session)
        with pytest.raises(NotFoundError, match="user 'x' not found"):
            client.get_user("x")

    def test_non_json_error_body(self) -> None:
        session = StubSession(StubResponse(502, None, text="Bad Gateway"))
        client = AdminClient("m1:17010", session=session)
        with pytest.raises(RemoteError, match="Bad Gateway"):
            client.list_volumes()

    def test_all_masters_unreachable(self) -> None:
        session = StubSession(requests.ConnectionError("a"), requests.Timeout("b"))
        client = AdminClient("m1:17010,m2:17010", session=session)
        with pytest.raises(RemoteError, match="no master reachable"):
            client.list_volumes()

    def test_delete_sends_auth_key_param(self) -> None:
        session = StubSession(StubResponse(200, {"status": "deleted", "name": "v1"}))
        client = AdminClient("http://m1:17010/", session=session)
        client.delete_volume("v1", "abc123")
        sent = session.requests[0]
        assert sent["method"] == "POST"
        assert sent["url"] == "http://m1:17010/vol/delete"
        assert sent["params"] == {"name": "v1", "authKey": "abc123"}

    def test_requires_an_address(self) -> None:
        with pytest.raises(ValueError):
            AdminClient(" , ")

    def test_unsendable_request_is_remote_error(self) -> None:
        session = StubSession(requests.exceptions.InvalidURL("bad host"), StubResponse(200, _view()))
        client = AdminClient("m1:17010,m2:17010", session=session)
        with pytest.raises(RemoteError, match="bad host"):
            client.get_volume("v1")
        assert len(session.requests) == 1


class TestMalformedReplies:
    def test_wrong_shape_object(self) -> None:
        client = AdminClient("m1:17010", session=StubSession(StubResponse(200, {"unexpected": 1})))
        with pytest.raises(RemoteError, match="unexpected master reply"):
            client.get_volume("v1")

    def test_non_json_success_body(self) -> None:
        session = StubSession(StubResponse(200, None, text="<html>proxy</html>"))
        client = AdminClient("m1:17010", session=session)
        with pytest.raises(RemoteError, match="unexpected master reply"):
            client.list_volumes()

    def test_list_item_missing_fields(self) -> None:
        session = StubSession(StubResponse(200, [{"name": "v1"}]))
        client = AdminClient("m1:17010", session=session)
        with pytest.raises(RemoteError, match="VolumeInfo"):
            client.list_volumes()

    def test_meta_partitions_not_a_list(self) -> None:
        session = StubSession(StubResponse(200, {"partitions": []}))
        client = AdminClient("m1:17010", session=session)
        with pytest.raises(RemoteError, match="unexpected master reply"):
            client.get_meta_partitions("v1")

    def test_cli_reports_error_instead_of_traceback(self) -> None:
        session = StubSession(StubResponse(200, None, text="<html>proxy</html>"))
        client = AdminClient("m1:17010", session=session)
        out, err = io.StringIO(), io.StringIO()

        code = main(["volume", "list"], client=client, confirm=ScriptedConfirmation(), out=out, err=err)
        assert code == 1
        assert "Error: unexpected master reply" in err.getvalue()


class TestAgainstMaster:
    def test_create_set_transfer_delete(self, master_api) -> None:
        client = AdminClient("testserver", session=master_api)
        client.create_user("u1")
        client.create_user("u2")

        out = io.StringIO()
        rec = VolumeReconciler(client, ScriptedConfirmation("", "", "yes", "yes"), out=out)

        assert rec.create("v1", "u1", capacity=50) is True
        before = client.get_volume("v1")

        assert rec.set("v1", VolumeOverrides(capacity=80)) is True
        after = client.get_volume("v1")
        assert after.capacity == 80
        assert after.dp_replica_num == before.dp_replica_num
        assert after.follower_read == before.follower_read
        assert after.zone_name == before.zone_name

        assert rec.transfer("v1", "u2") is True
        assert client.get_user("u2").owned_volumes == ["v1"]

        assert rec.delete("v1") is True
        with pytest.raises(NotFoundError):
            client.get_volume("v1")

    def test_transfer_without_force_rejects_wrong_source(self, master_api) -> None:
        client = AdminClient("testserver", session=master_api)
        client.create_user("u1")
        client.create_user("u2")
        client.create_volume("v1", "u1", 3, 120, 10, 3, True, False, "default")

        param = UserTransferVolParam(volume="v1", user_src="u2", user_dst="u2", force=False)
        with pytest.raises(RemoteError) as exc:
            client.transfer_volume(param)
        assert exc.value.status_code == 400
