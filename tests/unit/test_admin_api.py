"""
Tests for the remote admin API client (httpx MockTransport).
"""

from __future__ import annotations

import json

import httpx
import pytest

from snapshot_scheduler.adapters.admin_api import AdminApiClient
from snapshot_scheduler.core.entities import TenantKey
from snapshot_scheduler.core.ports.publish_api import PublishApiAuthError, PublishApiError
from snapshot_scheduler.rules.models import RemoteApiRules

TENANT = TenantKey("org", "site")
BASE = "https://admin.example.test/snapshot/org/site/main"


def _client(handler) -> AdminApiClient:
    config = RemoteApiRules(base_url="https://admin.example.test")
    return AdminApiClient(config, client=httpx.Client(transport=httpx.MockTransport(handler)))


class TestRequests:
    def test_list_jobs(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"snapshots": ["a", {"id": "b"}, {"name": "x"}]})

        assert _client(handler).list_jobs(TENANT, "secret") == ["a", "b"]
        assert str(seen[0].url) == BASE
        assert seen[0].headers["X-Auth-Token"] == "secret"

    def test_list_jobs_unexpected_shape(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={"other": 1}))

        assert client.list_jobs(TENANT, "secret") == []

    def test_get_manifest(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == f"{BASE}/snap%201"
            return httpx.Response(200, json={"manifest": {"title": "t"}})

        assert _client(handler).get_manifest(TENANT, "snap 1", "secret") == {"title": "t"}

    def test_get_manifest_missing(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={}))

        with pytest.raises(PublishApiError):
            client.get_manifest(TENANT, "snap", "secret")

    def test_get_manifest_for_caller_forwards_authorization(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"manifest": {"title": "t"}})

        manifest = _client(handler).get_manifest_for_caller(TENANT, "snap", "token t")

        assert manifest == {"title": "t"}
        assert str(seen[0].url) == f"{BASE}/snap"
        assert seen[0].headers["Authorization"] == "token t"
        assert "X-Auth-Token" not in seen[0].headers

    def test_get_manifest_for_caller_rejected(self) -> None:
        client = _client(lambda request: httpx.Response(403))

        with pytest.raises(PublishApiAuthError):
            client.get_manifest_for_caller(TENANT, "snap", "Bearer x")

    def test_publish(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200)

        _client(handler).publish(TENANT, "snap", "secret")

        assert seen[0].method == "POST"
        assert seen[0].url.params["publish"] == "true"
        assert json.loads(seen[0].content) == {"publish": True}

    def test_update_manifest(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(204)

        _client(handler).update_manifest(TENANT, "snap", {"title": "t"}, "secret")

        assert str(seen[0].url) == f"{BASE}/snap"
        assert json.loads(seen[0].content) == {"title": "t"}


class TestErrors:
    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_errors(self, status: int) -> None:
        client = _client(lambda request: httpx.Response(status))

        with pytest.raises(PublishApiAuthError) as exc:
            client.publish(TENANT, "snap", "bad")

        assert exc.value.status_code == status

    def test_server_error(self) -> None:
        client = _client(lambda request: httpx.Response(500))

        with pytest.raises(PublishApiError) as exc:
            client.publish(TENANT, "snap", "secret")

        assert not isinstance(exc.value, PublishApiAuthError)
        assert exc.value.status_code == 500

    def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(PublishApiError):
            _client(handler).list_jobs(TENANT, "secret")
